"""HTTP routes of the URL shortener."""

from __future__ import annotations

from flask import Flask, jsonify, redirect, request

from .rate_limiter import _client_ip
from .service import Service


def setup_routes(app: Flask, svc: Service | None) -> Flask:
    """Register the shortener routes and the health check on ``app``."""

    @app.post("/api/shorten")
    def create_short_url():
        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "request body must be a JSON object"}), 400
        url = body.get("url", "")
        if not isinstance(url, str):
            return jsonify({"error": "field 'url' must be a string"}), 400
        try:
            short_url = svc.create_short_url(url)
        except Exception as exc:  # any service failure is reported to the client
            return jsonify({"error": str(exc)}), 500
        return jsonify({"short_url": short_url})

    @app.get("/api/stats/<code>")
    def get_url_stats(code: str):
        try:
            stats = svc.get_url_stats(code)
        except Exception:
            return jsonify({"error": "URL not found"}), 404
        return jsonify(stats.to_dict())

    @app.get("/api/<code>")
    def redirect_url(code: str):
        try:
            original_url = svc.redirect_url(
                code, _client_ip(), request.headers.get("User-Agent", "")
            )
        except Exception:
            return jsonify({"error": "URL not found"}), 404
        return redirect(original_url, code=307)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


def create_app(svc: Service | None = None) -> Flask:
    """Build a Flask application serving ``svc``."""
    return setup_routes(Flask(__name__), svc)