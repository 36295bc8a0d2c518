"""Sliding-window request limiting per client address."""

from __future__ import annotations

import threading
import time
from typing import Callable

from flask import Flask, jsonify, request

MAX_REQUESTS_PER_MINUTE = 100
MAX_REQUESTS_PER_HOUR = 1000

DEFAULT_WINDOW = 60.0
DEFAULT_MAX_REQUESTS = 10


def _client_ip() -> str:
    """Return the client address, honouring forwarding headers."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip
    return request.remote_addr or ""


class RateLimiter:
    """Allows at most ``max_requests`` per address within ``window`` seconds."""

    def __init__(
        self,
        window: float = DEFAULT_WINDOW,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self.max_requests = max_requests
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def allow(self, ip: str) -> bool:
        """Count a request from ``ip`` and report whether it is within the limit."""
        with self._lock:
            now = self._clock()
            recent = [t for t in self._requests.get(ip, []) if now - t < self.window]
            self._requests[ip] = recent
            if len(recent) >= self.max_requests:
                return False
            recent.append(now)
            return True

    def install(self, app: Flask) -> Flask:
        """Reject requests over the limit on every route of ``app``."""

        def check():
            if not self.allow(_client_ip()):
                return jsonify({"error": "Rate limit exceeded"}), 429
            return None

        app.before_request(check)
        return app


_shared_limiter = RateLimiter()


def rate_limit_middleware(app: Flask) -> Flask:
    """Install the process-wide limiter on ``app``."""
    return _shared_limiter.install(app)