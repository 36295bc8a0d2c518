"""In-memory service for tests and local development."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from .service import Service
from .stats import InvalidURLError, URLNotFoundError, URLStats

_CODE = "abc123"
_BASE_URL = "http://localhost:8080/"


class MockService(Service):
    """Keeps URLs in memory and always issues the same short code."""

    def __init__(self) -> None:
        self._urls: dict[str, str] = {}
        self._stats: dict[str, URLStats] = {}

    def create_short_url(self, original_url: str) -> str:
        if not original_url or not original_url.startswith("http"):
            raise InvalidURLError()
        self._urls[_CODE] = original_url
        self._stats[_CODE] = URLStats(
            code=_CODE,
            original_url=original_url,
            clicks=0,
            last_access=datetime.now(timezone.utc),
        )
        return _BASE_URL + _CODE

    def get_url_stats(self, code: str) -> URLStats:
        try:
            return self._stats[code]
        except KeyError:
            raise URLNotFoundError() from None

    def redirect_url(self, code: str, ip: str, user_agent: str) -> str:
        try:
            original_url = self._urls[code]
        except KeyError:
            raise URLNotFoundError() from None
        stats = self._stats.get(code)
        if stats is not None:
            self._stats[code] = replace(
                stats, clicks=stats.clicks + 1, last_access=datetime.now(timezone.utc)
            )
        return original_url

    def validate_captcha(self, captcha: str) -> bool:
        return captcha == "test123"

    def check_rate_limit(self, ip: str) -> bool:
        """Report whether the address is limited; never true here."""
        return False

    def increment_rate_limit(self, ip: str) -> None:
        """Count a request for the address; nothing is kept here."""