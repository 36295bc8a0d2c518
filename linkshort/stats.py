"""URL statistics record and the errors shared by the URL services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


class InvalidURLError(ValueError):
    """Raised when a URL cannot be shortened."""

    def __init__(self, message: str = "invalid URL") -> None:
        super().__init__(message)


class URLNotFoundError(LookupError):
    """Raised when a short code has no stored URL."""

    def __init__(self, message: str = "URL not found") -> None:
        super().__init__(message)


@dataclass
class URLStats:
    """Click statistics for one short code."""

    code: str
    original_url: str
    clicks: int
    last_access: datetime

    def to_dict(self) -> dict[str, Any]:
        """Return the statistics as a JSON-ready mapping."""
        return {
            "code": self.code,
            "original_url": self.original_url,
            "clicks": self.clicks,
            "last_access": self.last_access.isoformat(),
        }