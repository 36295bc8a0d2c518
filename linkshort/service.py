"""URL shortening service backed by an SQL database."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from .stats import URLNotFoundError, URLStats

_log = logging.getLogger(__name__)


class Service(ABC):
    """Operations a URL shortener offers."""

    @abstractmethod
    def create_short_url(self, original_url: str) -> str:
        """Store a URL and return its short form."""

    @abstractmethod
    def get_url_stats(self, code: str) -> URLStats:
        """Return statistics for a short code."""

    @abstractmethod
    def redirect_url(self, code: str, ip: str, user_agent: str) -> str:
        """Return the original URL for a code and record the visit."""


class SQLService(Service):
    """Service storing URLs in the ``urls`` table and visits in ``analytics``."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create_short_url(self, original_url: str) -> str:
        short_code = str(uuid.uuid4())[:8]
        self._conn.execute(
            "INSERT INTO urls (short_code, original_url, created_at) VALUES (?, ?, ?)",
            (short_code, original_url, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()
        return short_code

    def get_url_stats(self, code: str) -> URLStats:
        row = self._conn.execute(
            "SELECT short_code, original_url, click_count, created_at"
            " FROM urls WHERE short_code = ?",
            (code,),
        ).fetchone()
        if row is None:
            raise URLNotFoundError()
        short_code, original_url, clicks, created = row
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        return URLStats(short_code, original_url, clicks or 0, created)

    def redirect_url(self, code: str, ip: str, user_agent: str) -> str:
        row = self._conn.execute(
            "SELECT original_url FROM urls WHERE short_code = ?", (code,)
        ).fetchone()
        if row is None:
            raise URLNotFoundError()
        try:
            self._conn.execute(
                "INSERT INTO analytics (url_id, ip_address, user_agent, accessed_at)"
                " VALUES ((SELECT id FROM urls WHERE short_code = ?), ?, ?, ?)",
                (code, ip, user_agent, datetime.now(timezone.utc).isoformat()),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            # The redirect still succeeds when analytics cannot be recorded.
            _log.warning("Failed to record analytics: %s", exc)
        return row[0]