"""Recording and querying URL access analytics."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .stats import URLNotFoundError, URLStats


def _to_time(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class URLAccess:
    """One recorded access of a short URL."""

    accessed_at: datetime
    ip_address: str
    user_agent: str
    referrer: str
    country_code: str


class AnalyticsService:
    """Tracks accesses in the ``analytics`` table and reads URL statistics."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def track_url_access(self, code: str, ip: str, user_agent: str) -> None:
        self._conn.execute(
            "INSERT INTO analytics (code, ip_address, user_agent, accessed_at)"
            " VALUES (?, ?, ?, ?)",
            (code, ip, user_agent, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()

    def get_url_stats(self, code: str) -> URLStats:
        row = self._conn.execute(
            "SELECT code, original_url, clicks, last_access FROM urls WHERE code = ?",
            (code,),
        ).fetchone()
        if row is None:
            raise URLNotFoundError()
        short_code, original_url, clicks, last_access = row
        return URLStats(short_code, original_url, clicks or 0, _to_time(last_access))

    def get_analytics(
        self, code: str, start_date: datetime, end_date: datetime
    ) -> list[URLAccess]:
        rows = self._conn.execute(
            "SELECT accessed_at, ip_address, user_agent, referrer, country_code"
            " FROM analytics WHERE code = ? AND accessed_at BETWEEN ? AND ?"
            " ORDER BY accessed_at DESC",
            (code, start_date.isoformat(), end_date.isoformat()),
        )
        return [
            URLAccess(
                accessed_at=_to_time(accessed),
                ip_address=ip or "",
                user_agent=agent or "",
                referrer=referrer or "",
                country_code=country or "",
            )
            for accessed, ip, agent, referrer, country in rows
        ]