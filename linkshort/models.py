"""Database records and the repository that stores them in SQLite."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .stats import URLNotFoundError

_RATE_LIMIT_WINDOW = timedelta(minutes=1)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS short_urls (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    short_code TEXT NOT NULL UNIQUE,
    original_url TEXT NOT NULL,
    user_id INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    expires_at TEXT,
    click_count INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS clicks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    short_url_id INTEGER NOT NULL,
    user_agent TEXT NOT NULL,
    ip_address TEXT NOT NULL,
    referrer TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS rate_limits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ip_address TEXT NOT NULL UNIQUE,
    request_count INTEGER NOT NULL DEFAULT 0,
    reset_at TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS captcha_attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ip_address TEXT NOT NULL,
    success INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _to_time(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class ShortURL:
    """A shortened URL."""

    id: int
    short_code: str
    original_url: str
    created_at: datetime
    updated_at: datetime
    user_id: int | None = None
    expires_at: datetime | None = None
    click_count: int = 0


@dataclass
class Click:
    """One visit to a shortened URL."""

    id: int
    short_url_id: int
    user_agent: str
    ip_address: str
    referrer: str
    created_at: datetime


@dataclass
class RateLimit:
    """Request counter for one client address."""

    id: int
    ip_address: str
    request_count: int
    reset_at: datetime
    created_at: datetime


@dataclass
class CaptchaAttempt:
    """One captcha answer from a client address."""

    id: int
    ip_address: str
    success: bool
    created_at: datetime


class Repository:
    """Stores short URLs, clicks, rate limits and captcha attempts in SQLite."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        conn.executescript(_SCHEMA)
        conn.commit()

    def create_short_url(
        self,
        short_code: str,
        original_url: str,
        user_id: int | None,
        expires_at: datetime | None,
    ) -> ShortURL:
        now = _now()
        cursor = self._conn.execute(
            "INSERT INTO short_urls (short_code, original_url, user_id, created_at,"
            " updated_at, expires_at, click_count) VALUES (?, ?, ?, ?, ?, ?, 0)",
            (short_code, original_url, user_id, now.isoformat(), now.isoformat(),
             _to_text(expires_at)),
        )
        self._conn.commit()
        return ShortURL(
            id=cursor.lastrowid,
            short_code=short_code,
            original_url=original_url,
            created_at=now,
            updated_at=now,
            user_id=user_id,
            expires_at=expires_at,
            click_count=0,
        )

    def get_short_url_by_code(self, short_code: str) -> ShortURL:
        row = self._conn.execute(
            "SELECT id, short_code, original_url, user_id, created_at, updated_at,"
            " expires_at, click_count FROM short_urls WHERE short_code = ?",
            (short_code,),
        ).fetchone()
        if row is None:
            raise URLNotFoundError()
        ident, code, url, user_id, created, updated, expires, clicks = row
        return ShortURL(
            id=ident,
            short_code=code,
            original_url=url,
            created_at=_to_time(created),
            updated_at=_to_time(updated),
            user_id=user_id,
            expires_at=_to_time(expires),
            click_count=clicks,
        )

    def increment_click_count(self, short_url_id: int) -> None:
        cursor = self._conn.execute(
            "UPDATE short_urls SET click_count = click_count + 1, updated_at = ?"
            " WHERE id = ?",
            (_now().isoformat(), short_url_id),
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise URLNotFoundError()

    def get_clicks(self, short_url_id: int, limit: int) -> list[Click]:
        rows = self._conn.execute(
            "SELECT id, short_url_id, user_agent, ip_address, referrer, created_at"
            " FROM clicks WHERE short_url_id = ?"
            " ORDER BY created_at DESC, id DESC LIMIT ?",
            (short_url_id, limit),
        )
        return [
            Click(ident, url_id, agent, ip, referrer, _to_time(created))
            for ident, url_id, agent, ip, referrer, created in rows
        ]

    def create_click(
        self, short_url_id: int, user_agent: str, ip_address: str, referrer: str
    ) -> None:
        self._conn.execute(
            "INSERT INTO clicks (short_url_id, user_agent, ip_address, referrer,"
            " created_at) VALUES (?, ?, ?, ?, ?)",
            (short_url_id, user_agent, ip_address, referrer, _now().isoformat()),
        )
        self._conn.commit()

    def get_or_create_rate_limit(self, ip_address: str) -> RateLimit:
        row = self._conn.execute(
            "SELECT id, ip_address, request_count, reset_at, created_at"
            " FROM rate_limits WHERE ip_address = ?",
            (ip_address,),
        ).fetchone()
        if row is not None:
            ident, ip, count, reset_at, created = row
            return RateLimit(ident, ip, count, _to_time(reset_at), _to_time(created))
        now = _now()
        reset_at = now + _RATE_LIMIT_WINDOW
        cursor = self._conn.execute(
            "INSERT INTO rate_limits (ip_address, request_count, reset_at, created_at)"
            " VALUES (?, 0, ?, ?)",
            (ip_address, reset_at.isoformat(), now.isoformat()),
        )
        self._conn.commit()
        return RateLimit(cursor.lastrowid, ip_address, 0, reset_at, now)

    def update_rate_limit(self, rate_limit: RateLimit) -> None:
        cursor = self._conn.execute(
            "UPDATE rate_limits SET request_count = ?, reset_at = ? WHERE id = ?",
            (rate_limit.request_count, rate_limit.reset_at.isoformat(), rate_limit.id),
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise LookupError(f"no rate limit with id {rate_limit.id}")

    def create_captcha_attempt(self, ip_address: str, success: bool) -> None:
        self._conn.execute(
            "INSERT INTO captcha_attempts (ip_address, success, created_at)"
            " VALUES (?, ?, ?)",
            (ip_address, int(bool(success)), _now().isoformat()),
        )
        self._conn.commit()

    def get_recent_captcha_attempts(
        self, ip_address: str, limit: int
    ) -> list[CaptchaAttempt]:
        rows = self._conn.execute(
            "SELECT id, ip_address, success, created_at FROM captcha_attempts"
            " WHERE ip_address = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (ip_address, limit),
        )
        return [
            CaptchaAttempt(ident, ip, bool(success), _to_time(created))
            for ident, ip, success, created in rows
        ]