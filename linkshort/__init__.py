"""Flask URL shortener with SQLite storage, access analytics, rate limiting and captcha images."""

__version__ = "0.1.0"