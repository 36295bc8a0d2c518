import pytest
from flask import Flask

from linkshort.rate_limiter import (
    DEFAULT_MAX_REQUESTS,
    RateLimiter,
    rate_limit_middleware,
)


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return _Clock()


def _app():
    app = Flask("ratetest")

    @app.route("/")
    def index():
        return "ok"

    return app


def test_allows_up_to_limit_then_denies(clock):
    limiter = RateLimiter(window=60.0, max_requests=3, clock=clock)
    results = [limiter.allow("1.2.3.4") for _ in range(4)]
    assert results == [True, True, True, False]


def test_window_expiry_allows_again(clock):
    limiter = RateLimiter(window=60.0, max_requests=2, clock=clock)
    assert limiter.allow("a") and limiter.allow("a")
    assert limiter.allow("a") is False
    clock.now += 60.0
    assert limiter.allow("a") is True


def test_entries_inside_window_still_count(clock):
    limiter = RateLimiter(window=60.0, max_requests=2, clock=clock)
    limiter.allow("a")
    clock.now += 30.0
    limiter.allow("a")
    clock.now += 31.0
    # First entry has expired, second has not.
    assert limiter.allow("a") is True
    assert limiter.allow("a") is False


def test_addresses_are_independent(clock):
    limiter = RateLimiter(window=60.0, max_requests=1, clock=clock)
    assert limiter.allow("a") is True
    assert limiter.allow("a") is False
    assert limiter.allow("b") is True


def test_default_limit(clock):
    limiter = RateLimiter(clock=clock)
    allowed = sum(limiter.allow("x") for _ in range(DEFAULT_MAX_REQUESTS + 5))
    assert allowed == DEFAULT_MAX_REQUESTS


def test_installed_limiter_returns_429(clock):
    app = RateLimiter(window=60.0, max_requests=2, clock=clock).install(_app())
    client = app.test_client()
    assert client.get("/").status_code == 200
    assert client.get("/").status_code == 200
    response = client.get("/")
    assert response.status_code == 429
    assert response.get_json() == {"error": "Rate limit exceeded"}


def test_installed_limiter_uses_forwarded_address(clock):
    app = RateLimiter(window=60.0, max_requests=1, clock=clock).install(_app())
    client = app.test_client()
    assert client.get("/", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
    assert client.get("/", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
    assert client.get("/", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200


def test_shared_middleware_limits_requests():
    app = _app()
    assert rate_limit_middleware(app) is app
    client = app.test_client()
    headers = {"X-Forwarded-For": "192.0.2.77"}
    codes = [client.get("/", headers=headers).status_code for _ in range(DEFAULT_MAX_REQUESTS + 1)]
    assert codes[:DEFAULT_MAX_REQUESTS] == [200] * DEFAULT_MAX_REQUESTS
    assert codes[-1] == 429