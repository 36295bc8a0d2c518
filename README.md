# linkshort

`linkshort` is a small URL shortener built on Flask. It contains:

- `linkshort.api`: the HTTP routes. They create short codes, return statistics and redirect visitors.
- `linkshort.service`: the `Service` interface and `SQLService`, which works on a `sqlite3` connection.
- `linkshort.mock`: `MockService`, an in-memory service for tests and local experiments.
- `linkshort.models`: the record types and a SQLite `Repository`.
- `linkshort.analytics`: `AnalyticsService`, which records and queries URL accesses.
- `linkshort.rate_limiter`: a per-address sliding-window rate limiter for Flask apps.
- `linkshort.captcha`: captcha text and PNG image generation.
- `linkshort.stats`: `URLStats` and the shared errors.

## Installation

```
pip install linkshort
```

To include the test dependencies:

```
pip install "linkshort[test]"
```

## Building an application

`create_app(svc)` returns a Flask application that serves the given service:

```python
from linkshort.api import create_app
from linkshort.mock import MockService

app = create_app(MockService())
app.run(port=8080)
```

If you already have a Flask app, `setup_routes(app, svc)` adds the routes to it and returns the app.

`MockService` keeps URLs in memory and always issues the code `abc123`. `create_short_url` returns `http://localhost:8080/abc123`. It raises `InvalidURLError` when the URL is empty or does not start with `http`. Each redirect increases the click count and updates the last-access time. `validate_captcha` accepts only `"test123"`. `check_rate_limit` always returns `False`, and `increment_rate_limit` keeps no count.

`SQLService(conn)` takes a `sqlite3` connection:

```python
import sqlite3

from linkshort.api import create_app
from linkshort.service import SQLService

conn = sqlite3.connect("links.db")
app = create_app(SQLService(conn))
```

`SQLService` expects two tables to exist already:

- a `urls` table with `id`, `short_code`, `original_url`, `click_count` and `created_at` columns;
- an `analytics` table with `url_id`, `ip_address`, `user_agent` and `accessed_at` columns.

`create_short_url` stores the URL under the first eight characters of a random UUID and returns that code. `get_url_stats` reports `created_at` as the last access time. `redirect_url` returns the original URL and records the visit in `analytics`. If that insert fails, the error is logged as a warning and the redirect still succeeds. An unknown code raises `URLNotFoundError`.

## HTTP API

| Method | Path                | Response                                                          |
|--------|---------------------|-------------------------------------------------------------------|
| POST   | `/api/shorten`      | Body `{"url": "..."}`. Returns `{"short_url": ...}` with whatever the service returned. |
| GET    | `/api/stats/<code>` | `{"code", "original_url", "clicks", "last_access"}`, with `last_access` in ISO 8601 format. |
| GET    | `/api/<code>`       | A 307 redirect to the original URL.                               |
| GET    | `/health`           | `{"status": "ok"}`                                                |

Errors:

- `/api/shorten` returns 400 if the body is not a JSON object, or if `url` is present but is not a string.
- `/api/shorten` returns 500 with `{"error": "<message>"}` if the service raises.
- `/api/stats/<code>` and `/api/<code>` return 404 with `{"error": "URL not found"}` if the service raises for any reason.

The redirect route passes the client address and `User-Agent` header to the service. The client address is the first entry of `X-Forwarded-For`; if that is missing, `X-Real-IP`; otherwise the peer address.

## Rate limiting

`RateLimiter(window=60.0, max_requests=10, clock=time.monotonic)` counts requests per address over a sliding window, measured in seconds. `allow(ip)` records a request and returns whether it was within the limit. A rejected request is not counted.

`install(app)` registers a before-request hook. Any request over the limit gets a 429 response with `{"error": "Rate limit exceeded"}`.

```python
from linkshort.rate_limiter import RateLimiter, rate_limit_middleware

RateLimiter(window=60.0, max_requests=10).install(app)
# or install the limiter shared by the whole process:
rate_limit_middleware(app)
```

## Captchas

- `generate_random_string(length, rng=None)` returns `length` characters drawn from `A`–`Z` and `0`–`9`.
- `generate_captcha_image(text, rng=None)` returns a 200×80 RGBA Pillow image on a light grey background. It draws one 8×8 block of a random colour for each character, 20 pixels apart, at half height.
- `generate_captcha(repo, rng=None)` records a successful attempt for `127.0.0.1` in the given `Repository`. It returns a pair: an id (the current time in nanoseconds, as a string) and the PNG bytes of an image for six random characters.

Each function accepts an optional `random.Random` instance, so output can be reproduced.

`captcha_middleware(repo)` returns a WSGI wrapper that passes every request through unchanged.

## Storage

`Repository(conn)` creates its tables in the given `sqlite3` connection if they are missing: `short_urls`, `clicks`, `rate_limits` and `captcha_attempts`. It stores and returns `ShortURL`, `Click`, `RateLimit` and `CaptchaAttempt` records. Timestamps are kept as ISO 8601 text in UTC.

- `get_short_url_by_code` and `increment_click_count` raise `URLNotFoundError` for unknown entries.
- `update_rate_limit` raises `LookupError` for an unknown id.
- `get_or_create_rate_limit` creates a new entry with a count of zero and a reset time one minute ahead.
- `get_clicks` and `get_recent_captcha_attempts` return the newest entries first, up to the given limit.

`AnalyticsService(conn)` works on two tables that it expects to exist already:

- an `analytics` table with `code`, `ip_address`, `user_agent`, `accessed_at`, `referrer` and `country_code` columns;
- a `urls` table with `code`, `original_url`, `clicks` and `last_access` columns.

It provides:

- `track_url_access` inserts an access with the current time.
- `get_url_stats` returns a `URLStats`, or raises `URLNotFoundError`.
- `get_analytics(code, start_date, end_date)` returns `URLAccess` records in that range, newest first.

## What the package does not do

- There is no command or server entry point. You build the app with `create_app` and run it yourself.
- `SQLService` and `AnalyticsService` do not create their tables. Their table layouts differ from each other and from the tables `Repository` creates.
- The HTTP routes do not use `Repository`, `AnalyticsService`, the rate limiter or captchas. You have to install the rate limiter yourself.
- Captcha images are coloured blocks, not rendered text. Nothing stores the captcha text or checks answers against it.

## Tests

```
pytest
```