import io
import random
import sqlite3

import pytest
from PIL import Image

from linkshort.captcha import (
    BACKGROUND,
    CHARSET,
    IMAGE_HEIGHT,
    IMAGE_WIDTH,
    captcha_middleware,
    generate_captcha,
    generate_captcha_image,
    generate_random_string,
)
from linkshort.models import Repository


class _FailingRepo:
    def create_captcha_attempt(self, ip_address, success):
        raise RuntimeError("database down")


@pytest.fixture
def repo():
    conn = sqlite3.connect(":memory:")
    yield Repository(conn)
    conn.close()


def test_random_string_length_and_charset():
    text = generate_random_string(12, random.Random(1))
    assert len(text) == 12
    assert set(text) <= set(CHARSET)


def test_random_string_is_deterministic_for_seed():
    first = generate_random_string(6, random.Random(42))
    second = generate_random_string(6, random.Random(42))
    assert first == second


def test_random_string_zero_length():
    assert generate_random_string(0, random.Random(3)) == ""


def test_image_dimensions_and_background():
    img = generate_captcha_image("ABC", random.Random(5))
    assert img.size == (IMAGE_WIDTH, IMAGE_HEIGHT)
    assert img.getpixel((0, 0)) == BACKGROUND
    assert img.getpixel((IMAGE_WIDTH - 1, IMAGE_HEIGHT - 1)) == BACKGROUND


def test_image_glyph_colours_in_range():
    img = generate_captcha_image("AB", random.Random(9))
    top = IMAGE_HEIGHT // 2
    for left in (0, 20):
        r, g, b, a = img.getpixel((left, top))
        assert all(100 <= c < 200 for c in (r, g, b))
        assert a == 255
        assert img.getpixel((left + 7, top + 7)) == (r, g, b, a)
    # The gap between blocks stays background.
    assert img.getpixel((8, top)) == BACKGROUND
    assert img.getpixel((0, top - 1)) == BACKGROUND


def test_image_ignores_characters_past_width():
    img = generate_captcha_image("X" * 15, random.Random(2))
    assert img.size == (IMAGE_WIDTH, IMAGE_HEIGHT)
    assert img.getpixel((IMAGE_WIDTH - 1, IMAGE_HEIGHT // 2)) == BACKGROUND


def test_generate_captcha_returns_png_and_records_attempt(repo):
    captcha_id, data = generate_captcha(repo, random.Random(7))
    assert captcha_id.isdigit()
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    decoded = Image.open(io.BytesIO(data))
    assert decoded.size == (IMAGE_WIDTH, IMAGE_HEIGHT)
    attempts = repo.get_recent_captcha_attempts("127.0.0.1", 10)
    assert len(attempts) == 1
    assert attempts[0].success is True


def test_generate_captcha_propagates_repository_error():
    with pytest.raises(RuntimeError, match="database down"):
        generate_captcha(_FailingRepo(), random.Random(1))


def test_middleware_passes_request_through(repo):
    calls = []

    def app(environ, start_response):
        calls.append(environ["PATH_INFO"])
        start_response("200 OK", [])
        return [b"body"]

    wrapped = captcha_middleware(repo)(app)
    result = wrapped({"PATH_INFO": "/x"}, lambda status, headers: None)
    assert list(result) == [b"body"]
    assert calls == ["/x"]