"""Captcha generation and the captcha request middleware."""

from __future__ import annotations

import io
import random
import time
from typing import Any, Callable, Iterable

from PIL import Image

from .models import Repository

CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CAPTCHA_LENGTH = 6
IMAGE_WIDTH = 200
IMAGE_HEIGHT = 80
BACKGROUND = (240, 240, 240, 255)
_GLYPH_SIZE = 8
_GLYPH_STEP = 20

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


def captcha_middleware(repo: Repository) -> Callable[[WSGIApp], WSGIApp]:
    """Return a WSGI wrapper; captcha checks themselves live in the service layer."""

    def wrap(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
            return app(environ, start_response)

        return wrapped

    return wrap


def generate_random_string(length: int, rng: random.Random | None = None) -> str:
    """Return ``length`` characters drawn from upper-case letters and digits."""
    rng = rng or random.Random()
    return "".join(rng.choice(CHARSET) for _ in range(length))


def generate_captcha_image(text: str, rng: random.Random | None = None) -> Image.Image:
    """Draw one coloured block per character of ``text`` on a light background."""
    rng = rng or random.Random()
    img = Image.new("RGBA", (IMAGE_WIDTH, IMAGE_HEIGHT), BACKGROUND)
    top = IMAGE_HEIGHT // 2
    for index, _ in enumerate(text):
        color = (
            rng.randrange(100) + 100,
            rng.randrange(100) + 100,
            rng.randrange(100) + 100,
            255,
        )
        left = index * _GLYPH_STEP
        if left >= IMAGE_WIDTH:
            continue
        right = min(left + _GLYPH_SIZE, IMAGE_WIDTH)
        bottom = min(top + _GLYPH_SIZE, IMAGE_HEIGHT)
        img.paste(color, (left, top, right, bottom))
    return img


def generate_captcha(
    repo: Repository, rng: random.Random | None = None
) -> tuple[str, bytes]:
    """Create a captcha, record the attempt and return its id and PNG image."""
    rng = rng or random.Random()
    captcha_id = str(time.time_ns())
    text = generate_random_string(CAPTCHA_LENGTH, rng)
    repo.create_captcha_attempt("127.0.0.1", True)
    img = generate_captcha_image(text, rng)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return captcha_id, buffer.getvalue()