"""Correlation ids threaded through a configurable request header."""

from __future__ import annotations

import string
import time
from typing import Any

ID_WIDTH = 15

_DIGITS = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer with the digits ``0-9a-z``."""
    if value < 0:
        raise ValueError("value must be >= 0")
    if value == 0:
        return "0"
    chars: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        chars.append(_DIGITS[remainder])
    return "".join(reversed(chars))


def generate_id(now_ms: int | None = None) -> str:
    """Return the current epoch milliseconds as a zero padded base-36 id."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return to_base36(now_ms).rjust(ID_WIDTH, "0")


def set_id(options: Any, header: str | None) -> str:
    """Generate an id and append it to ``header`` of ``options.headers``.

    An existing header value is kept as prefix so that ids accumulate along
    a chain of backend calls. The raw id is returned for logging.
    """
    request_id = generate_id()
    if header:
        existing = options.headers.get(header)
        options.headers[header] = (str(existing) if existing else "") + request_id
    return request_id
