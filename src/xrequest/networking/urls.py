"""Compose request URLs from a backend base URL and a per-call fragment."""

from __future__ import annotations

from typing import Any, Mapping, Sequence, Union
from urllib.parse import ParseResult, SplitResult

from urllib3.util import Url, parse_url

from ..log import log_method

Auth = Union[str, Sequence[str]]


def compose_url(base: str | None, fragment: str) -> str:
    """Join ``fragment`` onto ``base`` unless it is already absolute.

    ``compose_url("http://x/", "/y")`` gives ``"http://x/y"`` and
    ``compose_url("http://x?a=1", "b=2")`` gives ``"http://x?a=1&b=2"``.
    """
    if fragment.startswith("http"):
        return fragment
    base = base or ""
    if not fragment:
        return base
    first = fragment[0]
    last = base[-1:]

    if "?" in base:
        # Only further query parameters can follow.
        return base + (fragment if first == "&" else "&" + fragment)
    if first == "?" or last == "?":
        return base + (fragment[1:] if first == last == "?" else fragment)
    if first == "/" or last == "/":
        return base + (fragment[1:] if first == last == "/" else fragment)
    return base + "/" + fragment


def format_auth(auth: Auth | None) -> str | None:
    """Render ``auth`` as the ``user:password`` userinfo of a URL."""
    if auth is None or isinstance(auth, str):
        return auth
    return ":".join(auth)


def stringify_url(value: Any) -> str:
    """Render a structured URL as a string."""
    if isinstance(value, Url):
        return value.url
    if isinstance(value, (ParseResult, SplitResult)):
        return value.geturl()
    if isinstance(value, Mapping):
        return Url(**value).url
    raise TypeError(f"cannot convert {type(value).__name__} to a URL")


def set_url(options: Any, base: str | None, auth: Auth | None, backend: str) -> None:
    """Resolve ``options.url``/``options.uri`` into a parsed absolute ``uri``."""
    if options.url:
        options.uri = options.url
    options.url = None

    value = options.uri
    if value is not None and not isinstance(value, str):
        try:
            value = stringify_url(value)
        except (TypeError, ValueError) as exc:
            error = log_method(options.log, "error")
            if error is not None:
                error(
                    f"{backend} request: could not convert url object to url",
                    url=repr(value),
                    error=str(exc),
                )

    if value is None or isinstance(value, str):
        composed = compose_url(base, value or "")
        try:
            options.uri = parse_url(composed)
        except ValueError as exc:
            # The transport reports the unusable URL as a request error.
            options.uri = composed
            error = log_method(options.log, "error")
            if error is not None:
                error(f"{backend} request: could not parse url", url=composed, error=str(exc))
    else:
        options.uri = value

    userinfo = format_auth(auth)
    if isinstance(options.uri, Url) and not options.uri.auth and userinfo:
        options.uri = options.uri._replace(auth=userinfo)
