"""JSON handling for request and response bodies.

The transport's own JSON support is bypassed: it negotiates on a case
sensitive Content-Type, and some backends send JSON with the wrong content
type. Request bodies are serialized here and response bodies are parsed
whenever they look like JSON.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

from ..log import log_method

_JSON_START = re.compile(r"\s*[{\[]")


def encode_request(options: Any, backend: str = "BACKEND") -> bool:
    """Serialize the request body to JSON if JSON is enabled.

    ``options.json`` defaults to enabled. ``True`` serializes a structured
    ``body``; any other value is itself serialized and replaces ``body``.
    Falsy scalars such as ``0`` or ``""`` disable JSON like ``False``; empty
    mappings and lists still count as values. The flag is reset to ``False``
    afterwards. Returns whether JSON was on.
    """
    value = True if options.json is None else options.json
    enabled = isinstance(value, (Mapping, list, tuple)) or bool(value)

    if enabled:
        if value is True:
            if isinstance(options.body, (Mapping, list, tuple)):
                options.body = json.dumps(options.body)
        else:
            if options.body is not None:
                warning = log_method(options.log, "warning")
                if warning is not None:
                    warning(
                        f"{backend} request: json option replaces the request body",
                        backend=backend,
                    )
            options.body = json.dumps(value)
        if options.headers is None:
            options.headers = {}
        options.headers["Accept"] = "application/json"
        if options.body:
            options.headers["Content-Type"] = "application/json"

    options.json = False
    return enabled


def decode_response(response: Any, log: Any, backend: str = "BACKEND") -> None:
    """Parse a JSON looking string body of ``response`` in place.

    A body that fails to parse is logged and left untouched.
    """
    body = getattr(response, "body", None) if response is not None else None
    if not body or not isinstance(body, str) or not _JSON_START.match(body):
        return
    try:
        response.body = json.loads(body)
    except ValueError as exc:
        error = log_method(log, "error")
        if error is not None:
            error(
                "Backend request: could not parse response as JSON",
                body=body,
                error=str(exc),
                backend=backend,
            )
