"""Request options and their precedence rules.

Options for one call are assembled from three layers, later layers winning:
the backend configuration defaults, the caller defaults given to the client
factory and the options passed to the call itself. Headers are merged key by
key, case-insensitively.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, MutableMapping, Optional

from requests.structures import CaseInsensitiveDict
from urllib3.util import Url

from .retry import RetryPolicy


@dataclass
class RequestOptions:
    """Options of a single request. ``None`` means the field is unset."""

    uri: Any = None
    url: Any = None
    method: Optional[str] = None
    headers: Optional[MutableMapping[str, Any]] = None
    body: Any = None
    json: Any = None
    params: Optional[Mapping[str, Any]] = None
    timeout: Optional[float] = None
    max_sockets: Optional[int] = None
    follow_redirect: Optional[bool] = None
    follow_all_redirects: Optional[bool] = None
    jar: Any = None
    binary: Optional[bool] = None
    retry: Optional[RetryPolicy] = None
    log: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RequestOptions:
        """Build options from a plain mapping of field names."""
        unexpected = set(data) - _FIELD_NAMES
        if unexpected:
            raise TypeError(f"Unexpected request option(s): {sorted(unexpected)}")
        values = dict(data)
        if isinstance(values.get("retry"), Mapping):
            values["retry"] = RetryPolicy.from_mapping(values["retry"])
        if values.get("headers") is not None:
            values["headers"] = dict(values["headers"])
        return cls(**values)

    def snapshot(self) -> dict[str, Any]:
        """Return the set fields as a plain dict for log records."""
        snapshot: dict[str, Any] = {}
        for name in _FIELD_NAMES:
            if name == "log":
                continue
            value = getattr(self, name)
            if value is None:
                continue
            if name == "headers":
                value = dict(value)
            elif isinstance(value, Url):
                value = value.url
            snapshot[name] = value
        return snapshot


_FIELD_NAMES = frozenset(f.name for f in fields(RequestOptions))


def normalize_options(value: Any) -> RequestOptions:
    """Turn caller input into a private ``RequestOptions`` copy.

    A bare URL string (or parsed URL) becomes ``RequestOptions(uri=value)``.
    The caller's object is never mutated by the pipeline.
    """
    if value is None:
        return RequestOptions()
    if isinstance(value, (str, Url)):
        return RequestOptions(uri=value)
    if isinstance(value, RequestOptions):
        headers = dict(value.headers) if value.headers is not None else None
        return replace(value, headers=headers)
    if isinstance(value, Mapping):
        return RequestOptions.from_mapping(value)
    raise TypeError(
        f"request options must be a URL, mapping or RequestOptions, "
        f"not {type(value).__name__}"
    )


def reconcile_headers(
    options: RequestOptions, configured: Mapping[str, Any] | None
) -> None:
    """Drop call headers that collide case-insensitively with ``configured``."""
    if not options.headers or not configured:
        return
    names = {name.lower() for name in configured}
    for name in list(options.headers):
        if name.lower() in names:
            del options.headers[name]


def merge_options(*layers: RequestOptions | None) -> RequestOptions:
    """Merge option layers; the last layer with a field set wins."""
    merged = RequestOptions()
    headers: CaseInsensitiveDict[Any] = CaseInsensitiveDict()
    for layer in layers:
        if layer is None:
            continue
        for name in _FIELD_NAMES:
            value = getattr(layer, name)
            if value is None:
                continue
            if name == "headers":
                headers.update(value)
            elif name == "retry":
                merged.retry = RetryPolicy.merge(merged.retry, value)
            else:
                setattr(merged, name, value)
    merged.headers = headers
    return merged
