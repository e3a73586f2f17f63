"""Status code classification for backend responses.

Each predicate returns the status code itself when it matches and ``False``
otherwise, so results can be used both as booleans and as values::

    if response.success(): ...
    if response.error.server(): ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Union

StatusMatch = Union[int, Literal[False]]


def _in_range(status_code: Any, low: int, high: int | None = None) -> StatusMatch:
    if not isinstance(status_code, int) or isinstance(status_code, bool):
        return False
    if status_code < low:
        return False
    if high is not None and status_code > high:
        return False
    return status_code


class ErrorPredicate:
    """Callable ``error()`` predicate with ``client``/``server`` refinements."""

    __slots__ = ("_status_code",)

    def __init__(self, status_code: Any) -> None:
        self._status_code = status_code

    def __call__(self) -> StatusMatch:
        return _in_range(self._status_code, 400)

    def client(self) -> StatusMatch:
        return _in_range(self._status_code, 400, 499)

    def server(self) -> StatusMatch:
        return _in_range(self._status_code, 500, 599)

    def __repr__(self) -> str:
        return f"ErrorPredicate(status_code={self._status_code!r})"


@dataclass(frozen=True)
class StatusClassification:
    """Predicates bound to a single status code."""

    status_code: Any
    error: ErrorPredicate = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "error", ErrorPredicate(self.status_code))

    def success(self) -> StatusMatch:
        return _in_range(self.status_code, 200, 299)

    def redirect(self) -> StatusMatch:
        return _in_range(self.status_code, 300, 399)

    # Deprecated single code helpers.
    def too_many(self) -> StatusMatch:
        return _in_range(self.status_code, 429, 429)

    def not_found(self) -> StatusMatch:
        return _in_range(self.status_code, 404, 404)

    def gone(self) -> StatusMatch:
        return _in_range(self.status_code, 410, 410)


def classify(status_code: Any) -> StatusClassification:
    """Return the status predicates for ``status_code``."""
    return StatusClassification(status_code)


@dataclass
class BackendResponse:
    """Transport response decorated with status predicates.

    ``body`` is replaced in place by the parsed JSON structure when the
    request was a JSON request and the body parsed cleanly.
    """

    status_code: int
    headers: Mapping[str, Any]
    body: Any = None
    raw: Any = None
    status: StatusClassification = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.status = classify(self.status_code)

    @property
    def error(self) -> ErrorPredicate:
        return self.status.error

    def success(self) -> StatusMatch:
        return self.status.success()

    def redirect(self) -> StatusMatch:
        return self.status.redirect()

    def too_many(self) -> StatusMatch:
        return self.status.too_many()

    def not_found(self) -> StatusMatch:
        return self.status.not_found()

    def gone(self) -> StatusMatch:
        return self.status.gone()
