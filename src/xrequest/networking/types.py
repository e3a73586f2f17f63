"""Result type returned by backend client calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome with request metadata."""

    value: T
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome with request metadata."""

    error: E
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None


Result = Union[Ok[T], Err[E]]
