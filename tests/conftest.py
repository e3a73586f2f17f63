from __future__ import annotations

from typing import Any

import pytest

from xrequest.networking.transport import TransportResponse


class RecordingLog:
    """Logger exposing only the given levels and recording every call."""

    def __init__(self, *levels: str) -> None:
        self.calls: dict[str, list[tuple[str, dict[str, Any]]]] = {}
        for level in levels:
            self.calls[level] = []
            setattr(self, level, self._recorder(level))

    def _recorder(self, level: str):
        def record(event: str, **fields: Any) -> None:
            self.calls[level].append((event, fields))

        return record

    def count(self, level: str) -> int:
        return len(self.calls.get(level, []))

    def events(self, level: str) -> list[str]:
        return [event for event, _ in self.calls.get(level, [])]


class FakeTransport:
    """Transport replaying queued outcomes; the last one repeats."""

    def __init__(self, *outcomes: tuple[Any, Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[Any] = []

    def __call__(self, options: Any) -> tuple[Any, Any]:
        self.calls.append(options)
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


def respond(
    status: int = 200,
    body: Any = "",
    headers: dict[str, str] | None = None,
) -> tuple[None, TransportResponse]:
    return None, TransportResponse(
        status_code=status,
        headers=headers if headers is not None else {"Content-Type": "application/json"},
        body=body,
    )


@pytest.fixture
def make_log():
    return RecordingLog


@pytest.fixture
def make_transport():
    return FakeTransport
