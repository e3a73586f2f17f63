"""Retry policies and the retry orchestration around request attempts.

Backoff between attempts follows::

    min(random(1, 2 if randomize else 1) * min_timeout * factor**i, max_timeout)

with ``i`` the zero based retry index.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional, Tuple

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt
from tenacity.wait import wait_base

from ..log import log_method

DEFAULT_RETRIES = 10
DEFAULT_FACTOR = 2.0
DEFAULT_MIN_TIMEOUT_SECONDS = 1.0
DEFAULT_MAX_TIMEOUT_SECONDS = math.inf

RetryTest = Callable[[Optional[BaseException], Any, Any], bool]
# (error, response, body) of one attempt.
Outcome = Tuple[Optional[BaseException], Any, Any]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings. Fields left ``None`` fall back to lower layers."""

    retries: Optional[int] = None
    factor: Optional[float] = None
    min_timeout_seconds: Optional[float] = None
    max_timeout_seconds: Optional[float] = None
    randomize: Optional[bool] = None
    test: Optional[RetryTest] = None

    def __post_init__(self) -> None:
        if self.retries is not None and self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.factor is not None and self.factor <= 0:
            raise ValueError("factor must be > 0")
        if self.min_timeout_seconds is not None and self.min_timeout_seconds < 0:
            raise ValueError("min_timeout_seconds must be >= 0")
        if self.max_timeout_seconds is not None and self.max_timeout_seconds < 0:
            raise ValueError("max_timeout_seconds must be >= 0")
        if self.test is not None and not callable(self.test):
            raise TypeError("test must be callable")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RetryPolicy:
        unexpected = set(data) - _POLICY_FIELDS
        if unexpected:
            raise TypeError(f"Unexpected retry option(s): {sorted(unexpected)}")
        return cls(**dict(data))

    @staticmethod
    def merge(*policies: Optional[RetryPolicy]) -> Optional[RetryPolicy]:
        """Merge policies field by field, later policies winning.

        Returns ``None`` when no policy is given at all.
        """
        present = [policy for policy in policies if policy is not None]
        if not present:
            return None
        values: dict[str, Any] = {}
        for policy in present:
            for name in _POLICY_FIELDS:
                value = getattr(policy, name)
                if value is not None:
                    values[name] = value
        return RetryPolicy(**values)

    def resolved(self) -> RetryPolicy:
        """Return a copy with every unset field replaced by its default."""
        return RetryPolicy(
            retries=DEFAULT_RETRIES if self.retries is None else self.retries,
            factor=DEFAULT_FACTOR if self.factor is None else self.factor,
            min_timeout_seconds=(
                DEFAULT_MIN_TIMEOUT_SECONDS
                if self.min_timeout_seconds is None
                else self.min_timeout_seconds
            ),
            max_timeout_seconds=(
                DEFAULT_MAX_TIMEOUT_SECONDS
                if self.max_timeout_seconds is None
                else self.max_timeout_seconds
            ),
            randomize=bool(self.randomize),
            test=self.test,
        )

    def should_retry(self, error: Optional[BaseException], response: Any, body: Any) -> bool:
        """Decide whether an attempt outcome warrants another attempt."""
        if self.test is not None:
            return bool(self.test(error, response, body))
        return error is not None


_POLICY_FIELDS = frozenset(f.name for f in fields(RetryPolicy))


class wait_backoff(wait_base):
    """Exponential backoff with optional 1x-2x randomization."""

    def __init__(
        self,
        factor: float,
        min_timeout: float,
        max_timeout: float,
        randomize: bool = False,
    ) -> None:
        self.factor = factor
        self.min_timeout = min_timeout
        self.max_timeout = max_timeout
        self.randomize = randomize

    def __call__(self, retry_state: RetryCallState) -> float:
        index = max(0, retry_state.attempt_number - 1)
        spread = random.uniform(1, 2) if self.randomize else 1.0
        try:
            delay = spread * self.min_timeout * self.factor**index
        except OverflowError:
            return self.max_timeout
        return min(delay, self.max_timeout)


def run_with_retry(
    attempt: Callable[[], Outcome],
    policy: Optional[RetryPolicy],
    log: Any,
) -> Outcome:
    """Run ``attempt`` once, or repeatedly as ``policy`` dictates.

    The outcome of the last attempt is returned on exhaustion, not an
    aggregate of the failures.
    """
    if policy is None:
        return attempt()

    policy = policy.resolved()

    def _trace_attempt(retry_state: RetryCallState) -> None:
        if retry_state.attempt_number > 1:
            debug = log_method(log, "debug")
            if debug is not None:
                debug("attempt", attempt=retry_state.attempt_number)

    def _last_outcome(retry_state: RetryCallState) -> Outcome:
        assert retry_state.outcome is not None
        return retry_state.outcome.result()

    retrying = Retrying(
        stop=stop_after_attempt(policy.retries + 1),
        wait=wait_backoff(
            factor=policy.factor,
            min_timeout=policy.min_timeout_seconds,
            max_timeout=policy.max_timeout_seconds,
            randomize=policy.randomize,
        ),
        retry=retry_if_result(lambda outcome: policy.should_retry(*outcome)),
        before=_trace_attempt,
        retry_error_callback=_last_outcome,
    )
    return retrying(attempt)
