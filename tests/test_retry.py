import math
from unittest.mock import Mock, patch

import pytest

from xrequest.networking.retry import (
    DEFAULT_RETRIES,
    RetryPolicy,
    run_with_retry,
    wait_backoff,
)


def _state(attempt_number):
    state = Mock()
    state.attempt_number = attempt_number
    return state


def test_policy_defaults_are_resolved():
    policy = RetryPolicy().resolved()

    assert policy.retries == DEFAULT_RETRIES
    assert policy.factor == 2.0
    assert policy.min_timeout_seconds == 1.0
    assert policy.max_timeout_seconds == math.inf
    assert policy.randomize is False


def test_merge_without_policies_is_none():
    assert RetryPolicy.merge(None, None) is None


def test_merge_prefers_later_fields():
    test = Mock(return_value=False)

    merged = RetryPolicy.merge(
        RetryPolicy(retries=5, factor=3, test=test),
        None,
        RetryPolicy(retries=1, randomize=True),
    )

    assert merged == RetryPolicy(retries=1, factor=3, randomize=True, test=test)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"retries": -1},
        {"factor": 0},
        {"min_timeout_seconds": -0.1},
        {"max_timeout_seconds": -1},
    ],
)
def test_policy_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_policy_rejects_non_callable_test():
    with pytest.raises(TypeError):
        RetryPolicy(test="yes")  # type: ignore[arg-type]


def test_policy_from_mapping_rejects_unknown_keys():
    with pytest.raises(TypeError):
        RetryPolicy.from_mapping({"retries": 1, "jitter": True})


def test_should_retry_defaults_to_error_presence():
    policy = RetryPolicy()

    assert policy.should_retry(RuntimeError("x"), None, "") is True
    assert policy.should_retry(None, Mock(status_code=500), "") is False


def test_should_retry_uses_test_predicate():
    test = Mock(return_value=0)
    policy = RetryPolicy(test=test)
    response = Mock(status_code=429)

    assert policy.should_retry(RuntimeError("x"), response, "body") is False
    test.assert_called_once()
    assert test.call_args.args[1:] == (response, "body")


def test_wait_backoff_grows_exponentially_up_to_max():
    wait = wait_backoff(factor=2, min_timeout=0.3, max_timeout=1.0)

    delays = [wait(_state(n)) for n in (1, 2, 3, 4)]

    assert delays == pytest.approx([0.3, 0.6, 1.0, 1.0])


def test_wait_backoff_randomizes_between_one_and_two():
    wait = wait_backoff(factor=2, min_timeout=1.0, max_timeout=100.0, randomize=True)

    with patch("xrequest.networking.retry.random.uniform", return_value=1.5) as uniform:
        delay = wait(_state(2))

    uniform.assert_called_once_with(1, 2)
    assert delay == pytest.approx(3.0)


def test_wait_backoff_caps_overflowing_delays():
    wait = wait_backoff(factor=10.0, min_timeout=1.0, max_timeout=60.0)

    assert wait(_state(5000)) == 60.0


def test_without_policy_attempt_runs_once():
    attempt = Mock(return_value=(RuntimeError("x"), None, ""))

    outcome = run_with_retry(attempt, None, Mock())

    assert attempt.call_count == 1
    assert outcome == attempt.return_value


def test_retries_until_success(make_log):
    log = make_log("debug")
    outcomes = [(RuntimeError("1"), None, ""), (RuntimeError("2"), None, ""), (None, "ok", "body")]
    attempt = Mock(side_effect=outcomes)

    outcome = run_with_retry(attempt, RetryPolicy(retries=2, min_timeout_seconds=0), log)

    assert outcome == (None, "ok", "body")
    assert attempt.call_count == 3
    assert [fields["attempt"] for _, fields in log.calls["debug"]] == [2, 3]


def test_exhaustion_returns_last_outcome(make_log):
    outcomes = [(RuntimeError("1"), None, ""), (RuntimeError("2"), None, "")]
    attempt = Mock(side_effect=outcomes)

    outcome = run_with_retry(attempt, RetryPolicy(retries=1, min_timeout_seconds=0), make_log())

    assert outcome is outcomes[1]
    assert attempt.call_count == 2


def test_zero_retries_means_one_attempt(make_log):
    attempt = Mock(return_value=(RuntimeError("x"), None, ""))

    run_with_retry(attempt, RetryPolicy(retries=0), make_log())

    assert attempt.call_count == 1


def test_backoff_sleeps_between_attempts(make_log):
    attempt = Mock(side_effect=[(RuntimeError("1"), None, ""), (None, "ok", "")])
    policy = RetryPolicy(retries=1, min_timeout_seconds=0.25)

    with patch("tenacity.nap.time.sleep") as sleep:
        run_with_retry(attempt, policy, make_log())

    sleep.assert_called_once_with(0.25)
