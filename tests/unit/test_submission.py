"""
Unit tests for the idempotent submission protocol.
"""

import logging

import pytest

from typed_tasks.constants import AttemptOutcome
from typed_tasks.exceptions import (
    PayloadSerializationError,
    SubmissionError,
    TaskAlreadyExistsError,
    TransportError,
)
from typed_tasks.scheduling.submission import (
    RetryPolicy,
    attempt_once,
    classify_error,
    is_already_exists,
    submit_with_retry,
)


class FlakyCreate:
    """create_fn that raises the queued errors in order, then succeeds."""

    def __init__(self, *errors: Exception, always: Exception | None = None):
        self._errors = list(errors)
        self._always = always
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self._always is not None:
            raise self._always
        if self._errors:
            raise self._errors.pop(0)
        return "created"


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        policy = RetryPolicy()

        assert policy.max_attempts == 6
        assert policy.initial_delay_seconds == 1.0
        assert policy.factor == 2.0
        assert policy.max_delay_seconds == 10.0
        assert policy.randomize is True

    def test_exponential_without_jitter(self):
        policy = RetryPolicy(randomize=False)

        delays = [policy.delay_for(n) for n in range(1, 7)]

        assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_jitter_within_bounds(self):
        policy = RetryPolicy()

        assert policy.delay_for(1, 0.0) == 1.0
        assert policy.delay_for(1, 0.5) == 1.5
        assert policy.delay_for(2, 0.99) == pytest.approx(3.98)
        assert policy.delay_for(5, 0.5) == 10.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"initial_delay_seconds": -1}, {"factor": 0.5}],
    )
    def test_invalid_policy(self, kwargs: dict):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestClassification:
    """Tests for attempt classification."""

    def test_already_exists_error(self):
        assert is_already_exists(TaskAlreadyExistsError("dup"))
        assert classify_error(TaskAlreadyExistsError("dup")) is AttemptOutcome.DEDUPLICATED

    def test_already_exists_marker_in_message(self):
        error = RuntimeError("6 ALREADY_EXISTS: Requested entity already exists")

        assert is_already_exists(error)
        assert classify_error(error) is AttemptOutcome.DEDUPLICATED

    def test_transient_error(self):
        assert classify_error(TransportError("UNAVAILABLE", status_code=503)) is AttemptOutcome.RETRYABLE
        assert classify_error(ConnectionError("reset")) is AttemptOutcome.RETRYABLE

    def test_malformed_input_is_terminal(self):
        assert classify_error(PayloadSerializationError("bad")) is AttemptOutcome.TERMINAL

    async def test_attempt_once_tags_results(self):
        assert (await attempt_once(FlakyCreate())).outcome is AttemptOutcome.SUCCEEDED

        result = await attempt_once(FlakyCreate(TransportError("boom")))
        assert result.outcome is AttemptOutcome.RETRYABLE
        assert isinstance(result.error, TransportError)


class TestSubmitWithRetry:
    """Tests for submit_with_retry."""

    @pytest.fixture
    def policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=6, randomize=False)

    async def test_first_attempt_succeeds(self, policy, recording_sleep):
        create = FlakyCreate()

        outcome = await submit_with_retry(create, "emailQueue", "abc", policy, sleep=recording_sleep)

        assert outcome.attempts == 1
        assert outcome.deduplicated is False
        assert recording_sleep.delays == []

    async def test_conflict_is_success_after_one_attempt(self, policy, recording_sleep, caplog):
        create = FlakyCreate(always=TaskAlreadyExistsError("ALREADY_EXISTS: task exists"))

        with caplog.at_level(logging.INFO):
            outcome = await submit_with_retry(create, "emailQueue", "abc", policy, sleep=recording_sleep)

        assert outcome.deduplicated is True
        assert outcome.attempts == 1
        assert create.calls == 1
        assert recording_sleep.delays == []

        records = [r for r in caplog.records if "Skipping task abc" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    async def test_conflict_after_transient_failure(self, policy, recording_sleep):
        create = FlakyCreate(TransportError("UNAVAILABLE"), TaskAlreadyExistsError("dup"))

        outcome = await submit_with_retry(create, "emailQueue", "abc", policy, sleep=recording_sleep)

        assert outcome.deduplicated is True
        assert outcome.attempts == 2
        assert recording_sleep.delays == [1.0]

    async def test_recovers_from_transient_failures(self, policy, recording_sleep, caplog):
        create = FlakyCreate(TransportError("UNAVAILABLE"), TransportError("UNAVAILABLE"))

        with caplog.at_level(logging.WARNING):
            outcome = await submit_with_retry(create, "emailQueue", None, policy, sleep=recording_sleep)

        assert outcome.attempts == 3
        assert outcome.deduplicated is False
        assert recording_sleep.delays == [1.0, 2.0]

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.attempt for r in warnings] == [1, 2]
        assert [r.retries_left for r in warnings] == [5, 4]
        assert "attempt 1 failed for emailQueue. 5 retries left." in warnings[0].getMessage()

    async def test_exhausts_exactly_max_attempts(self, policy, recording_sleep, caplog):
        cause = TransportError("UNAVAILABLE", status_code=503)
        create = FlakyCreate(always=cause)

        with caplog.at_level(logging.WARNING):
            with pytest.raises(SubmissionError) as exc_info:
                await submit_with_retry(create, "emailQueue", "abc", policy, sleep=recording_sleep)

        assert create.calls == 6
        assert exc_info.value.attempts == 6
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.queue_name == "emailQueue"
        assert recording_sleep.delays == [1.0, 2.0, 4.0, 8.0, 10.0]

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "emailQueue" in errors[0].getMessage()

    async def test_delays_non_decreasing_with_jitter(self, recording_sleep):
        policy = RetryPolicy(max_attempts=6)
        create = FlakyCreate(always=TransportError("UNAVAILABLE"))
        jitter = iter([0.9, 0.1, 0.5, 0.0, 0.7])

        with pytest.raises(SubmissionError):
            await submit_with_retry(
                create,
                "emailQueue",
                None,
                policy,
                sleep=recording_sleep,
                random=lambda: next(jitter),
            )

        assert recording_sleep.delays == pytest.approx([1.9, 2.2, 6.0, 8.0, 10.0])
        assert all(d <= policy.max_delay_seconds for d in recording_sleep.delays)

    async def test_terminal_error_not_retried(self, policy, recording_sleep):
        create = FlakyCreate(always=PayloadSerializationError("bad payload"))

        with pytest.raises(SubmissionError) as exc_info:
            await submit_with_retry(create, "emailQueue", None, policy, sleep=recording_sleep)

        assert create.calls == 1
        assert exc_info.value.attempts == 1
        assert recording_sleep.delays == []

    async def test_single_attempt_policy(self, recording_sleep):
        create = FlakyCreate(always=TransportError("UNAVAILABLE"))

        with pytest.raises(SubmissionError):
            await submit_with_retry(
                create,
                "emailQueue",
                None,
                RetryPolicy(max_attempts=1),
                sleep=recording_sleep,
            )

        assert create.calls == 1
        assert recording_sleep.delays == []

    async def test_failure_chains_the_underlying_error(self, policy, recording_sleep):
        error = PayloadSerializationError("bad payload")

        with pytest.raises(SubmissionError) as exc_info:
            await submit_with_retry(FlakyCreate(always=error), "emailQueue", None, policy, sleep=recording_sleep)

        assert exc_info.value.cause is error
        assert exc_info.value.__cause__ is error
        assert "bad payload" in str(exc_info.value)
