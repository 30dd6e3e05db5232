"""
Idempotent task submission with bounded retries.

Every attempt is classified into an AttemptOutcome:
- SUCCEEDED: the transport created the task
- DEDUPLICATED: a task with the same name already exists, which is the
  expected result of deduplication and counts as success
- RETRYABLE: a transient failure, retried with exponential backoff and jitter
- TERMINAL: malformed input that no retry can fix

Only the submission step retries; everything before it is deterministic.
"""

import asyncio
import logging
import random as _random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from typed_tasks.config import Settings
from typed_tasks.constants import (
    ALREADY_EXISTS_MARKER,
    DEFAULT_SUBMIT_BACKOFF_FACTOR,
    DEFAULT_SUBMIT_INITIAL_DELAY_SECONDS,
    DEFAULT_SUBMIT_MAX_ATTEMPTS,
    DEFAULT_SUBMIT_MAX_DELAY_SECONDS,
    SPAN_SUBMIT_TASK,
    AttemptOutcome,
)
from typed_tasks.exceptions import (
    InvalidWindowError,
    PayloadSerializationError,
    PayloadValidationError,
    SubmissionError,
    TaskAlreadyExistsError,
)
from typed_tasks.observability.tracing import get_tracer

logger = logging.getLogger(__name__)

CreateFn = Callable[[], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[Any]]

_NON_RETRYABLE_ERRORS = (
    PayloadSerializationError,
    PayloadValidationError,
    InvalidWindowError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff policy for task submission.

    The delay before retry n (1-based) is
    initial_delay_seconds * factor ** (n - 1), multiplied by a random factor
    in [1, 2) when randomize is set, and capped at max_delay_seconds.
    """

    max_attempts: int = DEFAULT_SUBMIT_MAX_ATTEMPTS
    initial_delay_seconds: float = DEFAULT_SUBMIT_INITIAL_DELAY_SECONDS
    factor: float = DEFAULT_SUBMIT_BACKOFF_FACTOR
    max_delay_seconds: float = DEFAULT_SUBMIT_MAX_DELAY_SECONDS
    randomize: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("retry delays cannot be negative")
        if self.factor < 1:
            raise ValueError("factor must be at least 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.submit_max_attempts,
            initial_delay_seconds=settings.submit_initial_delay_seconds,
            factor=settings.submit_backoff_factor,
            max_delay_seconds=settings.submit_max_delay_seconds,
            randomize=settings.submit_randomize,
        )

    def delay_for(self, retry_number: int, rand: float = 0.0) -> float:
        """
        Delay in seconds before the given retry.

        Args:
            retry_number: 1 for the first retry, 2 for the second, ...
            rand: A value in [0, 1) used for jitter.
        """
        jitter = 1.0 + rand if self.randomize else 1.0
        delay = self.initial_delay_seconds * self.factor ** (retry_number - 1) * jitter
        return min(delay, self.max_delay_seconds)


@dataclass(frozen=True)
class AttemptResult:
    """
    Tagged result of a single creation attempt.

    Every failed outcome carries the error that caused it.
    """

    outcome: AttemptOutcome
    error: BaseException | None = None


@dataclass(frozen=True)
class SubmissionOutcome:
    """Successful end state of a submission."""

    attempts: int
    deduplicated: bool = False


def is_already_exists(error: BaseException) -> bool:
    """Check whether an error signals that the task name is already taken."""
    return isinstance(error, TaskAlreadyExistsError) or ALREADY_EXISTS_MARKER in str(error)


def classify_error(error: BaseException) -> AttemptOutcome:
    """Classify a failed attempt."""
    if is_already_exists(error):
        return AttemptOutcome.DEDUPLICATED
    if isinstance(error, _NON_RETRYABLE_ERRORS):
        return AttemptOutcome.TERMINAL
    return AttemptOutcome.RETRYABLE


async def attempt_once(create_fn: CreateFn) -> AttemptResult:
    """Run one creation attempt and tag its result."""
    with get_tracer().start_as_current_span(SPAN_SUBMIT_TASK) as span:
        try:
            await create_fn()
        except Exception as e:
            outcome = classify_error(e)
            span.set_attribute("outcome", outcome.value)
            return AttemptResult(outcome=outcome, error=e)
        span.set_attribute("outcome", AttemptOutcome.SUCCEEDED.value)
    return AttemptResult(outcome=AttemptOutcome.SUCCEEDED)


async def submit_with_retry(
    create_fn: CreateFn,
    queue_name: str,
    task_name: str | None = None,
    policy: RetryPolicy | None = None,
    *,
    sleep: SleepFn = asyncio.sleep,
    random: Callable[[], float] = _random.random,
) -> SubmissionOutcome:
    """
    Submit a task, retrying transient failures.

    Args:
        create_fn: Performs a single idempotent creation call.
        queue_name: Queue name, for logging.
        task_name: Final task name, for logging.
        policy: Retry policy. Defaults to RetryPolicy().
        sleep: Awaitable sleep used between attempts.
        random: Source of jitter in [0, 1).

    Returns:
        SubmissionOutcome with the number of attempts used.

    Raises:
        SubmissionError: If the task could not be created.
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        attempt += 1
        result = await attempt_once(create_fn)

        if result.outcome is AttemptOutcome.SUCCEEDED or result.error is None:
            return SubmissionOutcome(attempts=attempt)

        if result.outcome is AttemptOutcome.DEDUPLICATED:
            logger.info(
                f"Skipping task {task_name}: already exists",
                extra={"queue_name": queue_name, "task_name": task_name, "attempt": attempt},
            )
            return SubmissionOutcome(attempts=attempt, deduplicated=True)

        retries_left = policy.max_attempts - attempt
        if result.outcome is AttemptOutcome.RETRYABLE and retries_left > 0:
            delay = policy.delay_for(attempt, random())
            logger.warning(
                f"Task scheduling attempt {attempt} failed for {queue_name}. "
                f"{retries_left} retries left.",
                extra={
                    "queue_name": queue_name,
                    "task_name": task_name,
                    "attempt": attempt,
                    "retries_left": retries_left,
                    "retry_in_seconds": round(delay, 3),
                    "error": str(result.error),
                },
            )
            await sleep(delay)
            continue

        logger.error(
            f"Failed to schedule task {queue_name} after {attempt} attempts: {result.error}",
            extra={"queue_name": queue_name, "task_name": task_name, "attempt": attempt},
        )
        raise SubmissionError(queue_name, task_name, attempt, result.error) from result.error
