"""
Scheduling and deduplication engine.
Pure resolvers for task names and schedule times, plus the submission protocol.
"""

from typed_tasks.scheduling.identity import canonicalize, derive_task_name
from typed_tasks.scheduling.policy import resolve_task_name
from typed_tasks.scheduling.schedule_time import (
    resolve_delay_seconds,
    resolve_schedule,
    resolve_schedule_time_seconds,
)
from typed_tasks.scheduling.submission import (
    AttemptResult,
    RetryPolicy,
    SubmissionOutcome,
    classify_error,
    is_already_exists,
    submit_with_retry,
)
from typed_tasks.scheduling.window import window_boundary, with_window_suffix

__all__ = [
    "canonicalize",
    "derive_task_name",
    "window_boundary",
    "with_window_suffix",
    "resolve_task_name",
    "resolve_delay_seconds",
    "resolve_schedule_time_seconds",
    "resolve_schedule",
    "RetryPolicy",
    "AttemptResult",
    "SubmissionOutcome",
    "classify_error",
    "is_already_exists",
    "submit_with_retry",
]
