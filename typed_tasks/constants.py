"""
Application constants.
Centralized location for all constant values used across the package.
"""

from enum import StrEnum

MINUTE_SECONDS = 60
HOUR_SECONDS = 60 * MINUTE_SECONDS
DAY_SECONDS = 24 * HOUR_SECONDS


class AttemptOutcome(StrEnum):
    """
    Classification of a single task creation attempt.

    State transitions of a submission:
    - PENDING -> ATTEMPTING
    - ATTEMPTING -> SUCCEEDED
    - ATTEMPTING -> DEDUPLICATED (treated as success)
    - ATTEMPTING -> RETRYABLE -> ATTEMPTING
    - ATTEMPTING -> TERMINAL
    """

    SUCCEEDED = "succeeded"
    DEDUPLICATED = "deduplicated"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


class ScheduleOutcome(StrEnum):
    """Caller-visible result of a scheduling call, used as a metric label."""

    CREATED = "created"
    DEDUPLICATED = "deduplicated"
    FAILED = "failed"


class HandleStatus(StrEnum):
    """Result of dispatching a task to its handler."""

    SUCCEEDED = "succeeded"
    INVALID = "invalid"
    FAILED = "failed"


# Task envelope: the handler side only accepts the payload under this key
PAYLOAD_ENVELOPE_KEY = "data"

# Marker the remote service puts in conflict errors for duplicate task names
ALREADY_EXISTS_MARKER = "ALREADY_EXISTS"

# Submission retry defaults (one attempt plus five retries)
DEFAULT_SUBMIT_MAX_ATTEMPTS = 6
DEFAULT_SUBMIT_INITIAL_DELAY_SECONDS = 1.0
DEFAULT_SUBMIT_BACKOFF_FACTOR = 2.0
DEFAULT_SUBMIT_MAX_DELAY_SECONDS = 10.0

# Handler defaults
DEFAULT_HANDLER_MEMORY = "512MiB"
DEFAULT_HANDLER_TIMEOUT_SECONDS = 30 * MINUTE_SECONDS  # maximum allowed
DEFAULT_MAX_DISPATCHES_PER_SECOND = 500
DEFAULT_MAX_CONCURRENT_DISPATCHES = 1000
DEFAULT_RETRY_MAX_ATTEMPTS = 10
DEFAULT_RETRY_MIN_BACKOFF_SECONDS = 10
DEFAULT_RETRY_MAX_BACKOFF_SECONDS = HOUR_SECONDS
DEFAULT_RETRY_MAX_RETRY_SECONDS = 0  # unlimited

# Queue names end up in function names and URLs
QUEUE_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9]*$"

# Metrics names
METRIC_TASKS_SCHEDULED = "typed_tasks_scheduled_total"
METRIC_SUBMIT_ATTEMPTS = "typed_tasks_submit_attempts_total"
METRIC_SUBMIT_DURATION = "typed_tasks_submit_duration_seconds"
METRIC_TASKS_HANDLED = "typed_tasks_handled_total"

# Trace span names
SPAN_SCHEDULE_TASK = "schedule_task"
SPAN_SUBMIT_TASK = "submit_task"
SPAN_HANDLE_TASK = "handle_task"
