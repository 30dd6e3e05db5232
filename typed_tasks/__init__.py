"""
typed-tasks

Type-safe task scheduling on top of Cloud Tasks with payload-derived task
names, windowed deduplication and idempotent, retried submission.
"""

__version__ = "1.0.0"

from typed_tasks.exceptions import (  # noqa: E402
    ConfigurationError,
    PayloadSerializationError,
    PayloadValidationError,
    SubmissionError,
    TaskAlreadyExistsError,
    TransportError,
    TypedTasksError,
    UnknownQueueError,
)
from typed_tasks.factory import TypedTasksClient, create_typed_tasks  # noqa: E402
from typed_tasks.types.handler import RateLimits, RetryConfig, TaskHandlerOptions  # noqa: E402
from typed_tasks.types.task import TaskDefinition, TaskSchedulerOptions  # noqa: E402

__all__ = [
    "__version__",
    "create_typed_tasks",
    "TypedTasksClient",
    "TaskDefinition",
    "TaskSchedulerOptions",
    "TaskHandlerOptions",
    "RateLimits",
    "RetryConfig",
    "TypedTasksError",
    "ConfigurationError",
    "PayloadSerializationError",
    "PayloadValidationError",
    "SubmissionError",
    "TransportError",
    "TaskAlreadyExistsError",
    "UnknownQueueError",
]
