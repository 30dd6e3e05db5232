"""
Exception hierarchy for typed-tasks.

Resolver errors (serialization, validation, windows) are raised before any
network interaction. Only the submission protocol retries.
"""

from typing import Any


class TypedTasksError(Exception):
    """Base class for all package errors."""


class PayloadSerializationError(TypedTasksError):
    """The payload cannot be canonically serialized."""


class PayloadValidationError(TypedTasksError):
    """The payload does not match the queue schema."""

    def __init__(self, queue_name: str, errors: list[dict[str, Any]]):
        self.queue_name = queue_name
        self.errors = errors
        super().__init__(f"Payload validation failed for queue {queue_name}")


class InvalidWindowError(TypedTasksError, ValueError):
    """A deduplication window is negative or zero where a window is required."""


class InvalidQueueNameError(TypedTasksError, ValueError):
    """Queue names must be camelCase."""

    def __init__(self, queue_name: str):
        self.queue_name = queue_name
        super().__init__(
            f"Invalid queue name {queue_name!r}: queue names must be camelCase. "
            "Underscores (_) are not allowed by Cloud Tasks and hyphens (-) "
            "cannot be used in function names."
        )


class UnknownQueueError(TypedTasksError, KeyError):
    """No task definition exists for the queue."""

    def __init__(self, queue_name: str):
        self.queue_name = queue_name
        super().__init__(queue_name)

    def __str__(self) -> str:
        return f"No task definition for queue {self.queue_name!r}"


class ConfigurationError(TypedTasksError, ValueError):
    """Required configuration is missing from both the call and the settings."""


class RegistryFrozenError(TypedTasksError):
    """The task registry no longer accepts registrations."""


class TransportError(TypedTasksError):
    """Task creation failed at the transport."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class TaskAlreadyExistsError(TransportError):
    """A task with the same name already exists (or existed recently) in the queue."""


class SubmissionError(TypedTasksError):
    """Task creation failed after exhausting the retry budget."""

    def __init__(
        self,
        queue_name: str,
        task_name: str | None,
        attempts: int,
        cause: BaseException,
    ):
        self.queue_name = queue_name
        self.task_name = task_name
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Failed to schedule task {queue_name} after {attempts} attempts: {cause}"
        )
