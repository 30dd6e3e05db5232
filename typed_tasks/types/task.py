"""
Task-related type definitions for scheduling.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TaskSchedulerOptions(BaseModel):
    """
    Options that apply to how a task is scheduled, not how it is executed.

    When deduplication_window_seconds is greater than zero, deduplication is
    implicitly enabled even if use_deduplication is False.
    """

    model_config = ConfigDict(frozen=True)

    deduplication_window_seconds: int | None = Field(
        default=None,
        ge=0,
        description="Size of the time window in seconds within which tasks with the same name collapse",
    )
    use_deduplication: bool = Field(
        default=False,
        description="Derive the task name from an MD5 hash of the payload",
    )

    @property
    def window_seconds(self) -> int:
        """Deduplication window, with 0 meaning no window."""
        return self.deduplication_window_seconds or 0

    @property
    def effective_use_deduplication(self) -> bool:
        return self.use_deduplication or self.window_seconds > 0

    def normalized(self) -> "TaskSchedulerOptions":
        """Copy with use_deduplication set to its effective value."""
        return self.model_copy(update={"use_deduplication": self.effective_use_deduplication})


# Per-queue configuration held by the task registry
TaskConfig = TaskSchedulerOptions


@dataclass(frozen=True)
class TaskDefinition:
    """
    A queue definition: payload schema plus optional scheduler options.

    The schema is anything pydantic can build a TypeAdapter for, usually a
    BaseModel subclass.
    """

    schema: Any
    options: TaskSchedulerOptions | None = None


@dataclass(frozen=True)
class ScheduleRequest:
    """A single scheduling call."""

    payload: Any
    task_name: str | None = None
    delay_seconds: float | None = None


@dataclass(frozen=True)
class ResolvedSchedule:
    """
    Output of the scheduling resolvers.

    delay_seconds is relative to now; schedule_time_seconds is the absolute
    epoch time handed to the transport. Both are None for "as soon as possible".
    """

    task_name: str | None
    delay_seconds: int | None
    schedule_time_seconds: int | None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OidcToken(_CamelModel):
    """OIDC token the transport attaches to the dispatched request."""

    service_account_email: str


class HttpRequest(_CamelModel):
    """HTTP request the transport sends when the task is dispatched."""

    http_method: str = "POST"
    url: str
    oidc_token: OidcToken
    headers: dict[str, str] = Field(default_factory=lambda: {"content-type": "application/json"})
    body: str


class ScheduleTime(_CamelModel):
    seconds: int


class CloudTask(_CamelModel):
    """
    Task resource submitted to the transport.

    name is the fully-qualified task path; when absent the transport assigns one.
    """

    name: str | None = None
    http_request: HttpRequest
    schedule_time: ScheduleTime | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
