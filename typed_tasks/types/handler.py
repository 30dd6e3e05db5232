"""
Handler option type definitions.
These options apply to the function that executes a task, not how it is scheduled.
"""

from pydantic import BaseModel, ConfigDict, Field


class RateLimits(BaseModel):
    """Queue congestion control settings."""

    model_config = ConfigDict(frozen=True)

    max_dispatches_per_second: float | None = Field(default=None, gt=0)
    max_concurrent_dispatches: int | None = Field(default=None, ge=1)


class RetryConfig(BaseModel):
    """Retry configuration the queue applies to failed task executions."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int | None = Field(default=None, ge=0)
    min_backoff_seconds: int | None = Field(default=None, ge=0)
    max_backoff_seconds: int | None = Field(default=None, ge=0)
    max_retry_seconds: int | None = Field(default=None, ge=0)


class TaskHandlerOptions(BaseModel):
    """
    Options for a task handler.

    Every field is optional so that options can be layered: package defaults,
    then client-wide options, then per-handler options.
    """

    model_config = ConfigDict(frozen=True)

    memory: str | None = None
    timeout_seconds: int | None = Field(default=None, gt=0)
    vpc_connector: str | None = None
    rate_limits: RateLimits | None = None
    retry_config: RetryConfig | None = None
