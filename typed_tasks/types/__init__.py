"""
Type definitions for typed-tasks.
Contains input/output type definitions, grouped by module.
"""

from typed_tasks.types.api import DispatchResponse, HandlerDeployment, HealthResponse
from typed_tasks.types.handler import (
    RateLimits,
    RetryConfig,
    TaskHandlerOptions,
)
from typed_tasks.types.task import (
    CloudTask,
    HttpRequest,
    OidcToken,
    ResolvedSchedule,
    ScheduleRequest,
    ScheduleTime,
    TaskConfig,
    TaskDefinition,
    TaskSchedulerOptions,
)

__all__ = [
    # API types
    "HealthResponse",
    "DispatchResponse",
    "HandlerDeployment",
    # Handler types
    "RateLimits",
    "RetryConfig",
    "TaskHandlerOptions",
    # Task types
    "TaskSchedulerOptions",
    "TaskConfig",
    "TaskDefinition",
    "ScheduleRequest",
    "ResolvedSchedule",
    "CloudTask",
    "HttpRequest",
    "OidcToken",
    "ScheduleTime",
]
