"""
API response type definitions.
"""

from datetime import datetime

from pydantic import BaseModel

from typed_tasks.types.handler import TaskHandlerOptions


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    queues: list[str]
    timestamp: datetime


class DispatchResponse(BaseModel):
    """Response body after a task has been dispatched to its handler."""

    queue_name: str
    status: str


class HandlerDeployment(BaseModel):
    """Deployment settings of a task handler, as reported by the app."""

    queue_name: str
    region: str
    options: TaskHandlerOptions
