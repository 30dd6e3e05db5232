"""
Task handlers for the execution side.

A handler receives the dispatched task body, unwraps the payload envelope,
validates it against the queue schema and invokes the business handler.

Handlers must be idempotent - the transport delivers at least once.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Request
from pydantic import TypeAdapter, ValidationError

from typed_tasks.constants import (
    DEFAULT_HANDLER_MEMORY,
    DEFAULT_HANDLER_TIMEOUT_SECONDS,
    DEFAULT_MAX_CONCURRENT_DISPATCHES,
    DEFAULT_MAX_DISPATCHES_PER_SECOND,
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_RETRY_MAX_BACKOFF_SECONDS,
    DEFAULT_RETRY_MAX_RETRY_SECONDS,
    DEFAULT_RETRY_MIN_BACKOFF_SECONDS,
    PAYLOAD_ENVELOPE_KEY,
    SPAN_HANDLE_TASK,
    HandleStatus,
)
from typed_tasks.observability.logging import log_context
from typed_tasks.observability.metrics import get_metrics
from typed_tasks.observability.tracing import get_tracer
from typed_tasks.types.api import DispatchResponse, HandlerDeployment
from typed_tasks.types.handler import RateLimits, RetryConfig, TaskHandlerOptions

logger = logging.getLogger(__name__)

# Business handler invoked with the validated payload
HandlerFn = Callable[[Any], Awaitable[None]]

DEFAULT_HANDLER_OPTIONS = TaskHandlerOptions(
    memory=DEFAULT_HANDLER_MEMORY,
    timeout_seconds=DEFAULT_HANDLER_TIMEOUT_SECONDS,
    vpc_connector=None,
    rate_limits=RateLimits(
        max_dispatches_per_second=DEFAULT_MAX_DISPATCHES_PER_SECOND,
        max_concurrent_dispatches=DEFAULT_MAX_CONCURRENT_DISPATCHES,
    ),
    retry_config=RetryConfig(
        max_attempts=DEFAULT_RETRY_MAX_ATTEMPTS,
        min_backoff_seconds=DEFAULT_RETRY_MIN_BACKOFF_SECONDS,
        max_backoff_seconds=DEFAULT_RETRY_MAX_BACKOFF_SECONDS,
        max_retry_seconds=DEFAULT_RETRY_MAX_RETRY_SECONDS,
    ),
)


def merge_handler_options(*layers: TaskHandlerOptions | None) -> TaskHandlerOptions:
    """
    Merge handler options, later layers winning.

    Unset fields never override; rate_limits and retry_config are merged
    field by field.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer is None:
            continue
        for key, value in layer.model_dump(exclude_none=True).items():
            if isinstance(value, dict):
                merged[key] = {**merged.get(key, {}), **value}
            else:
                merged[key] = value
    return TaskHandlerOptions.model_validate(merged)


class TaskHandler:
    """Validates dispatched tasks for a queue and runs the business handler."""

    def __init__(
        self,
        queue_name: str,
        schema: Any,
        handler: HandlerFn,
        options: TaskHandlerOptions,
        region: str,
    ):
        self.queue_name = queue_name
        self.options = options
        self.region = region
        self._adapter = TypeAdapter(schema)
        self._handler = handler
        self._router: APIRouter | None = None

    async def dispatch(self, body: Any) -> HandleStatus:
        """
        Handle a dispatched task body.

        Invalid payloads are logged and acknowledged without calling the
        handler, because retrying them cannot succeed. Exceptions raised by
        the handler propagate so the transport retries the task.

        Args:
            body: The decoded JSON request body.

        Returns:
            HandleStatus.SUCCEEDED or HandleStatus.INVALID.
        """
        metrics = get_metrics()

        with log_context(queue_name=self.queue_name):
            if not isinstance(body, dict) or PAYLOAD_ENVELOPE_KEY not in body:
                logger.error(
                    f"Task body for queue {self.queue_name} has no {PAYLOAD_ENVELOPE_KEY!r} key",
                    extra={"queue_name": self.queue_name},
                )
                metrics.record_task_handled(self.queue_name, HandleStatus.INVALID)
                return HandleStatus.INVALID

            try:
                payload = self._adapter.validate_python(body[PAYLOAD_ENVELOPE_KEY])
            except ValidationError as e:
                logger.error(
                    f"Validation error for queue {self.queue_name}",
                    extra={"queue_name": self.queue_name, "errors": e.errors(include_url=False)},
                )
                metrics.record_task_handled(self.queue_name, HandleStatus.INVALID)
                return HandleStatus.INVALID

            with get_tracer().start_as_current_span(SPAN_HANDLE_TASK) as span:
                span.set_attribute("queue_name", self.queue_name)
                try:
                    await self._handler(payload)
                except Exception:
                    logger.exception(
                        f"Handler for queue {self.queue_name} raised",
                        extra={"queue_name": self.queue_name},
                    )
                    metrics.record_task_handled(self.queue_name, HandleStatus.FAILED)
                    raise

        metrics.record_task_handled(self.queue_name, HandleStatus.SUCCEEDED)
        return HandleStatus.SUCCEEDED

    @property
    def deployment(self) -> HandlerDeployment:
        """Region and merged options the handler function is deployed with."""
        return HandlerDeployment(queue_name=self.queue_name, region=self.region, options=self.options)

    @property
    def router(self) -> APIRouter:
        """Router exposing POST /{queue_name} for the transport to call."""
        if self._router is None:
            self._router = self._build_router()
        return self._router

    def _build_router(self) -> APIRouter:
        router = APIRouter(tags=["Tasks"])

        @router.post(
            f"/{self.queue_name}",
            response_model=DispatchResponse,
            summary=f"Handle {self.queue_name} tasks",
        )
        async def handle_task(request: Request) -> DispatchResponse:
            try:
                body = await request.json()
            except ValueError:
                body = None
            status = await self.dispatch(body)
            return DispatchResponse(queue_name=self.queue_name, status=status)

        return router


class HandlerFactory:
    """Creates handlers with options layered over client-wide options."""

    def __init__(
        self,
        schemas: dict[str, Any],
        region: str,
        global_options: TaskHandlerOptions | None = None,
    ):
        self._schemas = schemas
        self._region = region
        self._global_options = merge_handler_options(DEFAULT_HANDLER_OPTIONS, global_options)

    @property
    def global_options(self) -> TaskHandlerOptions:
        return self._global_options

    def __call__(
        self,
        queue_name: str,
        handler: HandlerFn,
        options: TaskHandlerOptions | None = None,
    ) -> TaskHandler:
        return TaskHandler(
            queue_name,
            schema=self._schemas[queue_name],
            handler=handler,
            options=merge_handler_options(self._global_options, options),
            region=self._region,
        )
