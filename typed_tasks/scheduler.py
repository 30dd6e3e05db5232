"""
Task schedulers.

A scheduler resolves the task name and schedule time for a payload, wraps
the payload in the task envelope and submits it through the transport with
retries.
"""

import asyncio
import base64
import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from typed_tasks.config import Settings, get_settings
from typed_tasks.constants import PAYLOAD_ENVELOPE_KEY, SPAN_SCHEDULE_TASK, ScheduleOutcome
from typed_tasks.exceptions import PayloadSerializationError, PayloadValidationError, SubmissionError
from typed_tasks.observability.logging import log_context
from typed_tasks.observability.metrics import get_metrics
from typed_tasks.observability.tracing import get_tracer
from typed_tasks.registry import TaskRegistry
from typed_tasks.scheduling.identity import to_json_value
from typed_tasks.scheduling.schedule_time import resolve_schedule
from typed_tasks.scheduling.submission import (
    RetryPolicy,
    SleepFn,
    SubmissionOutcome,
    submit_with_retry,
)
from typed_tasks.transport.base import TasksTransport
from typed_tasks.types.task import (
    CloudTask,
    HttpRequest,
    OidcToken,
    ResolvedSchedule,
    ScheduleRequest,
    ScheduleTime,
    TaskConfig,
)

logger = logging.getLogger(__name__)

# Returns the current time in epoch milliseconds
Clock = Callable[[], int]


def epoch_millis() -> int:
    """Current time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def encode_envelope(payload: Any) -> str:
    """
    Encode a payload as a task body.

    The handler side only accepts the payload under the "data" key, and the
    transport requires the body to be base64 encoded.

    Raises:
        PayloadSerializationError: If the payload has no strict JSON
            representation (NaN and infinities included).
    """
    envelope = {PAYLOAD_ENVELOPE_KEY: to_json_value(payload)}
    try:
        raw = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise PayloadSerializationError(f"Payload cannot be encoded as a task body: {e}") from e
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_envelope(body: str) -> Any:
    """Decode a task body produced by encode_envelope and return the payload."""
    return json.loads(base64.b64decode(body))[PAYLOAD_ENVELOPE_KEY]


class TaskScheduler:
    """Schedules tasks on a single queue."""

    def __init__(
        self,
        queue_name: str,
        transport: TasksTransport,
        project_id: str,
        region: str,
        config: TaskConfig | None = None,
        schema: Any = None,
        retry_policy: RetryPolicy | None = None,
        settings: Settings | None = None,
        clock: Clock = epoch_millis,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.queue_name = queue_name
        self.config = config
        self._transport = transport
        self._project_id = project_id
        self._region = region
        self._adapter = TypeAdapter(schema) if schema is not None else None
        self._settings = settings or get_settings()
        self._retry_policy = retry_policy or RetryPolicy.from_settings(self._settings)
        self._clock = clock
        self._sleep = sleep

    def _validate(self, payload: Any) -> Any:
        if self._adapter is None:
            return payload
        try:
            return self._adapter.validate_python(payload)
        except ValidationError as e:
            raise PayloadValidationError(self.queue_name, e.errors(include_url=False)) from e

    def build_task(self, payload: Any, resolved: ResolvedSchedule) -> CloudTask:
        """Build the task resource for a resolved schedule."""
        task = CloudTask(
            http_request=HttpRequest(
                url=self._settings.function_url_for(self._project_id, self._region, self.queue_name),
                oidc_token=OidcToken(
                    service_account_email=self._settings.service_account_for(self._project_id),
                ),
                body=encode_envelope(payload),
            ),
        )

        if resolved.task_name:
            task.name = self._transport.task_path(
                self._project_id,
                self._region,
                self.queue_name,
                resolved.task_name,
            )

        if resolved.schedule_time_seconds:
            task.schedule_time = ScheduleTime(seconds=resolved.schedule_time_seconds)

        return task

    async def __call__(
        self,
        payload: Any,
        task_name: str | None = None,
        delay_seconds: float | None = None,
    ) -> SubmissionOutcome:
        """
        Schedule a task.

        Args:
            payload: Task payload, validated against the queue schema.
            task_name: Optional name enabling manual deduplication.
            delay_seconds: Optional delay before execution. Ignored when the
                queue has a deduplication window.

        Returns:
            SubmissionOutcome; deduplicated is True when the task already existed.

        Raises:
            PayloadValidationError: If the payload does not match the schema.
            PayloadSerializationError: If the payload cannot be serialized.
            SubmissionError: If the task could not be created.
        """
        request = ScheduleRequest(
            payload=self._validate(payload),
            task_name=task_name,
            delay_seconds=delay_seconds,
        )
        resolved = resolve_schedule(self.config, request, self._clock())
        task = self.build_task(request.payload, resolved)
        parent = self._transport.queue_path(self._project_id, self._region, self.queue_name)

        metrics = get_metrics()
        start_time = time.perf_counter()

        with log_context(queue_name=self.queue_name), get_tracer().start_as_current_span(
            SPAN_SCHEDULE_TASK
        ) as span:
            span.set_attribute("queue_name", self.queue_name)
            if resolved.task_name:
                span.set_attribute("task_name", resolved.task_name)
            if resolved.delay_seconds:
                span.set_attribute("delay_seconds", resolved.delay_seconds)

            try:
                outcome = await submit_with_retry(
                    lambda: self._transport.create_task(parent, task),
                    self.queue_name,
                    resolved.task_name,
                    self._retry_policy,
                    sleep=self._sleep,
                )
            except SubmissionError as e:
                metrics.record_task_scheduled(
                    queue=self.queue_name,
                    outcome=ScheduleOutcome.FAILED,
                    attempts=e.attempts,
                    duration_seconds=time.perf_counter() - start_time,
                )
                raise

            span.set_attribute("attempts", outcome.attempts)
            span.set_attribute("deduplicated", outcome.deduplicated)

        metrics.record_task_scheduled(
            queue=self.queue_name,
            outcome=ScheduleOutcome.DEDUPLICATED if outcome.deduplicated else ScheduleOutcome.CREATED,
            attempts=outcome.attempts,
            duration_seconds=time.perf_counter() - start_time,
        )

        logger.debug(
            "Scheduled task",
            extra={
                "queue_name": self.queue_name,
                "task_name": resolved.task_name,
                "delay_seconds": resolved.delay_seconds,
                "attempts": outcome.attempts,
            },
        )
        return outcome


class SchedulerFactory:
    """Creates schedulers that share a transport, project and task registry."""

    def __init__(
        self,
        transport: TasksTransport,
        project_id: str,
        region: str,
        registry: TaskRegistry,
        schemas: Mapping[str, Any] | None = None,
        retry_policy: RetryPolicy | None = None,
        settings: Settings | None = None,
        clock: Clock = epoch_millis,
        sleep: SleepFn = asyncio.sleep,
    ):
        self._transport = transport
        self._project_id = project_id
        self._region = region
        self._registry = registry
        self._schemas = dict(schemas or {})
        self._retry_policy = retry_policy
        self._settings = settings
        self._clock = clock
        self._sleep = sleep

    def __call__(self, queue_name: str) -> TaskScheduler:
        return TaskScheduler(
            queue_name,
            transport=self._transport,
            project_id=self._project_id,
            region=self._region,
            config=self._registry.lookup(queue_name),
            schema=self._schemas.get(queue_name),
            retry_policy=self._retry_policy,
            settings=self._settings,
            clock=self._clock,
            sleep=self._sleep,
        )
