"""
Typed tasks client factory.
"""

import asyncio
import logging
import re
from collections.abc import Mapping
from typing import Any

from typed_tasks.config import Settings, get_settings
from typed_tasks.constants import QUEUE_NAME_PATTERN
from typed_tasks.exceptions import ConfigurationError, InvalidQueueNameError, UnknownQueueError
from typed_tasks.handler import HandlerFactory, HandlerFn, TaskHandler
from typed_tasks.registry import TaskRegistry
from typed_tasks.scheduler import Clock, SchedulerFactory, TaskScheduler, epoch_millis
from typed_tasks.scheduling.submission import RetryPolicy, SleepFn
from typed_tasks.transport.base import TasksTransport
from typed_tasks.types.handler import TaskHandlerOptions
from typed_tasks.types.task import TaskDefinition

logger = logging.getLogger(__name__)

_QUEUE_NAME_RE = re.compile(QUEUE_NAME_PATTERN)


def validate_queue_name(queue_name: str) -> str:
    """Ensure a queue name is camelCase."""
    if not _QUEUE_NAME_RE.match(queue_name):
        raise InvalidQueueNameError(queue_name)
    return queue_name


class TypedTasksClient:
    """
    Client giving access to schedulers and handlers for the defined queues.

    The set of defined queues is fixed at construction.
    """

    def __init__(
        self,
        queue_names: frozenset[str],
        registry: TaskRegistry,
        scheduler_factory: SchedulerFactory,
        handler_factory: HandlerFactory,
    ):
        self._queue_names = queue_names
        self._registry = registry
        self._scheduler_factory = scheduler_factory
        self._handler_factory = handler_factory

    @property
    def queue_names(self) -> frozenset[str]:
        return self._queue_names

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    def __contains__(self, queue_name: object) -> bool:
        return queue_name in self._queue_names

    def _require(self, queue_name: str) -> None:
        if queue_name not in self._queue_names:
            raise UnknownQueueError(queue_name)

    def create_scheduler(self, queue_name: str) -> TaskScheduler:
        """
        Create a scheduler for a queue.

        When no task_name is passed to the scheduler and deduplication is
        enabled for the queue (through use_deduplication or
        deduplication_window_seconds), the task name is derived from an MD5
        hash of the payload.
        """
        self._require(queue_name)
        return self._scheduler_factory(queue_name)

    def create_handler(
        self,
        queue_name: str,
        handler: HandlerFn,
        options: TaskHandlerOptions | None = None,
    ) -> TaskHandler:
        """Create a handler that validates payloads for a queue before calling `handler`."""
        self._require(queue_name)
        return self._handler_factory(queue_name, handler, options)


def create_typed_tasks(
    transport: TasksTransport,
    definitions: Mapping[str, Any],
    project_id: str | None = None,
    region: str | None = None,
    options: TaskHandlerOptions | None = None,
    *,
    retry_policy: RetryPolicy | None = None,
    settings: Settings | None = None,
    clock: Clock = epoch_millis,
    sleep: SleepFn = asyncio.sleep,
) -> TypedTasksClient:
    """
    Create a typed tasks client.

    Args:
        transport: Transport used to create tasks.
        definitions: Queue name to schema, or to a TaskDefinition carrying a
            schema and scheduler options.
        project_id: Cloud project ID. Defaults to settings.project_id.
        region: Region of the queues and handler functions. Defaults to
            settings.region.
        options: Handler options applied to every handler.
        retry_policy: Submission retry policy. Defaults to settings.
        settings: Optional settings, defaults to get_settings().
        clock: Epoch-millisecond clock.
        sleep: Awaitable sleep used between submission retries.

    Returns:
        TypedTasksClient for the defined queues.

    Raises:
        InvalidQueueNameError: If a queue name is not camelCase.
        ConfigurationError: If no project ID is passed or configured.
    """
    settings = settings or get_settings()
    project_id = project_id or settings.project_id
    region = region or settings.region
    if not project_id:
        raise ConfigurationError("No project ID given and TYPED_TASKS_PROJECT_ID is not set")

    registry = TaskRegistry()
    schemas: dict[str, Any] = {}

    for queue_name, definition in definitions.items():
        validate_queue_name(queue_name)

        if isinstance(definition, TaskDefinition):
            schemas[queue_name] = definition.schema
            if definition.options is not None:
                registry.register(queue_name, definition.options)
        else:
            schemas[queue_name] = definition

    registry.freeze()

    logger.info(
        f"Created typed tasks client with {len(schemas)} queues",
        extra={"project_id": project_id, "region": region, "queues": sorted(schemas)},
    )

    scheduler_factory = SchedulerFactory(
        transport,
        project_id,
        region,
        registry,
        schemas=schemas,
        retry_policy=retry_policy,
        settings=settings,
        clock=clock,
        sleep=sleep,
    )
    handler_factory = HandlerFactory(schemas, region, options)

    return TypedTasksClient(
        queue_names=frozenset(schemas),
        registry=registry,
        scheduler_factory=scheduler_factory,
        handler_factory=handler_factory,
    )
