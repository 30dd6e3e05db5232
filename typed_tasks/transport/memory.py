"""
In-memory transport for local development and tests.
"""

import logging
from collections import defaultdict
from uuid import uuid4

from typed_tasks.constants import ALREADY_EXISTS_MARKER
from typed_tasks.exceptions import TaskAlreadyExistsError, TransportError
from typed_tasks.transport.base import queue_path, task_path
from typed_tasks.types.task import CloudTask

logger = logging.getLogger(__name__)


class InMemoryTransport:
    """
    Stores created tasks per queue and rejects duplicate task names.

    fail_times makes the next N create_task calls fail with a transient
    TransportError, which is useful to exercise retries.
    """

    def __init__(self, fail_times: int = 0):
        self._tasks: dict[str, dict[str, CloudTask]] = defaultdict(dict)
        self._fail_remaining = fail_times
        self.create_calls = 0

    def queue_path(self, project: str, location: str, queue: str) -> str:
        return queue_path(project, location, queue)

    def task_path(self, project: str, location: str, queue: str, task: str) -> str:
        return task_path(project, location, queue, task)

    def fail_next(self, times: int) -> None:
        """Fail the next `times` create_task calls."""
        self._fail_remaining = times

    async def create_task(self, parent: str, task: CloudTask) -> CloudTask:
        self.create_calls += 1

        if self._fail_remaining > 0:
            self._fail_remaining -= 1
            raise TransportError("UNAVAILABLE: injected transient failure", status_code=503)

        name = task.name or f"{parent}/tasks/{uuid4().hex}"
        queue_tasks = self._tasks[parent]
        if name in queue_tasks:
            raise TaskAlreadyExistsError(
                f"{ALREADY_EXISTS_MARKER}: The task cannot be created because a task "
                f"with this name existed too recently: {name}",
                status_code=409,
            )

        created = task.model_copy(update={"name": name})
        queue_tasks[name] = created
        logger.debug("Stored task", extra={"parent": parent, "task_name": name})
        return created

    def list_tasks(self, parent: str) -> list[CloudTask]:
        """Tasks created in a queue, in creation order."""
        return list(self._tasks.get(parent, {}).values())

    def clear(self) -> None:
        self._tasks.clear()
        self.create_calls = 0
