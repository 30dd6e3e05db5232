"""
Transport boundary for the remote queueing service.
"""

from typing import Protocol, runtime_checkable

from typed_tasks.types.task import CloudTask


def queue_path(project: str, location: str, queue: str) -> str:
    """Fully-qualified queue resource name."""
    return f"projects/{project}/locations/{location}/queues/{queue}"


def task_path(project: str, location: str, queue: str, task: str) -> str:
    """Fully-qualified task resource name."""
    return f"{queue_path(project, location, queue)}/tasks/{task}"


@runtime_checkable
class TasksTransport(Protocol):
    """
    Creates tasks on a remote queue.

    create_task must raise TaskAlreadyExistsError when a task with the same
    name exists in the queue (or existed within the service's retention
    horizon), and TransportError for any other failure.
    """

    def queue_path(self, project: str, location: str, queue: str) -> str: ...

    def task_path(self, project: str, location: str, queue: str, task: str) -> str: ...

    async def create_task(self, parent: str, task: CloudTask) -> CloudTask: ...
