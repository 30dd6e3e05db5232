"""
Transport module.
Contains the transport protocol and its HTTP and in-memory implementations.
"""

from typed_tasks.transport.base import TasksTransport, queue_path, task_path
from typed_tasks.transport.http import HttpCloudTasksTransport, TokenProvider
from typed_tasks.transport.memory import InMemoryTransport

__all__ = [
    "TasksTransport",
    "queue_path",
    "task_path",
    "HttpCloudTasksTransport",
    "TokenProvider",
    "InMemoryTransport",
]
