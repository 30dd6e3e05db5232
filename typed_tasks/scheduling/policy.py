"""
Deduplication policy: decides the final task name for a scheduling call.
"""

from typing import Any

from typed_tasks.scheduling.identity import derive_task_name
from typed_tasks.scheduling.window import with_window_suffix
from typed_tasks.types.task import TaskConfig


def resolve_task_name(
    config: TaskConfig | None,
    payload: Any,
    task_name: str | None,
    now_ms: int,
) -> str | None:
    """
    Resolve the task name the transport deduplicates on.

    Deduplication is in effect when the queue enables it or configures a
    window. Then a missing name is derived from the payload, and any name is
    suffixed with the current window boundary when a window is configured.
    Without deduplication a caller name is used verbatim, and no name at all
    leaves naming to the transport.

    Args:
        config: Queue configuration, None for unregistered queues.
        payload: The task payload.
        task_name: Optional caller-supplied name.
        now_ms: Current time in epoch milliseconds.

    Returns:
        The final task name, or None when the task should be unnamed.
    """
    window_seconds = config.window_seconds if config else 0
    use_deduplication = config.effective_use_deduplication if config else False

    if not use_deduplication:
        return task_name or None

    name = task_name or derive_task_name(payload)
    if window_seconds > 0:
        name = with_window_suffix(name, now_ms, window_seconds)
    return name
