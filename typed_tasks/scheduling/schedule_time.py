"""
Schedule time resolution.

Priority: deduplication window > explicit delay. A configured window always
delays the task by the full window length so that a burst of submissions
coalesces into one execution at the end of it.
"""

from typed_tasks.exceptions import InvalidWindowError
from typed_tasks.scheduling.policy import resolve_task_name
from typed_tasks.types.task import ResolvedSchedule, ScheduleRequest, TaskConfig


def resolve_delay_seconds(
    window_seconds: int | None,
    delay_seconds: float | None = None,
) -> int | None:
    """
    Delay in seconds from now before the task should run.

    Returns None when the task should run as soon as the transport allows.
    Caller delays are truncated to whole seconds, so a delay under one
    second also means "as soon as possible".
    """
    window_seconds = window_seconds or 0
    if window_seconds < 0:
        raise InvalidWindowError(f"Deduplication window cannot be negative, got {window_seconds}")

    if window_seconds > 0:
        return int(window_seconds)
    if delay_seconds is not None and int(delay_seconds) > 0:
        return int(delay_seconds)
    return None


def resolve_schedule_time_seconds(now_ms: int, delay_seconds: int | None) -> int | None:
    """Absolute schedule time in epoch seconds for a delay, or None."""
    if not delay_seconds:
        return None
    return int(now_ms) // 1000 + delay_seconds


def resolve_schedule(
    config: TaskConfig | None,
    request: ScheduleRequest,
    now_ms: int,
) -> ResolvedSchedule:
    """
    Resolve the task name and schedule time for a scheduling call.

    Args:
        config: Queue configuration, None for unregistered queues.
        request: The scheduling call.
        now_ms: Current time in epoch milliseconds.

    Returns:
        The resolved schedule.
    """
    window_seconds = config.window_seconds if config else 0
    delay = resolve_delay_seconds(window_seconds, request.delay_seconds)

    return ResolvedSchedule(
        task_name=resolve_task_name(config, request.payload, request.task_name, now_ms),
        delay_seconds=delay,
        schedule_time_seconds=resolve_schedule_time_seconds(now_ms, delay),
    )
