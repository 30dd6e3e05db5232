"""
Time window boundaries for deduplication.
"""

from typed_tasks.exceptions import InvalidWindowError


def window_boundary(now_ms: int, window_seconds: int) -> int:
    """
    Index of the epoch-aligned window that contains now_ms.

    Two timestamps inside the same window_seconds-wide interval map to the
    same bucket; adjacent intervals differ by exactly one.

    Args:
        now_ms: Current time in epoch milliseconds.
        window_seconds: Window length in seconds, must be positive.

    Returns:
        floor(now_ms / (window_seconds * 1000)).

    Raises:
        InvalidWindowError: If window_seconds is not positive.
    """
    if window_seconds <= 0:
        raise InvalidWindowError(f"Deduplication window must be positive, got {window_seconds}")
    return int(now_ms) // (int(window_seconds) * 1000)


def with_window_suffix(name: str, now_ms: int, window_seconds: int) -> str:
    """Append the current window boundary to a task name."""
    return f"{name}-{window_boundary(now_ms, window_seconds)}"
