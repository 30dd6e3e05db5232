"""
Unit tests for window boundaries.
"""

import pytest

from typed_tasks.exceptions import InvalidWindowError
from typed_tasks.scheduling.window import window_boundary, with_window_suffix

NOW_MS = 1_700_000_000_000


class TestWindowBoundary:
    """Tests for window_boundary."""

    def test_floor_division(self):
        assert window_boundary(NOW_MS, 60) == NOW_MS // 60_000
        assert window_boundary(NOW_MS, 60) == 28_333_333

    def test_same_interval_same_bucket(self):
        start = window_boundary(NOW_MS, 60) * 60_000

        assert window_boundary(start, 60) == window_boundary(start + 59_999, 60)

    def test_adjacent_intervals_differ_by_one(self):
        for window in (1, 30, 60, 3600):
            assert window_boundary(NOW_MS + window * 1000, window) == window_boundary(NOW_MS, window) + 1

    def test_interval_edge(self):
        start = window_boundary(NOW_MS, 30) * 30_000

        assert window_boundary(start - 1, 30) == window_boundary(start, 30) - 1

    @pytest.mark.parametrize("window", [0, -1, -60])
    def test_non_positive_window(self, window: int):
        with pytest.raises(InvalidWindowError):
            window_boundary(NOW_MS, window)

    def test_invalid_window_is_value_error(self):
        with pytest.raises(ValueError):
            window_boundary(NOW_MS, 0)


class TestWithWindowSuffix:
    """Tests for with_window_suffix."""

    def test_appends_boundary(self):
        assert with_window_suffix("abc", NOW_MS, 30) == f"abc-{NOW_MS // 30_000}"
