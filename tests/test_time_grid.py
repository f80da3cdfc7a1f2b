"""Tests for candidate start-time generation."""

from datetime import time

import pytest

from src.scheduling.time_grid import TimeGrid
from src.schemas.provider_schema import WorkingHours


class TestTimeGrid:
    def test_covers_open_through_close_minus_granularity(self):
        grid = TimeGrid(WorkingHours(open=time(8, 0), close=time(18, 0)), granularity=30)
        starts = list(grid)
        assert starts[0] == 8 * 60
        assert starts[-1] == 17 * 60 + 30
        assert len(starts) == 20

    def test_steps_by_granularity(self):
        grid = TimeGrid(WorkingHours(open=time(9, 0), close=time(11, 0)), granularity=30)
        assert list(grid) == [540, 570, 600, 630]

    def test_restartable(self):
        grid = TimeGrid(WorkingHours(open=time(9, 0), close=time(12, 0)))
        assert list(grid) == list(grid)

    def test_lazy_iteration(self):
        grid = TimeGrid(WorkingHours(open=time(9, 0), close=time(12, 0)))
        it = iter(grid)
        assert next(it) == 540
        assert next(it) == 570

    def test_open_equals_close_is_empty(self):
        grid = TimeGrid(WorkingHours(open=time(9, 0), close=time(9, 0)))
        assert list(grid) == []
        assert len(grid) == 0

    def test_no_hours_is_empty(self):
        assert list(TimeGrid(None)) == []

    def test_window_shorter_than_granularity_is_empty(self):
        grid = TimeGrid(WorkingHours(open=time(9, 0), close=time(9, 20)), granularity=30)
        assert list(grid) == []

    def test_non_positive_granularity_rejected(self):
        with pytest.raises(ValueError):
            TimeGrid(WorkingHours(open=time(9, 0), close=time(10, 0)), granularity=0)


class TestWorkingHours:
    def test_close_before_open_rejected(self):
        with pytest.raises(ValueError):
            WorkingHours(open=time(18, 0), close=time(8, 0))
