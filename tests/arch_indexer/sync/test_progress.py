"""Tests for the progress tracker."""

from __future__ import annotations

from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from arch_indexer.sync import ProgressTracker, format_duration


class TestMovingAverage:
    """Tests for the block timing average."""

    def test_no_samples(self) -> None:
        """The average is unknown before the first block."""
        assert ProgressTracker().average_block_millis is None

    def test_first_sample_seeds_average(self) -> None:
        """The first sample is taken as-is."""
        tracker = ProgressTracker()
        tracker.record(250)
        assert tracker.average_block_millis == 250

    def test_constant_samples(self) -> None:
        """Identical samples keep the average unchanged."""
        tracker = ProgressTracker()
        for _ in range(3):
            tracker.record(100)
        assert tracker.average_block_millis == pytest.approx(100)

    def test_weighted_update(self) -> None:
        """A new sample moves the average by a tenth of the difference."""
        tracker = ProgressTracker()
        tracker.record(100)
        tracker.record(200)
        assert tracker.average_block_millis == pytest.approx(110)
        assert tracker.samples == 2

    @given(st.lists(st.floats(min_value=0, max_value=1e6), min_size=1, max_size=50))
    def test_average_stays_within_sample_range(self, samples: list[float]) -> None:
        """The average never leaves the range of observed samples."""
        tracker = ProgressTracker()
        for sample in samples:
            tracker.record(sample)

        assert tracker.average_block_millis is not None
        assert min(samples) - 1e-6 <= tracker.average_block_millis <= max(samples) + 1e-6


class TestEstimate:
    """Tests for time-to-completion."""

    def test_remaining_times_average(self) -> None:
        """Remaining blocks are multiplied by the average."""
        tracker = ProgressTracker()
        tracker.record(200)
        assert tracker.estimate(50) == timedelta(seconds=10)

    def test_nothing_remaining(self) -> None:
        """Nothing left means no time left."""
        tracker = ProgressTracker()
        tracker.record(200)
        assert tracker.estimate(0) == timedelta(0)
        assert tracker.estimate(-3) == timedelta(0)

    def test_unknown_average(self) -> None:
        """Without samples no estimate is made."""
        assert ProgressTracker().estimate(100) == timedelta(0)


class TestPercentComplete:
    """Tests for completion percentage."""

    def test_half_way(self) -> None:
        """Heights 0..99 exist at chain height 99."""
        assert ProgressTracker.percent_complete(50, 99) == pytest.approx(50.0)

    def test_complete(self) -> None:
        """A frontier past the chain height is complete."""
        assert ProgressTracker.percent_complete(100, 99) == 100.0

    def test_clamped(self) -> None:
        """A frontier ahead of a stale chain height does not exceed 100."""
        assert ProgressTracker.percent_complete(500, 99) == 100.0

    def test_unknown_chain_height(self) -> None:
        """Without a chain height nothing can be claimed."""
        assert ProgressTracker.percent_complete(10, None) == 0.0

    @given(st.integers(min_value=0, max_value=10**9), st.integers(min_value=0, max_value=10**9))
    def test_always_in_range(self, frontier: int, chain_height: int) -> None:
        """The percentage is always between 0 and 100."""
        assert 0.0 <= ProgressTracker.percent_complete(frontier, chain_height) <= 100.0


class TestFormatDuration:
    """Tests for duration rendering."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0h 0m 0s"),
            (59.9, "0h 0m 59s"),
            (61, "0h 1m 1s"),
            (3600 * 26 + 125, "26h 2m 5s"),
            (-5, "0h 0m 0s"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        """Durations render as hours, minutes and whole seconds."""
        assert format_duration(seconds) == expected
