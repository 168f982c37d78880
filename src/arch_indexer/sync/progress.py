"""
Progress tracking for the sync engine.

Keeps a smoothed per-block processing time and derives completion figures
from it. Nothing here performs I/O, so the status endpoint can read it at any
moment without touching the node or the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .config import EMA_WEIGHT


def format_duration(seconds: float) -> str:
    """
    Render a duration as "{h}h {m}m {s}s".

    Fractions of a second are dropped. Negative values render as zero.
    """
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


@dataclass(slots=True)
class ProgressTracker:
    """
    Exponential moving average of block processing time.

    The first sample seeds the average. Every later sample moves it by
    `weight` times the difference:

        avg' = weight * sample + (1 - weight) * avg
    """

    weight: float = EMA_WEIGHT
    """Weight of the newest sample."""

    average_block_millis: float | None = None
    """Smoothed per-block processing time. None until the first sample."""

    samples: int = 0
    """Number of samples recorded."""

    def record(self, duration_millis: float) -> None:
        """Fold one block's wall-clock processing time into the average."""
        if self.average_block_millis is None:
            self.average_block_millis = float(duration_millis)
        else:
            self.average_block_millis = (
                self.weight * duration_millis + (1 - self.weight) * self.average_block_millis
            )
        self.samples += 1

    def estimate(self, remaining_blocks: int) -> timedelta:
        """
        Estimated time to ingest `remaining_blocks` more blocks.

        Zero when nothing remains or no block has been timed yet.
        """
        if remaining_blocks <= 0 or self.average_block_millis is None:
            return timedelta(0)
        return timedelta(milliseconds=remaining_blocks * self.average_block_millis)

    @staticmethod
    def percent_complete(frontier: int, chain_height: int | None) -> float:
        """
        Share of the chain that is indexed, in percent.

        Heights run from 0 to chain_height inclusive, so chain_height + 1
        blocks exist. Clamped to [0, 100].
        """
        if chain_height is None or chain_height < 0:
            return 0.0
        percent = frontier / (chain_height + 1) * 100
        return min(max(percent, 0.0), 100.0)
