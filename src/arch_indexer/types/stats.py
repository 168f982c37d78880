"""Aggregate statistics served by the read API."""

from __future__ import annotations

from datetime import datetime

from .base import StrictBaseModel


class ThroughputWindow(StrictBaseModel):
    """Transaction count over a span of block time."""

    tx_count: int
    """Transactions in blocks inside the window."""

    start: datetime | None = None
    """Earliest block time in the window, None when the window is empty."""

    end: datetime | None = None
    """Latest block time in the window, None when the window is empty."""

    def per_second(self) -> float:
        """
        Transactions per second across the window.

        Zero when the window is empty or spans a single instant.
        """
        if self.start is None or self.end is None:
            return 0.0
        span = (self.end - self.start).total_seconds()
        if span <= 0:
            return 0.0
        return self.tx_count / span


class NetworkStats(StrictBaseModel):
    """Chain-wide statistics."""

    total_transactions: int
    """Transactions in the index."""

    block_height: int | None
    """Latest chain height seen by the sync engine."""

    slot_height: int | None
    """Latest slot height. Equal to block_height on Arch."""

    tps: float
    """Throughput over the trailing minute of block time."""

    true_tps: float
    """Throughput over the trailing 100 indexed blocks."""
