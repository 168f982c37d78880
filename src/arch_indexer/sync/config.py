"""
Sync engine configuration constants.

Operational parameters for synchronization: batch sizes, concurrency, and
polling delays.
"""

from __future__ import annotations

from typing import Final

BATCH_SIZE: Final[int] = 100
"""Heights per window. Every height in a window is processed concurrently."""

CONCURRENT_BATCHES: Final[int] = 5
"""Maximum windows launched in one round."""

TX_BATCH_SIZE: Final[int] = 50
"""Transactions fetched concurrently per sub-batch when resolving a block."""

NODE_RETRY_DELAY: Final[float] = 5.0
"""Seconds to wait when the node is not ready or unreachable."""

ROUND_RETRY_DELAY: Final[float] = 2.0
"""Seconds to wait before retrying a failed round."""

SYNCED_POLL_DELAY: Final[float] = 1.0
"""Seconds between chain height polls once caught up."""

CATCH_UP_DELAY: Final[float] = 0.1
"""Seconds between rounds while still behind the chain."""

EMA_WEIGHT: Final[float] = 0.1
"""Weight of the newest sample in the block timing moving average."""
