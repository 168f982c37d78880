"""
Sync engine for the Arch indexer.

What Is Sync?
-------------
The node holds the chain; the database holds the index. Sync copies every
block and its transactions from one to the other, starting at the lowest
height not yet stored, then follows the chain as it grows.

The Challenge
-------------
1. **Throughput**: Heights are independent, so many are fetched at once
2. **Failures**: A height can fail at any step; no gap may ever be skipped
3. **Restarts**: The process can stop at any moment and must resume cleanly

How It Works
------------
- Heights are grouped into windows; a round runs several windows at once
- A failed height discards its round; the frontier stays put and the round
  is retried
- Every block is stored with its transactions in one database transaction,
  so a restart resumes from the highest stored height
"""

from __future__ import annotations

__all__ = [
    # Main service
    "SyncService",
    "SyncProgress",
    "plan_windows",
    # States
    "SyncState",
    # Block work
    "BlockProcessor",
    "TransactionResolver",
    "normalize_transaction",
    # Progress
    "ProgressTracker",
    "format_duration",
    # Configuration constants
    "BATCH_SIZE",
    "CONCURRENT_BATCHES",
    "TX_BATCH_SIZE",
    "NODE_RETRY_DELAY",
    "ROUND_RETRY_DELAY",
    "SYNCED_POLL_DELAY",
    "CATCH_UP_DELAY",
]

from .config import (
    BATCH_SIZE,
    CATCH_UP_DELAY,
    CONCURRENT_BATCHES,
    NODE_RETRY_DELAY,
    ROUND_RETRY_DELAY,
    SYNCED_POLL_DELAY,
    TX_BATCH_SIZE,
)
from .processor import BlockProcessor
from .progress import ProgressTracker, format_duration
from .resolver import TransactionResolver, normalize_transaction
from .service import SyncProgress, SyncService, plan_windows
from .states import SyncState
