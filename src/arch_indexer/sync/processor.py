"""
Single-height block processing.

Turns one height into a persisted block:

1. Resolve the block hash for the height
2. Fetch the block body by hash
3. Resolve every transaction listed in the body
4. Store block and transactions in one database transaction

A failure at any step fails the height. The height is not retried here; its
whole round is retried by the sync service.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from arch_indexer import metrics
from arch_indexer.exceptions import FetchError, NodeUnavailable
from arch_indexer.node import NodeClient, RemoteBlock
from arch_indexer.storage import Database
from arch_indexer.types import Block

from .progress import ProgressTracker
from .resolver import TransactionResolver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BlockProcessor:
    """Fetches, assembles and stores the block at a given height."""

    client: NodeClient
    """Node to fetch from."""

    database: Database
    """Destination of assembled blocks."""

    resolver: TransactionResolver
    """Transaction fetcher shared by every height."""

    tracker: ProgressTracker = field(default_factory=ProgressTracker)
    """Receives the wall-clock duration of every stored block."""

    last_block_at: datetime | None = None
    """Wall-clock time the most recent block was stored."""

    async def process(self, height: int) -> Block:
        """
        Ingest the block at `height`.

        Returns:
            The stored block, with its transactions.

        Raises:
            FetchError: The node was unreachable or returned unusable data.
            PersistError: The block could not be written. Nothing was stored.
        """
        started = time.perf_counter()

        try:
            block_hash = await self.client.block_hash(height)
            remote = await self.client.block(block_hash)
        except NodeUnavailable as exc:
            raise FetchError(exc.message, height=height) from exc
        except FetchError as exc:
            if exc.height is not None:
                raise
            raise FetchError(exc.message, height=height, txid=exc.txid) from exc

        block = await self._assemble(height, block_hash, remote)
        await self.database.store_block(block)

        elapsed = time.perf_counter() - started
        self.tracker.record(elapsed * 1000)
        self.last_block_at = datetime.now(UTC)

        metrics.blocks_processed.inc()
        metrics.transactions_indexed.inc(len(block.transactions))
        metrics.block_processing_time.observe(elapsed)

        logger.debug(
            "Stored block %d (%s) with %d transactions in %.1fms",
            height,
            block_hash,
            len(block.transactions),
            elapsed * 1000,
        )
        return block

    async def _assemble(self, height: int, block_hash: str, remote: RemoteBlock) -> Block:
        transactions = await self.resolver.resolve(remote.transaction_ids, height)
        return Block(
            height=height,
            hash=block_hash,
            timestamp=remote.timestamp,
            anchor_height=remote.anchor_height,
            transactions=transactions,
        )
