"""
Transaction resolution.

A block body only lists transaction ids. The resolver fetches each processed
transaction from the node and normalizes it into the stored shape.

Ids are fetched in sub-batches. Sub-batches run one after another; the ids
inside a sub-batch are fetched concurrently. This bounds the number of open
requests a single large block can create.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from arch_indexer.exceptions import FetchError, NodeUnavailable
from arch_indexer.node import NodeClient, RemoteTransaction
from arch_indexer.types import Transaction, TransactionStatus

from .config import TX_BATCH_SIZE

logger = logging.getLogger(__name__)


def normalize_transaction(txid: str, block_height: int, remote: RemoteTransaction) -> Transaction:
    """Convert a node transaction into its stored form."""
    return Transaction(
        txid=txid,
        block_height=block_height,
        data=dict(remote.payload),
        status=TransactionStatus.from_remote(remote.status),
        settlement_ids=list(remote.settlement_ids or []),
    )


@dataclass(slots=True)
class TransactionResolver:
    """Fetches and normalizes the transactions of one block."""

    client: NodeClient
    """Node to fetch from."""

    batch_size: int = TX_BATCH_SIZE
    """Ids fetched concurrently per sub-batch."""

    async def resolve(self, txids: Sequence[str], block_height: int) -> list[Transaction]:
        """
        Resolve every id, preserving input order.

        Args:
            txids: Transaction ids in block order.
            block_height: Height of the containing block.

        Returns:
            One Transaction per id, in the same order as `txids`.

        Raises:
            FetchError: Any id could not be fetched. The remaining fetches of
                its sub-batch are cancelled.
        """
        resolved: list[Transaction] = []

        for start in range(0, len(txids), self.batch_size):
            chunk = txids[start : start + self.batch_size]
            try:
                async with asyncio.TaskGroup() as tg:
                    tasks = [tg.create_task(self._fetch(txid, block_height)) for txid in chunk]
            except ExceptionGroup as eg:
                failures = eg.subgroup(FetchError)
                if failures is None:
                    raise
                raise failures.exceptions[0] from eg

            resolved.extend(task.result() for task in tasks)

        return resolved

    async def _fetch(self, txid: str, block_height: int) -> Transaction:
        try:
            remote = await self.client.transaction(txid)
        except NodeUnavailable as exc:
            raise FetchError(exc.message, height=block_height, txid=txid) from exc
        return normalize_transaction(txid, block_height, remote)
