"""Mock implementations for testing the sync engine."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from arch_indexer.exceptions import FetchError, NodeUnavailable
from arch_indexer.node import RemoteBlock, RemoteTransaction

GENESIS_MILLIS = 1_700_000_000_000
"""Timestamp of height 0 in the fake chain."""

BLOCK_INTERVAL_MILLIS = 1_000
"""Spacing between fake blocks."""


def block_hash_for(height: int) -> str:
    """Deterministic hash of the fake block at `height`."""
    return f"{height:064x}"


class FakeNodeClient:
    """
    In-memory node that serves a configurable chain.

    Failure injection:
        ready: Value returned by is_ready().
        unavailable: When True, every call raises NodeUnavailable.
        failing_heights: block_hash() raises FetchError for these heights.
        failing_txids: transaction() raises FetchError for these ids.
    """

    def __init__(self) -> None:
        """Initialize with an empty chain and no failures."""
        self.blocks: dict[str, RemoteBlock] = {}
        self.hashes: dict[int, str] = {}
        self.transactions: dict[str, RemoteTransaction] = {}
        self.ready: bool = True
        self.unavailable: bool = False
        self.failing_heights: set[int] = set()
        self.failing_txids: set[str] = set()
        self.calls: list[tuple[str, Any]] = []
        self.in_flight_transactions = 0
        self.max_in_flight_transactions = 0

    # -------------------------------------------------------------------------
    # Chain construction
    # -------------------------------------------------------------------------

    def add_block(
        self,
        height: int,
        txids: Iterable[str] = (),
        *,
        status: Any = "Processed",
        settlement_ids: list[str] | None = None,
    ) -> str:
        """Add a block and its transactions. Returns the block hash."""
        block_hash = block_hash_for(height)
        txids = list(txids)
        self.hashes[height] = block_hash
        self.blocks[block_hash] = RemoteBlock.model_validate(
            {
                "timestamp": GENESIS_MILLIS + height * BLOCK_INTERVAL_MILLIS,
                "bitcoin_block_height": 800_000 + height,
                "transactions": txids,
            }
        )
        for txid in txids:
            self.transactions[txid] = RemoteTransaction.model_validate(
                {
                    "runtime_transaction": {"version": 0, "txid": txid},
                    "status": status,
                    "bitcoin_txids": settlement_ids,
                }
            )
        return block_hash

    def add_chain(self, count: int, txs_per_block: int = 0) -> None:
        """Add heights 0..count-1, each with `txs_per_block` transactions."""
        for height in range(count):
            self.add_block(height, [f"tx-{height}-{i}" for i in range(txs_per_block)])

    # -------------------------------------------------------------------------
    # NodeClient protocol
    # -------------------------------------------------------------------------

    def _check_available(self, method: str, arg: Any = None) -> None:
        self.calls.append((method, arg))
        if self.unavailable:
            raise NodeUnavailable(f"{method}: node unreachable")

    async def is_ready(self) -> bool:
        """Return the configured readiness."""
        self._check_available("is_ready")
        return self.ready

    async def chain_height(self) -> int:
        """Highest height in the fake chain."""
        self._check_available("chain_height")
        return max(self.hashes, default=-1)

    async def block_hash(self, height: int) -> str:
        """Hash of the block at `height`."""
        self._check_available("block_hash", height)
        await asyncio.sleep(0)
        if height in self.failing_heights or height not in self.hashes:
            raise FetchError(f"no hash for height {height}", height=height)
        return self.hashes[height]

    async def block(self, block_hash: str) -> RemoteBlock:
        """Block body for `block_hash`."""
        self._check_available("block", block_hash)
        await asyncio.sleep(0)
        if block_hash not in self.blocks:
            raise FetchError(f"unknown block {block_hash}")
        return self.blocks[block_hash]

    async def transaction(self, txid: str) -> RemoteTransaction:
        """Processed transaction `txid`."""
        self._check_available("transaction", txid)
        self.in_flight_transactions += 1
        self.max_in_flight_transactions = max(
            self.max_in_flight_transactions, self.in_flight_transactions
        )
        try:
            await asyncio.sleep(0)
            if txid in self.failing_txids or txid not in self.transactions:
                raise FetchError(f"unknown transaction {txid}", txid=txid)
            return self.transactions[txid]
        finally:
            self.in_flight_transactions -= 1

    def calls_to(self, method: str) -> list[Any]:
        """Arguments of every recorded call to `method`."""
        return [arg for name, arg in self.calls if name == method]
