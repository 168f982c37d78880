"""
Abstract database interface for the index.

Defines the Protocol that all database implementations must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from datetime import datetime

    from arch_indexer.types import Block, BlockDetail, ThroughputWindow, Transaction


class Database(Protocol):
    """
    Protocol for index storage.

    All database implementations must provide these methods.
    Uses structural subtyping - any class with matching methods satisfies the protocol.

    Storage Organization
    --------------------
    - Blocks: Keyed by height, unique by hash
    - Transactions: Keyed by txid, pointing at their block height
    """

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create tables and indexes if they don't exist."""
        ...

    async def close(self) -> None:
        """Close connections and release resources."""
        ...

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def store_block(self, block: Block) -> None:
        """
        Store a block and its transactions atomically.

        Upserts the block row keyed on height, then every transaction keyed
        on txid, in one database transaction. Re-storing the same block
        overwrites the previous values in place.

        Args:
            block: Block carrying its resolved transactions.

        Raises:
            PersistError: The write failed and was rolled back entirely.
        """
        ...

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def max_height(self) -> int | None:
        """
        Highest stored block height.

        Returns:
            The maximum height, or None when no block is stored.
        """
        ...

    async def get_block_by_height(self, height: int) -> BlockDetail | None:
        """
        Retrieve a block with its transaction ids by height.

        Returns:
            Block detail if found, None otherwise.
        """
        ...

    async def get_block_by_hash(self, block_hash: str) -> BlockDetail | None:
        """
        Retrieve a block with its transaction ids by hash.

        Returns:
            Block detail if found, None otherwise.
        """
        ...

    async def recent_blocks(self, limit: int) -> list[Block]:
        """Return up to `limit` blocks, highest first."""
        ...

    async def get_transaction(self, txid: str) -> Transaction | None:
        """
        Retrieve a transaction by id.

        Returns:
            Transaction if found, None otherwise.
        """
        ...

    async def recent_transactions(self, limit: int) -> list[Transaction]:
        """Return up to `limit` transactions from the highest blocks first."""
        ...

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def count_transactions(self) -> int:
        """Total number of stored transactions."""
        ...

    async def throughput_since(self, since: datetime) -> ThroughputWindow:
        """Transactions in blocks with a timestamp after `since`."""
        ...

    async def throughput_last_blocks(self, count: int) -> ThroughputWindow:
        """Transactions in the `count` highest stored blocks."""
        ...
