"""
PostgreSQL database implementation for the index.

Production backend. All access goes through one asyncpg connection pool:

- Each store_block call acquires one connection for the lifetime of its
  transaction and releases it on commit or rollback.
- The pool recycles idle connections and retires a connection after a fixed
  number of queries.

JSONB columns are decoded to Python objects by a codec installed on every
new connection.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import asyncpg

from arch_indexer.exceptions import PersistError
from arch_indexer.types import (
    Block,
    BlockDetail,
    ThroughputWindow,
    Transaction,
    TransactionStatus,
)

from .namespaces import BLOCKS, TRANSACTIONS

logger = logging.getLogger(__name__)

_UPSERT_BLOCK = f"""
    INSERT INTO {BLOCKS.TABLE_NAME} (height, hash, timestamp, anchor_height)
    VALUES ($1, $2, $3, $4)
    ON CONFLICT (height) DO UPDATE
    SET hash = EXCLUDED.hash,
        timestamp = EXCLUDED.timestamp,
        anchor_height = EXCLUDED.anchor_height
"""

_UPSERT_TRANSACTION = f"""
    INSERT INTO {TRANSACTIONS.TABLE_NAME} (txid, block_height, data, status, settlement_ids)
    VALUES ($1, $2, $3, $4, $5)
    ON CONFLICT (txid) DO UPDATE
    SET block_height = EXCLUDED.block_height,
        data = EXCLUDED.data,
        status = EXCLUDED.status,
        settlement_ids = EXCLUDED.settlement_ids
"""

_SELECT_BLOCK_DETAIL = """
    SELECT b.height, b.hash, b.timestamp, b.anchor_height,
           (SELECT p.hash FROM blocks p WHERE p.height = b.height - 1) AS previous_block_hash,
           ARRAY(
               SELECT t.txid FROM transactions t
               WHERE t.block_height = b.height ORDER BY t.txid
           ) AS txids
    FROM blocks b
"""

_SELECT_THROUGHPUT = """
    SELECT COUNT(t.txid) AS tx_count,
           MIN(b.timestamp) AS start_time,
           MAX(b.timestamp) AS end_time
    FROM blocks b
    LEFT JOIN transactions t ON t.block_height = b.height
"""


@dataclass(frozen=True, slots=True)
class PoolConfig:
    """Connection pool sizing and recycling."""

    min_size: int = 5
    """Connections opened eagerly and kept alive."""

    max_size: int = 20
    """Upper bound on concurrent connections."""

    max_inactive_connection_lifetime: float = 30.0
    """Seconds an idle connection is kept before being closed."""

    max_queries: int = 7500
    """Queries served by one connection before it is replaced."""

    timeout: float = 10.0
    """Seconds to wait when opening a connection."""


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Install the JSONB codec on a fresh pooled connection."""
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


class PostgresDatabase:
    """
    PostgreSQL implementation of the Database protocol.

    Create with `await PostgresDatabase.connect(...)`; the constructor only
    wraps an existing pool.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @classmethod
    async def connect(
        cls,
        dsn: str | None = None,
        *,
        pool_config: PoolConfig | None = None,
        **connect_kwargs: Any,
    ) -> PostgresDatabase:
        """
        Open a connection pool.

        Args:
            dsn: libpq connection string. May be None when host, user, etc.
                are given as keyword arguments.
            pool_config: Pool sizing. Defaults to PoolConfig().
            **connect_kwargs: Passed to asyncpg (host, port, user, password,
                database).

        Raises:
            OSError, asyncpg.PostgresError: The first connections could not be
                opened. Startup code retries on these.
        """
        pool_config = pool_config or PoolConfig()
        pool = await asyncpg.create_pool(
            dsn,
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
            max_inactive_connection_lifetime=pool_config.max_inactive_connection_lifetime,
            max_queries=pool_config.max_queries,
            timeout=pool_config.timeout,
            init=_init_connection,
            **connect_kwargs,
        )
        return cls(pool)

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(BLOCKS.POSTGRES_CREATE_TABLE)
                await conn.execute(TRANSACTIONS.POSTGRES_CREATE_TABLE)
                await conn.execute(TRANSACTIONS.CREATE_INDEX)

    async def close(self) -> None:
        """Close every pooled connection."""
        await self._pool.close()

    def pool_status(self) -> tuple[int, int]:
        """Return (total, idle) connection counts."""
        return self._pool.get_size(), self._pool.get_idle_size()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def store_block(self, block: Block) -> None:
        """Upsert a block and its transactions in one transaction."""
        try:
            async with self._pool.acquire() as conn:
                # The block row goes first so readers never see a transaction
                # without its parent block.
                async with conn.transaction():
                    await conn.execute(
                        _UPSERT_BLOCK,
                        block.height,
                        block.hash,
                        block.timestamp,
                        block.anchor_height,
                    )
                    if block.transactions:
                        await conn.executemany(
                            _UPSERT_TRANSACTION,
                            [
                                (
                                    tx.txid,
                                    block.height,
                                    tx.data,
                                    int(tx.status),
                                    tx.settlement_ids,
                                )
                                for tx in block.transactions
                            ],
                        )
        except (
            asyncpg.PostgresError,
            asyncpg.InterfaceError,
            OSError,
            TypeError,
            ValueError,
        ) as exc:
            raise PersistError(
                f"failed to store block {block.height}: {exc}", height=block.height
            ) from exc

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def max_height(self) -> int | None:
        """Highest stored height, or None when empty."""
        return await self._pool.fetchval(f"SELECT MAX(height) FROM {BLOCKS.TABLE_NAME}")

    async def get_block_by_height(self, height: int) -> BlockDetail | None:
        """Retrieve a block detail by height."""
        row = await self._pool.fetchrow(f"{_SELECT_BLOCK_DETAIL} WHERE b.height = $1", height)
        return None if row is None else self._block_detail(row)

    async def get_block_by_hash(self, block_hash: str) -> BlockDetail | None:
        """Retrieve a block detail by hash."""
        row = await self._pool.fetchrow(f"{_SELECT_BLOCK_DETAIL} WHERE b.hash = $1", block_hash)
        return None if row is None else self._block_detail(row)

    async def recent_blocks(self, limit: int) -> list[Block]:
        """Blocks ordered by height, highest first."""
        rows = await self._pool.fetch(
            f"SELECT * FROM {BLOCKS.TABLE_NAME} ORDER BY height DESC LIMIT $1", limit
        )
        return [
            Block(
                height=row["height"],
                hash=row["hash"],
                timestamp=row["timestamp"],
                anchor_height=row["anchor_height"],
            )
            for row in rows
        ]

    async def get_transaction(self, txid: str) -> Transaction | None:
        """Retrieve a transaction by id."""
        row = await self._pool.fetchrow(
            f"SELECT * FROM {TRANSACTIONS.TABLE_NAME} WHERE txid = $1", txid
        )
        return None if row is None else self._transaction(row)

    async def recent_transactions(self, limit: int) -> list[Transaction]:
        """Transactions from the highest blocks first."""
        rows = await self._pool.fetch(
            f"SELECT * FROM {TRANSACTIONS.TABLE_NAME} "
            "ORDER BY block_height DESC, txid LIMIT $1",
            limit,
        )
        return [self._transaction(row) for row in rows]

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def count_transactions(self) -> int:
        """Total number of transactions."""
        return await self._pool.fetchval(f"SELECT COUNT(*) FROM {TRANSACTIONS.TABLE_NAME}")

    async def throughput_since(self, since: datetime) -> ThroughputWindow:
        """Transactions in blocks newer than `since`."""
        row = await self._pool.fetchrow(f"{_SELECT_THROUGHPUT} WHERE b.timestamp > $1", since)
        return self._throughput(row)

    async def throughput_last_blocks(self, count: int) -> ThroughputWindow:
        """Transactions in the `count` highest blocks."""
        row = await self._pool.fetchrow(
            f"{_SELECT_THROUGHPUT} WHERE b.height > (SELECT MAX(height) - $1 FROM blocks)",
            count,
        )
        return self._throughput(row)

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _block_detail(row: asyncpg.Record) -> BlockDetail:
        return BlockDetail(
            height=row["height"],
            hash=row["hash"],
            timestamp=row["timestamp"],
            anchor_height=row["anchor_height"],
            previous_block_hash=row["previous_block_hash"],
            transactions=list(row["txids"]),
        )

    @staticmethod
    def _transaction(row: asyncpg.Record) -> Transaction:
        return Transaction(
            txid=row["txid"],
            block_height=row["block_height"],
            data=row["data"],
            status=TransactionStatus(row["status"]),
            settlement_ids=list(row["settlement_ids"]),
        )

    @staticmethod
    def _throughput(row: asyncpg.Record) -> ThroughputWindow:
        return ThroughputWindow(
            tx_count=row["tx_count"],
            start=row["start_time"],
            end=row["end_time"],
        )
