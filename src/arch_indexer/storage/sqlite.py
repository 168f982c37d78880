"""
SQLite database implementation for the index.

This backend serves development runs and the test suite:

- Blocks keyed by height, unique by hash
- Transactions keyed by txid with their runtime payload as JSON text
- Timestamps stored as Unix milliseconds

All methods are coroutines to satisfy the Database protocol, but none of them
yields to the event loop. A store_block call therefore runs its whole
transaction before any other task touches the connection.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

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
    VALUES (?, ?, ?, ?)
    ON CONFLICT (height) DO UPDATE
    SET hash = excluded.hash,
        timestamp = excluded.timestamp,
        anchor_height = excluded.anchor_height
"""

_UPSERT_TRANSACTION = f"""
    INSERT INTO {TRANSACTIONS.TABLE_NAME} (txid, block_height, data, status, settlement_ids)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT (txid) DO UPDATE
    SET block_height = excluded.block_height,
        data = excluded.data,
        status = excluded.status,
        settlement_ids = excluded.settlement_ids
"""

_SELECT_BLOCK_DETAIL = """
    SELECT b.height, b.hash, b.timestamp, b.anchor_height,
           (SELECT p.hash FROM blocks p WHERE p.height = b.height - 1) AS previous_block_hash
    FROM blocks b
"""

_SELECT_THROUGHPUT = """
    SELECT COUNT(t.txid) AS tx_count,
           MIN(b.timestamp) AS start_time,
           MAX(b.timestamp) AS end_time
    FROM blocks b
    LEFT JOIN transactions t ON t.block_height = b.height
"""


def _to_millis(value: datetime) -> int:
    return round(value.timestamp() * 1000)


def _from_millis(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


class SQLiteDatabase:
    """
    SQLite implementation of the Database protocol.

    Stores the index in a single SQLite file.
    Use ":memory:" for a throwaway database.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Open the SQLite database.

        Tables are created by initialize(), not here.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.
        """
        self._path = Path(path) if isinstance(path, str) else path

        # The connection belongs to whichever thread runs the event loop,
        # which is not necessarily the thread that opened it.
        self._conn = sqlite3.connect(
            str(self._path),
            check_same_thread=False,
        )

        # Row factory enables dict-like access: row["column_name"].
        self._conn.row_factory = sqlite3.Row

        # Transactions must always point at an existing block.
        self._conn.execute("PRAGMA foreign_keys = ON")

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        with self._conn:
            self._conn.execute(BLOCKS.SQLITE_CREATE_TABLE)
            self._conn.execute(TRANSACTIONS.SQLITE_CREATE_TABLE)
            self._conn.execute(TRANSACTIONS.CREATE_INDEX)

    async def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def store_block(self, block: Block) -> None:
        """Upsert a block and its transactions in one transaction."""
        try:
            # The connection context manager commits on success and rolls
            # back on any exception, so no partial block is ever visible.
            with self._conn:
                self._conn.execute(
                    _UPSERT_BLOCK,
                    (block.height, block.hash, _to_millis(block.timestamp), block.anchor_height),
                )
                self._conn.executemany(
                    _UPSERT_TRANSACTION,
                    [
                        (
                            tx.txid,
                            block.height,
                            json.dumps(tx.data),
                            int(tx.status),
                            json.dumps(tx.settlement_ids),
                        )
                        for tx in block.transactions
                    ],
                )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise PersistError(
                f"failed to store block {block.height}: {exc}", height=block.height
            ) from exc

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def max_height(self) -> int | None:
        """Highest stored height, or None when empty."""
        row = self._conn.execute(f"SELECT MAX(height) AS h FROM {BLOCKS.TABLE_NAME}").fetchone()
        return row["h"]

    async def get_block_by_height(self, height: int) -> BlockDetail | None:
        """Retrieve a block detail by height."""
        row = self._conn.execute(f"{_SELECT_BLOCK_DETAIL} WHERE b.height = ?", (height,)).fetchone()
        return self._block_detail(row)

    async def get_block_by_hash(self, block_hash: str) -> BlockDetail | None:
        """Retrieve a block detail by hash."""
        row = self._conn.execute(
            f"{_SELECT_BLOCK_DETAIL} WHERE b.hash = ?", (block_hash,)
        ).fetchone()
        return self._block_detail(row)

    async def recent_blocks(self, limit: int) -> list[Block]:
        """Blocks ordered by height, highest first."""
        rows = self._conn.execute(
            f"SELECT * FROM {BLOCKS.TABLE_NAME} ORDER BY height DESC LIMIT ?", (limit,)
        ).fetchall()
        return [
            Block(
                height=row["height"],
                hash=row["hash"],
                timestamp=_from_millis(row["timestamp"]),
                anchor_height=row["anchor_height"],
            )
            for row in rows
        ]

    async def get_transaction(self, txid: str) -> Transaction | None:
        """Retrieve a transaction by id."""
        row = self._conn.execute(
            f"SELECT * FROM {TRANSACTIONS.TABLE_NAME} WHERE txid = ?", (txid,)
        ).fetchone()
        return None if row is None else self._transaction(row)

    async def recent_transactions(self, limit: int) -> list[Transaction]:
        """Transactions from the highest blocks first."""
        rows = self._conn.execute(
            f"SELECT * FROM {TRANSACTIONS.TABLE_NAME} "
            "ORDER BY block_height DESC, txid LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._transaction(row) for row in rows]

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def count_transactions(self) -> int:
        """Total number of transactions."""
        row = self._conn.execute(f"SELECT COUNT(*) AS n FROM {TRANSACTIONS.TABLE_NAME}").fetchone()
        return row["n"]

    async def throughput_since(self, since: datetime) -> ThroughputWindow:
        """Transactions in blocks newer than `since`."""
        row = self._conn.execute(
            f"{_SELECT_THROUGHPUT} WHERE b.timestamp > ?", (_to_millis(since),)
        ).fetchone()
        return self._throughput(row)

    async def throughput_last_blocks(self, count: int) -> ThroughputWindow:
        """Transactions in the `count` highest blocks."""
        row = self._conn.execute(
            f"{_SELECT_THROUGHPUT} WHERE b.height > (SELECT MAX(height) - ? FROM blocks)",
            (count,),
        ).fetchone()
        return self._throughput(row)

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    def _block_detail(self, row: sqlite3.Row | None) -> BlockDetail | None:
        if row is None:
            return None

        txids = self._conn.execute(
            f"SELECT txid FROM {TRANSACTIONS.TABLE_NAME} WHERE block_height = ? ORDER BY txid",
            (row["height"],),
        ).fetchall()

        return BlockDetail(
            height=row["height"],
            hash=row["hash"],
            timestamp=_from_millis(row["timestamp"]),
            anchor_height=row["anchor_height"],
            previous_block_hash=row["previous_block_hash"],
            transactions=[r["txid"] for r in txids],
        )

    @staticmethod
    def _transaction(row: sqlite3.Row) -> Transaction:
        data: dict[str, Any] = json.loads(row["data"])
        return Transaction(
            txid=row["txid"],
            block_height=row["block_height"],
            data=data,
            status=TransactionStatus(row["status"]),
            settlement_ids=json.loads(row["settlement_ids"]),
        )

    @staticmethod
    def _throughput(row: sqlite3.Row) -> ThroughputWindow:
        return ThroughputWindow(
            tx_count=row["tx_count"],
            start=_from_millis(row["start_time"]),
            end=_from_millis(row["end_time"]),
        )
