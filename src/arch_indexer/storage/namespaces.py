"""
Database namespace definitions for storage tables.

Defines table names and schema constants for both SQL dialects.
Each namespace represents one table of the persisted schema.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BlockNamespace:
    """
    Namespace for block rows.

    One row per height. The hash is unique as well, so lookups by hash hit an
    index.
    """

    TABLE_NAME: str = "blocks"
    """Table name for block storage."""

    SQLITE_CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS blocks (
            height INTEGER PRIMARY KEY,
            hash TEXT NOT NULL UNIQUE,
            timestamp INTEGER NOT NULL,
            anchor_height INTEGER NOT NULL
        )
    """
    """SQLite DDL. Timestamps are Unix milliseconds."""

    POSTGRES_CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS blocks (
            height BIGINT PRIMARY KEY,
            hash TEXT NOT NULL UNIQUE,
            timestamp TIMESTAMPTZ NOT NULL,
            anchor_height BIGINT NOT NULL
        )
    """
    """PostgreSQL DDL."""


@dataclass(frozen=True, slots=True)
class TransactionNamespace:
    """
    Namespace for transaction rows.

    Keyed by txid. Each row points at its parent block, which is always
    written first inside the same database transaction.
    """

    TABLE_NAME: str = "transactions"
    """Table name for transaction storage."""

    SQLITE_CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS transactions (
            txid TEXT PRIMARY KEY,
            block_height INTEGER NOT NULL REFERENCES blocks(height),
            data TEXT NOT NULL,
            status INTEGER NOT NULL,
            settlement_ids TEXT NOT NULL DEFAULT '[]'
        )
    """
    """SQLite DDL. `data` and `settlement_ids` hold JSON text."""

    POSTGRES_CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS transactions (
            txid TEXT PRIMARY KEY,
            block_height BIGINT NOT NULL REFERENCES blocks(height),
            data JSONB NOT NULL,
            status SMALLINT NOT NULL,
            settlement_ids TEXT[] NOT NULL DEFAULT '{}'
        )
    """
    """PostgreSQL DDL."""

    CREATE_INDEX: str = """
        CREATE INDEX IF NOT EXISTS idx_transactions_block_height
        ON transactions(block_height)
    """
    """Index for per-block lookups. Valid in both dialects."""


BLOCKS = BlockNamespace()
TRANSACTIONS = TransactionNamespace()
