"""
Storage module for the block and transaction index.

Provides the database abstraction used by the sync engine and the read API.
SQLite backs development runs and tests; PostgreSQL backs production.
"""

from .database import Database
from .namespaces import BlockNamespace, TransactionNamespace
from .postgres import PoolConfig, PostgresDatabase
from .sqlite import SQLiteDatabase

__all__ = [
    "BlockNamespace",
    "Database",
    "PoolConfig",
    "PostgresDatabase",
    "SQLiteDatabase",
    "TransactionNamespace",
]
