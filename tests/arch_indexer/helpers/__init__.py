"""Test helpers for arch_indexer unit tests."""

from __future__ import annotations

from .builders import GENESIS_TIME, make_block, make_transaction
from .mocks import FakeNodeClient, block_hash_for

__all__ = [
    # Builders
    "GENESIS_TIME",
    "make_block",
    "make_transaction",
    # Mocks
    "FakeNodeClient",
    "block_hash_for",
]
