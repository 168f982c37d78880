"""
Shared pytest fixtures for all arch_indexer tests.

Provides core fixtures used across multiple test modules.
Import these fixtures automatically via pytest discovery.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from arch_indexer.storage import SQLiteDatabase
from tests.arch_indexer.helpers import FakeNodeClient


@pytest.fixture
async def db() -> AsyncGenerator[SQLiteDatabase, None]:
    """In-memory SQLite index with the schema created."""
    database = SQLiteDatabase(":memory:")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def node() -> FakeNodeClient:
    """Fake node with an empty chain."""
    return FakeNodeClient()
