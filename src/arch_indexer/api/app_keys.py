"""Typed application keys shared by the server and its handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from aiohttp import web

if TYPE_CHECKING:
    from arch_indexer.storage import Database
    from arch_indexer.sync import SyncService

DATABASE: web.AppKey[Database] = web.AppKey("database")
"""Index the read endpoints query."""

SYNC_SERVICE: web.AppKey[SyncService | None] = web.AppKey("sync_service")
"""Running sync service, or None when the API is served on its own."""
