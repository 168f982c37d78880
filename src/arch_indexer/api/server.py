"""
HTTP read API over the index.

Provides HTTP endpoints for:
- / - Service banner
- /health - Health check endpoint
- /metrics - Prometheus metrics endpoint
- /api/blocks, /api/transactions - Indexed blocks and transactions
- /api/sync-status, /api/network-stats - Progress and throughput
- /api/search - Lookup by txid, block hash or height

Every response carries a permissive CORS header. Unexpected failures in a
handler become a 500 with a generic JSON error body.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from aiohttp import web
from aiohttp.typedefs import Handler

from .app_keys import DATABASE, SYNC_SERVICE
from .routes import ROUTES

if TYPE_CHECKING:
    from arch_indexer.storage import Database
    from arch_indexer.sync import SyncService

logger = logging.getLogger(__name__)


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Allow any origin to read the API."""
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers["Access-Control-Allow-Origin"] = "*"
        raise
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn unexpected handler failures into a generic 500 response."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("Error serving %s %s", request.method, request.path)
        return web.json_response({"error": "Internal server error"}, status=500)


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Configuration for the API server."""

    host: str = "0.0.0.0"
    """Host address to bind to."""

    port: int = 3003
    """Port to listen on."""

    enabled: bool = True
    """Whether the API server is enabled."""


@dataclass(slots=True)
class ApiServer:
    """
    HTTP API server for the index.

    Reads go straight to the database. Sync progress comes from the sync
    service's in-memory state, so the status endpoints never wait on the node.

    Uses aiohttp to handle HTTP protocol details efficiently.
    """

    config: ApiServerConfig
    """Server configuration."""

    database: Database
    """Index to serve."""

    sync_service: SyncService | None = None
    """Sync service whose progress is reported, if one is running."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """The aiohttp application runner."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """The TCP site for the server."""

    def build_app(self) -> web.Application:
        """Create the aiohttp application with every route and middleware."""
        app = web.Application(middlewares=[cors_middleware, error_middleware])
        app[DATABASE] = self.database
        app[SYNC_SERVICE] = self.sync_service
        app.add_routes([web.get(path, handler) for path, handler in ROUTES.items()])
        return app

    async def start(self) -> None:
        """Start the API server in the background."""
        if not self.config.enabled:
            logger.info("API server is disabled")
            return

        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        logger.info("API server listening on %s:%d", self.config.host, self.config.port)

    async def run(self) -> None:
        """
        Run the API server until shutdown.

        This method blocks until stop() is called.
        """
        await self.start()

        # Keep running until stopped
        while self._runner is not None:
            await asyncio.sleep(1)

    def stop(self) -> None:
        """Request graceful shutdown."""
        if self._runner is not None:
            asyncio.create_task(self._async_stop())

    async def _async_stop(self) -> None:
        """Gracefully stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("API server stopped")
