"""
Indexer orchestrator.

Wires the node client, the database, the sync service and the read API
together and runs them until shutdown.

Startup
-------
1. Connect to the database, retrying a fixed number of times
2. Create the schema if it does not exist
3. Seed the frontier from the highest stored height
4. Start the sync loop and the API server side by side

A database that stays unreachable aborts startup with StartupError.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sqlite3
from dataclasses import dataclass, field
from typing import Final

import asyncpg

from arch_indexer.api import ApiServer
from arch_indexer.config import DatabaseConfig, IndexerConfig
from arch_indexer.exceptions import StartupError
from arch_indexer.node import ArchRpcClient, NodeClient
from arch_indexer.storage import Database, PoolConfig, PostgresDatabase, SQLiteDatabase
from arch_indexer.sync import SyncService

logger = logging.getLogger(__name__)

CONNECT_ATTEMPTS: Final = 10
"""Database connection attempts before startup is aborted."""

CONNECT_RETRY_DELAY: Final = 5.0
"""Seconds between database connection attempts."""

POOL_STATUS_INTERVAL: Final = 30.0
"""Seconds between pool status log lines."""


async def _open_database(config: DatabaseConfig, pool: PoolConfig) -> Database:
    if config.sqlite_path is not None:
        return SQLiteDatabase(config.sqlite_path)
    return await PostgresDatabase.connect(pool_config=pool, **config.connect_kwargs())


async def connect_database(
    config: DatabaseConfig,
    pool: PoolConfig | None = None,
    *,
    attempts: int = CONNECT_ATTEMPTS,
    delay: float = CONNECT_RETRY_DELAY,
) -> Database:
    """
    Open the configured database, retrying on connection failures.

    Raises:
        StartupError: Every attempt failed.
    """
    pool = pool or PoolConfig()

    for attempt in range(1, attempts + 1):
        try:
            database = await _open_database(config, pool)
        except (OSError, TimeoutError, asyncpg.PostgresError, sqlite3.Error) as exc:
            logger.error(
                "Failed to connect to the database. Attempt %d/%d. Retrying in %.0f seconds... (%s)",
                attempt,
                attempts,
                delay,
                exc,
            )
            if attempt < attempts:
                await asyncio.sleep(delay)
            continue

        logger.info("Successfully connected to the database")
        return database

    raise StartupError(f"database unreachable after {attempts} attempts")


@dataclass(slots=True)
class Indexer:
    """
    The running indexer.

    Owns every long-lived component. Create with `Indexer.create(config)`.
    """

    config: IndexerConfig
    """Effective configuration."""

    client: NodeClient
    """Node the sync service reads from."""

    database: Database
    """Index storage."""

    sync_service: SyncService
    """Ingestion loop."""

    api_server: ApiServer
    """Read API."""

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Set when shutdown is requested."""

    @classmethod
    async def create(
        cls,
        config: IndexerConfig,
        *,
        client: NodeClient | None = None,
        database: Database | None = None,
    ) -> Indexer:
        """
        Connect, prepare the schema and seed the frontier.

        Args:
            config: Indexer configuration.
            client: Node client override. Defaults to an ArchRpcClient on
                `config.node_url`.
            database: Database override. Defaults to the configured backend.

        Raises:
            StartupError: The database could not be reached.
        """
        if database is None:
            database = await connect_database(config.database, config.pool)
        await database.initialize()

        if client is None:
            client = ArchRpcClient(config.node_url, timeout=config.node_timeout)

        sync_service = SyncService(
            client=client,
            database=database,
            batch_size=config.sync.batch_size,
            concurrent_batches=config.sync.concurrent_batches,
            tx_batch_size=config.sync.tx_batch_size,
        )
        await sync_service.load_frontier()

        api_server = ApiServer(
            config=config.api,
            database=database,
            sync_service=sync_service,
        )

        return cls(
            config=config,
            client=client,
            database=database,
            sync_service=sync_service,
            api_server=api_server,
        )

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Run all services until shutdown.

        Returns when shutdown is requested or a service fails.

        Args:
            install_signal_handlers: Whether to handle SIGINT/SIGTERM.
                Disable for testing or non-main threads.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        # A separate task monitors the shutdown signal and stops the others.
        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self.sync_service.run())
                tg.create_task(self.api_server.run())
                if isinstance(self.database, PostgresDatabase):
                    tg.create_task(self._log_pool_status(self.database))
                tg.create_task(self._wait_shutdown())
        finally:
            if isinstance(self.client, ArchRpcClient):
                await self.client.close()
            await self.database.close()

    def _install_signal_handlers(self) -> None:
        """
        Install signal handlers for graceful shutdown.

        Handles SIGINT (Ctrl+C) and SIGTERM (process termination).

        Silently ignores errors if handlers cannot be installed.
        This happens in non-main threads or embedded contexts.
        """
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._shutdown.set)
        except (ValueError, RuntimeError, NotImplementedError):
            # Cannot add handlers outside main thread.
            pass

    async def _wait_shutdown(self) -> None:
        """Wait for shutdown signal then stop services."""
        await self._shutdown.wait()
        logger.info("Shutting down")
        self.sync_service.stop()
        self.api_server.stop()

    async def _log_pool_status(self, database: PostgresDatabase) -> None:
        """Log pool size and idle connections until shutdown."""
        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=POOL_STATUS_INTERVAL)
            except TimeoutError:
                size, idle = database.pool_status()
                logger.info("Pool status: %d connections, %d idle", size, idle)

    def stop(self) -> None:
        """
        Request graceful shutdown.

        Signals the indexer to stop all services and exit.
        """
        self._shutdown.set()

    @property
    def is_running(self) -> bool:
        """Check if the indexer is currently running."""
        return not self._shutdown.is_set()
