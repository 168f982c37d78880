"""
Sync service orchestrator.

This is the main control loop of the indexer.

The Core Problem
----------------
The node holds the full chain. The index starts empty, or wherever the last
run stopped. The service has to copy every block and its transactions into
the database, as fast as the node allows, and then keep up with new blocks.

How It Works
------------
The service keeps one number, the frontier: the next height not yet stored.
Each iteration:

1. Asks the node whether it is ready, and how high the chain is
2. Splits [frontier, chain height] into contiguous windows
3. Processes the first few windows concurrently, every height in a window
   concurrently
4. Moves the frontier past the last window only if every height succeeded

A failed height fails its round. Nothing from that round moves the frontier.
Heights that were stored anyway are harmless: storing a block is idempotent,
and the retry stores them again.

State Machine
-------------
::

    AWAITING_NODE --> CATCHING_UP <--> SYNCED
          ^                |             |
          +----------------+-------------+

- **AWAITING_NODE**: Node not ready or unreachable. Poll every 5s.
- **CATCHING_UP**: Blocks remain. Run rounds back to back.
- **SYNCED**: Frontier past the chain height. Poll every second.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from arch_indexer import metrics
from arch_indexer.exceptions import NodeUnavailable
from arch_indexer.node import NodeClient
from arch_indexer.storage import Database

from .config import (
    BATCH_SIZE,
    CATCH_UP_DELAY,
    CONCURRENT_BATCHES,
    NODE_RETRY_DELAY,
    ROUND_RETRY_DELAY,
    SYNCED_POLL_DELAY,
    TX_BATCH_SIZE,
)
from .processor import BlockProcessor
from .progress import ProgressTracker
from .resolver import TransactionResolver
from .states import SyncState

logger = logging.getLogger(__name__)


def plan_windows(
    frontier: int,
    chain_height: int,
    batch_size: int,
    concurrent_batches: int,
) -> list[tuple[int, int]]:
    """
    Split the pending heights into the windows of one round.

    Windows are contiguous, inclusive on both ends, start at the frontier,
    and never extend past the chain height.

    Args:
        frontier: First height to ingest.
        chain_height: Highest height the node knows.
        batch_size: Heights per window.
        concurrent_batches: Maximum windows in the round.

    Returns:
        (start, end) pairs in ascending order. Empty when nothing is pending.
    """
    windows: list[tuple[int, int]] = []
    start = frontier
    while start <= chain_height and len(windows) < concurrent_batches:
        end = min(start + batch_size - 1, chain_height)
        windows.append((start, end))
        start = end + 1
    return windows


def _leaf_errors(group: BaseExceptionGroup) -> list[BaseException]:
    """Flatten nested exception groups into their leaf exceptions."""
    leaves: list[BaseException] = []
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            leaves.extend(_leaf_errors(exc))
        else:
            leaves.append(exc)
    return leaves


@dataclass(slots=True)
class SyncProgress:
    """
    Current synchronization progress.

    Provides a snapshot of sync state for the status endpoint and logging.
    """

    state: SyncState
    """Current sync state machine state."""

    frontier: int
    """Next height to ingest."""

    chain_height: int | None
    """Last chain height reported by the node. None before the first poll."""

    percent_complete: float
    """Indexed share of the chain, 0 to 100."""

    is_synced: bool
    """Whether every known height is stored."""

    estimated_time_remaining: timedelta
    """Projected time to reach the chain height at the current pace."""

    elapsed: timedelta
    """Time since the service started."""

    average_block_millis: float | None
    """Smoothed per-block processing time."""

    last_block_at: datetime | None = None
    """When the most recent block was stored."""


@dataclass(slots=True)
class SyncService:
    """
    Main synchronization orchestrator.

    Owns the frontier and the state machine. Block work is delegated to a
    BlockProcessor; the service only decides which heights run and whether
    the frontier may move.

    The frontier is only ever written here, and only increases.
    """

    client: NodeClient
    """Node to ingest from."""

    database: Database
    """Destination of ingested blocks."""

    batch_size: int = BATCH_SIZE
    """Heights per window."""

    concurrent_batches: int = CONCURRENT_BATCHES
    """Maximum windows per round."""

    tx_batch_size: int = TX_BATCH_SIZE
    """Transactions fetched concurrently per sub-batch."""

    frontier: int = 0
    """Next height to ingest."""

    chain_height: int | None = None
    """Last chain height reported by the node."""

    tracker: ProgressTracker = field(default_factory=ProgressTracker)
    """Smoothed per-block timing."""

    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    """When the service was created."""

    processor: BlockProcessor | None = field(default=None)
    """Block processor. Built from the other fields when not supplied."""

    _state: SyncState = field(default=SyncState.AWAITING_NODE)
    """Current sync state."""

    _running: bool = field(default=False, repr=False)
    """Whether the run loop is active."""

    def __post_init__(self) -> None:
        """Build the block processor from the shared dependencies."""
        if self.processor is None:
            self.processor = BlockProcessor(
                client=self.client,
                database=self.database,
                resolver=TransactionResolver(self.client, batch_size=self.tx_batch_size),
                tracker=self.tracker,
            )

    @property
    def state(self) -> SyncState:
        """Current sync state."""
        return self._state

    @property
    def is_synced(self) -> bool:
        """Whether every height up to the last known chain height is stored."""
        return self.chain_height is not None and self.frontier > self.chain_height

    async def load_frontier(self) -> int:
        """
        Seed the frontier from the database.

        Resumes one past the highest stored height, or at genesis when the
        index is empty.
        """
        highest = await self.database.max_height()
        self.frontier = 0 if highest is None else highest + 1
        metrics.sync_frontier.set(self.frontier)
        logger.info("Sync frontier starts at %d", self.frontier)
        return self.frontier

    async def step(self) -> float:
        """
        Run one loop iteration.

        Returns:
            Seconds to wait before the next iteration.
        """
        try:
            ready = await self.client.is_ready()
            if not ready:
                return self._node_unavailable("node reports not ready")
            chain_height = await self.client.chain_height()
        except NodeUnavailable as exc:
            return self._node_unavailable(exc.message)
        except Exception as exc:
            # Unexpected client errors are treated as an unreachable node.
            logger.exception("Unexpected error polling the node")
            return self._node_unavailable(f"{type(exc).__name__}: {exc}")

        self.chain_height = chain_height
        metrics.chain_height.set(chain_height)

        if self.frontier > chain_height:
            self._transition_to(SyncState.SYNCED)
            return SYNCED_POLL_DELAY

        self._transition_to(SyncState.CATCHING_UP)

        if not await self.run_round():
            return ROUND_RETRY_DELAY

        if self.frontier > chain_height:
            self._transition_to(SyncState.SYNCED)
            return SYNCED_POLL_DELAY
        return CATCH_UP_DELAY

    async def run_round(self) -> bool:
        """
        Ingest up to `concurrent_batches` windows starting at the frontier.

        Returns:
            True if every height succeeded and the frontier moved.
            False if the round was discarded.
        """
        if self.chain_height is None:
            return False

        windows = plan_windows(
            self.frontier, self.chain_height, self.batch_size, self.concurrent_batches
        )
        if not windows:
            return True

        first, last = windows[0][0], windows[-1][1]

        # Any failure cancels every other height of the round.
        try:
            async with asyncio.TaskGroup() as tg:
                for start, end in windows:
                    tg.create_task(self._run_window(start, end))
        except ExceptionGroup as eg:
            errors = _leaf_errors(eg)
            metrics.rounds_failed.inc()
            logger.error(
                "Round %d-%d failed with %d error(s), frontier stays at %d: %s",
                first,
                last,
                len(errors),
                self.frontier,
                errors[0],
            )
            return False

        self.frontier = last + 1
        metrics.sync_frontier.set(self.frontier)
        logger.info(
            "Indexed heights %d-%d (%.1f%% of chain)",
            first,
            last,
            self.tracker.percent_complete(self.frontier, self.chain_height),
        )
        return True

    async def _run_window(self, start: int, end: int) -> None:
        """Process every height in [start, end] concurrently."""
        assert self.processor is not None
        async with asyncio.TaskGroup() as tg:
            for height in range(start, end + 1):
                tg.create_task(self.processor.process(height))

    async def run(self) -> None:
        """
        Main loop: step, sleep, repeat until stopped.

        There is no retry limit. A node that never becomes ready keeps the
        service waiting forever.
        """
        self._running = True
        logger.info("Sync service started at frontier %d", self.frontier)

        while self._running:
            delay = await self.step()
            if not self._running:
                break
            await asyncio.sleep(delay)

        logger.info("Sync service stopped at frontier %d", self.frontier)

    def stop(self) -> None:
        """
        Stop the run loop.

        The loop exits after its current step or sleep.
        """
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the run loop is active."""
        return self._running

    def get_progress(self) -> SyncProgress:
        """
        Get current sync progress.

        Reads only in-memory state.
        """
        remaining = 0 if self.chain_height is None else self.chain_height + 1 - self.frontier
        return SyncProgress(
            state=self._state,
            frontier=self.frontier,
            chain_height=self.chain_height,
            percent_complete=self.tracker.percent_complete(self.frontier, self.chain_height),
            is_synced=self.is_synced,
            estimated_time_remaining=self.tracker.estimate(remaining),
            elapsed=datetime.now(UTC) - self.started_at,
            average_block_millis=self.tracker.average_block_millis,
            last_block_at=self.processor.last_block_at if self.processor is not None else None,
        )

    def _node_unavailable(self, reason: str) -> float:
        metrics.node_unavailable.inc()
        if self._state != SyncState.AWAITING_NODE:
            logger.warning("Node unavailable (%s), waiting %.0fs", reason, NODE_RETRY_DELAY)
        else:
            logger.debug("Node still unavailable (%s)", reason)
        self._transition_to(SyncState.AWAITING_NODE)
        return NODE_RETRY_DELAY

    def _transition_to(self, new_state: SyncState) -> None:
        """
        Transition to a new sync state.

        Staying in the current state is a no-op.

        Raises:
            ValueError: If transition is not allowed.
        """
        if new_state == self._state:
            return
        if not self._state.can_transition_to(new_state):
            raise ValueError(f"Invalid state transition: {self._state.name} -> {new_state.name}")
        logger.info("Sync state %s -> %s", self._state.name, new_state.name)
        self._state = new_state
