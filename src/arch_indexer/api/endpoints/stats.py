"""Network statistics endpoint handler."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Final

from aiohttp import web

from arch_indexer.types import NetworkStats

from ..app_keys import DATABASE, SYNC_SERVICE

TPS_WINDOW: Final = timedelta(seconds=60)
"""Trailing wall-clock span for the recent throughput figure."""

TRUE_TPS_BLOCKS: Final = 100
"""Trailing block count for the sustained throughput figure."""


async def handle_network_stats(request: web.Request) -> web.Response:
    """
    Report chain-wide statistics.

    Response: JSON object with fields:
        - totalTransactions (integer): Transactions in the index.
        - blockHeight (integer | null): Last chain height seen by the sync service.
        - slotHeight (integer | null): Same as blockHeight.
        - tps (number): Throughput of blocks timestamped in the last minute.
        - trueTps (number): Throughput over the last 100 indexed blocks.

    Both throughput figures count every block in their window, empty ones
    included, so blocks without transactions still stretch the time span.
    """
    database = request.app[DATABASE]
    service = request.app[SYNC_SERVICE]

    total = await database.count_transactions()
    recent = await database.throughput_since(datetime.now(UTC) - TPS_WINDOW)
    sustained = await database.throughput_last_blocks(TRUE_TPS_BLOCKS)

    chain_height = service.chain_height if service is not None else None

    stats = NetworkStats(
        total_transactions=total,
        block_height=chain_height,
        slot_height=chain_height,
        tps=round(recent.per_second(), 2),
        true_tps=round(sustained.per_second(), 2),
    )
    return web.json_response(stats.to_json())
