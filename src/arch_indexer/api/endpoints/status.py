"""Sync status endpoint handler."""

from __future__ import annotations

from typing import Final

from aiohttp import web

from arch_indexer.sync import format_duration

from ..app_keys import SYNC_SERVICE

NOT_AVAILABLE: Final = "N/A"
"""Placeholder for figures that cannot be computed yet."""


async def handle_sync_status(request: web.Request) -> web.Response:
    """
    Report sync progress.

    Reads only the sync service's in-memory state; the node is not queried.

    Response: JSON object with fields:
        - frontier (integer): Next height to ingest.
        - chainHeight (integer | null): Last chain height seen.
        - percentComplete (number): Indexed share, 0 to 100, two decimals.
        - isSynced (boolean): Whether every known height is stored.
        - estimatedTimeToCompletion (string): "{h}h {m}m {s}s" or "N/A".
        - elapsedTime (string): Time since the service started.
        - averageBlockTime (number | null): Smoothed seconds per block.
        - state (string): Sync state name.

    Status Codes:
        200 OK: Status returned.
        503 Service Unavailable: No sync service is running.
    """
    service = request.app[SYNC_SERVICE]
    if service is None:
        return web.json_response({"error": "Sync service not running"}, status=503)

    progress = service.get_progress()

    if progress.average_block_millis is None:
        estimate = NOT_AVAILABLE
        average_seconds = None
    else:
        estimate = format_duration(progress.estimated_time_remaining.total_seconds())
        average_seconds = round(progress.average_block_millis / 1000, 2)

    return web.json_response(
        {
            "frontier": progress.frontier,
            "chainHeight": progress.chain_height,
            "percentComplete": round(progress.percent_complete, 2),
            "isSynced": progress.is_synced,
            "estimatedTimeToCompletion": estimate,
            "elapsedTime": format_duration(progress.elapsed.total_seconds()),
            "averageBlockTime": average_seconds,
            "state": progress.state.name,
        }
    )
