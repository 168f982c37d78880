"""API route definitions."""

from collections.abc import Awaitable, Callable

from aiohttp import web

from .endpoints import blocks, health, metrics, search, stats, status, transactions

ROUTES: dict[str, Callable[[web.Request], Awaitable[web.Response]]] = {
    "/": health.handle_root,
    "/health": health.handle,
    "/metrics": metrics.handle,
    "/api/blocks": blocks.handle_list,
    "/api/blocks/height/{height}": blocks.handle_by_height,
    "/api/blocks/{block_hash}": blocks.handle_by_hash,
    "/api/transactions": transactions.handle_list,
    "/api/transactions/{txid}": transactions.handle_by_txid,
    "/api/sync-status": status.handle_sync_status,
    "/api/network-stats": stats.handle_network_stats,
    "/api/search": search.handle,
}
"""All API routes mapped to their handlers. Every route is a GET."""
