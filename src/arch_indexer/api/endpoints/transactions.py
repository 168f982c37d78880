"""Transaction endpoint handlers."""

from __future__ import annotations

from typing import Final

from aiohttp import web

from ..app_keys import DATABASE

RECENT_TRANSACTIONS_LIMIT: Final = 20
"""Transactions returned by the listing endpoint."""


async def handle_list(request: web.Request) -> web.Response:
    """
    List transactions from the most recent blocks.

    Response: JSON array of up to 20 transactions. Each has txid,
    blockHeight, data, status (0 pending, 1 finalized) and settlementIds.
    """
    transactions = await request.app[DATABASE].recent_transactions(RECENT_TRANSACTIONS_LIMIT)
    return web.json_response([tx.to_json() for tx in transactions])


async def handle_by_txid(request: web.Request) -> web.Response:
    """
    Get one transaction by id.

    Status Codes:
        200 OK: Transaction found.
        404 Not Found: Transaction not indexed.
    """
    transaction = await request.app[DATABASE].get_transaction(request.match_info["txid"])
    if transaction is None:
        return web.json_response({"error": "Transaction not found"}, status=404)
    return web.json_response(transaction.to_json())
