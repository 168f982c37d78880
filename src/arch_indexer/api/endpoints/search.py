"""Search endpoint handler."""

from __future__ import annotations

from aiohttp import web

from ..app_keys import DATABASE
from .blocks import parse_height


async def handle(request: web.Request) -> web.Response:
    """
    Look a term up as a transaction id, then a block hash, then a block height.

    Response: JSON object {"type": "transaction" | "block", "data": ...}.

    Status Codes:
        200 OK: A match was found.
        400 Bad Request: No search term given.
        404 Not Found: Nothing matches.
    """
    term = request.query.get("term", "").strip()
    if not term:
        return web.json_response({"error": "Missing search term"}, status=400)

    database = request.app[DATABASE]

    transaction = await database.get_transaction(term)
    if transaction is not None:
        return web.json_response({"type": "transaction", "data": transaction.to_json()})

    block = await database.get_block_by_hash(term)
    if block is None and (height := parse_height(term)) is not None:
        block = await database.get_block_by_height(height)
    if block is not None:
        return web.json_response({"type": "block", "data": block.to_json()})

    return web.json_response({"error": "No matching transaction or block found"}, status=404)
