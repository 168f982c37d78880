"""Block endpoint handlers."""

from __future__ import annotations

from typing import Final

from aiohttp import web

from ..app_keys import DATABASE

RECENT_BLOCKS_LIMIT: Final = 200
"""Blocks returned by the listing endpoint."""

MAX_HEIGHT: Final = 2**63 - 1
"""Largest height either backend can store in its integer column."""


def parse_height(raw: str) -> int | None:
    """Parse an ASCII decimal height, or return None if it is not one."""
    if not (raw.isascii() and raw.isdigit()):
        return None
    height = int(raw)
    return height if height <= MAX_HEIGHT else None


def _not_found() -> web.Response:
    return web.json_response({"error": "Block not found"}, status=404)


async def handle_list(request: web.Request) -> web.Response:
    """
    List the most recent blocks.

    Response: JSON array of up to 200 blocks, highest first. Each block has
    height, hash, timestamp (ISO-8601) and anchorHeight.
    """
    blocks = await request.app[DATABASE].recent_blocks(RECENT_BLOCKS_LIMIT)
    return web.json_response([block.to_json() for block in blocks])


async def handle_by_hash(request: web.Request) -> web.Response:
    """
    Get one block by hash.

    Response: JSON block detail, with previousBlockHash and the ids of its
    transactions.

    Status Codes:
        200 OK: Block found.
        404 Not Found: No block with that hash is indexed.
    """
    detail = await request.app[DATABASE].get_block_by_hash(request.match_info["block_hash"])
    if detail is None:
        return _not_found()
    return web.json_response(detail.to_json())


async def handle_by_height(request: web.Request) -> web.Response:
    """
    Get one block by height.

    Status Codes:
        200 OK: Block found.
        400 Bad Request: Height is not a non-negative integer.
        404 Not Found: Height not indexed.
    """
    height = parse_height(request.match_info["height"])
    if height is None:
        return web.json_response({"error": "Invalid block height"}, status=400)

    detail = await request.app[DATABASE].get_block_by_height(height)
    if detail is None:
        return _not_found()
    return web.json_response(detail.to_json())
