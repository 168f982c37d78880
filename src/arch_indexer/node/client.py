"""
Node client for the Arch JSON-RPC interface.

The sync engine only depends on the NodeClient protocol below. ArchRpcClient
is the production implementation: JSON-RPC 2.0 over HTTP POST, one request per
call, no batching.

Error classification
--------------------
The caller decides whether to wait or to fail a height based on the error type:

- Transport failures (connection refused, timeouts, HTTP 5xx) raise
  NodeUnavailable.
- A JSON-RPC error or an unparseable result for a specific height or txid
  raises FetchError.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Final, Protocol

import httpx
from pydantic import ValidationError

from arch_indexer.exceptions import FetchError, NodeUnavailable

from .types import RemoteBlock, RemoteTransaction

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final = 30.0
"""HTTP request timeout in seconds."""

JSONRPC_VERSION: Final = "2.0"
"""Protocol version sent with every request."""


class NodeClient(Protocol):
    """
    Capability surface the sync engine consumes.

    Any object with these coroutine methods can drive the indexer, which is
    how the tests substitute an in-memory chain.
    """

    async def is_ready(self) -> bool:
        """Return True when the node is ready to serve chain data."""
        ...

    async def chain_height(self) -> int:
        """Return the latest block height known to the node."""
        ...

    async def block_hash(self, height: int) -> str:
        """Return the hash of the block at `height`. Fails if unknown."""
        ...

    async def block(self, block_hash: str) -> RemoteBlock:
        """Return the block body for `block_hash`."""
        ...

    async def transaction(self, txid: str) -> RemoteTransaction:
        """Return the processed transaction `txid`."""
        ...


class ArchRpcClient:
    """
    JSON-RPC client for an Arch node.

    Holds one pooled httpx.AsyncClient for its lifetime. Use as an async
    context manager or call close() when done.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            url: Node RPC endpoint, e.g. "http://localhost:9002".
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> ArchRpcClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Release pooled HTTP connections."""
        await self._client.aclose()

    async def call(self, method: str, *params: Any) -> Any:
        """
        Invoke a JSON-RPC method and return its result.

        Raises:
            NodeUnavailable: The node could not be reached or answered with
                an HTTP error.
            FetchError: The node answered with a JSON-RPC error object or a
                body that is not a JSON-RPC response.
        """
        request = {
            "jsonrpc": JSONRPC_VERSION,
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }

        try:
            response = await self._client.post(self.url, json=request)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NodeUnavailable(
                f"{method}: HTTP {exc.response.status_code} from {self.url}"
            ) from exc
        except httpx.RequestError as exc:
            raise NodeUnavailable(f"{method}: cannot reach {self.url}: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise FetchError(f"{method}: response is not JSON") from exc

        if not isinstance(body, dict):
            raise FetchError(f"{method}: unexpected response {body!r:.200}")

        if body.get("error") is not None:
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise FetchError(f"{method}: node error: {message}")

        if "result" not in body:
            raise FetchError(f"{method}: response has no result")

        return body["result"]

    async def is_ready(self) -> bool:
        """Ask the node whether it is ready."""
        try:
            result = await self.call("is_node_ready")
        except FetchError as exc:
            # A readiness check that errors means the node cannot serve us yet.
            raise NodeUnavailable(exc.message) from exc
        return bool(result)

    async def chain_height(self) -> int:
        """
        Return the latest block height.

        The node's `get_block_count` is used as-is as the highest height, the
        same way the rest of the Arch tooling reads it.
        """
        try:
            result = await self.call("get_block_count")
        except FetchError as exc:
            raise NodeUnavailable(exc.message) from exc
        if not isinstance(result, int) or isinstance(result, bool):
            raise NodeUnavailable(f"get_block_count: unexpected result {result!r:.100}")
        return result

    async def block_hash(self, height: int) -> str:
        """Return the hash of the block at `height`."""
        try:
            result = await self.call("get_block_hash", height)
        except FetchError as exc:
            raise FetchError(exc.message, height=height) from exc
        if not isinstance(result, str) or not result:
            raise FetchError(f"get_block_hash: no hash for height {height}", height=height)
        return result

    async def block(self, block_hash: str) -> RemoteBlock:
        """Fetch and parse the block body for `block_hash`."""
        result = await self.call("get_block", block_hash)
        if result is None:
            raise FetchError(f"get_block: unknown block {block_hash}")
        try:
            return RemoteBlock.model_validate(result)
        except ValidationError as exc:
            raise FetchError(f"get_block: malformed block {block_hash}: {exc}") from exc

    async def transaction(self, txid: str) -> RemoteTransaction:
        """Fetch and parse the processed transaction `txid`."""
        try:
            result = await self.call("get_processed_transaction", txid)
        except FetchError as exc:
            raise FetchError(exc.message, txid=txid) from exc
        if result is None:
            raise FetchError(f"get_processed_transaction: unknown transaction {txid}", txid=txid)
        try:
            return RemoteTransaction.model_validate(result)
        except ValidationError as exc:
            raise FetchError(
                f"get_processed_transaction: malformed transaction {txid}: {exc}",
                txid=txid,
            ) from exc
