"""
Node access for the indexer.

Provides the NodeClient protocol consumed by the sync engine and the
ArchRpcClient JSON-RPC implementation.
"""

from .client import ArchRpcClient, NodeClient
from .types import RemoteBlock, RemoteTransaction, parse_node_timestamp

__all__ = [
    "ArchRpcClient",
    "NodeClient",
    "RemoteBlock",
    "RemoteTransaction",
    "parse_node_timestamp",
]
