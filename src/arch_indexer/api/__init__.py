"""
Read API over the index.

Provides HTTP endpoints for:
- /api/blocks, /api/transactions - Indexed data
- /api/sync-status, /api/network-stats - Progress and throughput
- /health, /metrics - Liveness and Prometheus metrics
"""

from .routes import ROUTES
from .server import ApiServer, ApiServerConfig

__all__ = [
    "ROUTES",
    "ApiServer",
    "ApiServerConfig",
]
