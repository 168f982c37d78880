"""API endpoint handlers."""

from . import blocks, health, metrics, search, stats, status, transactions

__all__ = [
    "blocks",
    "health",
    "metrics",
    "search",
    "stats",
    "status",
    "transactions",
]
