"""
Metrics module for observability.

Provides counters, gauges, and histograms for tracking sync engine behavior.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    block_processing_time,
    blocks_processed,
    chain_height,
    generate_metrics,
    node_unavailable,
    rounds_failed,
    sync_frontier,
    transactions_indexed,
)

__all__ = [
    "REGISTRY",
    "block_processing_time",
    "blocks_processed",
    "chain_height",
    "generate_metrics",
    "node_unavailable",
    "rounds_failed",
    "sync_frontier",
    "transactions_indexed",
]
