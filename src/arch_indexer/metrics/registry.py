"""
Metric registry using prometheus_client.

Provides pre-defined metrics for the indexer.
Exposes metrics in Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Create a dedicated registry for indexer metrics.
#
# Using a dedicated registry avoids pollution from default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Sync Progress
# -----------------------------------------------------------------------------

sync_frontier = Gauge(
    "arch_indexer_frontier",
    "Next block height to ingest",
    registry=REGISTRY,
)

chain_height = Gauge(
    "arch_indexer_chain_height",
    "Latest block height reported by the node",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Block Processing
# -----------------------------------------------------------------------------

blocks_processed = Counter(
    "arch_indexer_blocks_processed_total",
    "Total blocks fetched and stored",
    registry=REGISTRY,
)

transactions_indexed = Counter(
    "arch_indexer_transactions_indexed_total",
    "Total transactions stored, including re-ingested ones",
    registry=REGISTRY,
)

block_processing_time = Histogram(
    "arch_indexer_block_processing_seconds",
    "Time to fetch, resolve and store one block",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Failures
# -----------------------------------------------------------------------------

rounds_failed = Counter(
    "arch_indexer_rounds_failed_total",
    "Sync rounds discarded because a window failed",
    registry=REGISTRY,
)

node_unavailable = Counter(
    "arch_indexer_node_unavailable_total",
    "Polls that found the node not ready or unreachable",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
