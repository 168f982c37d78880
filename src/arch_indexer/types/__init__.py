"""Domain records shared by the sync engine, storage, and read API."""

from .base import CamelModel, StrictBaseModel
from .block import Block, BlockDetail
from .stats import NetworkStats, ThroughputWindow
from .transaction import Transaction, TransactionStatus

__all__ = [
    "Block",
    "BlockDetail",
    "CamelModel",
    "NetworkStats",
    "StrictBaseModel",
    "ThroughputWindow",
    "Transaction",
    "TransactionStatus",
]
