"""Block records."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .base import StrictBaseModel
from .transaction import Transaction


class Block(StrictBaseModel):
    """
    A block assembled for persistence.

    Carries its resolved transactions so the writer can store the block and
    everything inside it in one database transaction.
    """

    height: int = Field(ge=0)
    """Block height. Primary identity."""

    hash: str
    """Block hash as returned by the node. Unique."""

    timestamp: datetime
    """Block time (UTC)."""

    anchor_height: int
    """Settlement-chain block height this block is anchored to."""

    transactions: list[Transaction] = Field(default_factory=list, exclude=True)
    """Resolved transactions. Not part of the serialized block row."""


class BlockDetail(StrictBaseModel):
    """A persisted block with its transaction ids, as served by the read API."""

    height: int
    """Block height."""

    hash: str
    """Block hash."""

    timestamp: datetime
    """Block time (UTC)."""

    anchor_height: int
    """Settlement-chain block height."""

    previous_block_hash: str | None = None
    """Hash of the block at height - 1, if it is indexed."""

    transactions: list[str] = Field(default_factory=list)
    """Ids of the transactions in this block."""
