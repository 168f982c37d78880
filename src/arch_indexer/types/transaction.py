"""Transaction record and status."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Final

from pydantic import Field

from .base import StrictBaseModel

PROCESSING_STATUS: Final = "Processing"
"""Remote status string for a transaction the node has not finished processing."""


class TransactionStatus(IntEnum):
    """
    Normalized transaction status.

    Stored as a SMALLINT. The node reports a richer status (processed,
    processing, or a structured failure); only "still processing" matters to
    readers of the index, so everything else collapses into FINALIZED.
    """

    PENDING = 0
    """The node is still processing the transaction."""

    FINALIZED = 1
    """The node has reached a final outcome, successful or not."""

    @classmethod
    def from_remote(cls, status: Any) -> TransactionStatus:
        """
        Map a remote status to its normalized value.

        Args:
            status: Status as reported by the node. Either a plain string
                like "Processing" / "Processed" or a structured object
                such as {"Failed": "reason"}.

        Returns:
            PENDING for "Processing", FINALIZED for anything else.
        """
        if status == PROCESSING_STATUS:
            return cls.PENDING
        return cls.FINALIZED


class Transaction(StrictBaseModel):
    """A fully resolved transaction, ready to persist."""

    txid: str
    """Transaction id. Unique across all blocks."""

    block_height: int = Field(ge=0)
    """Height of the block containing this transaction."""

    data: dict[str, Any]
    """The node's runtime transaction, stored as an opaque JSON object."""

    status: TransactionStatus
    """Normalized status."""

    settlement_ids: list[str] = Field(default_factory=list)
    """Settlement-chain transaction ids, in node order. Empty, never null."""
