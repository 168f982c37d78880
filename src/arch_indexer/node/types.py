"""
Wire payloads returned by the node.

These models are lenient: the node's JSON is parsed as-is and only
the fields the indexer needs are kept. Anything malformed surfaces as a
pydantic ValidationError, which the client turns into a FetchError.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _from_millis(millis: int | float) -> datetime:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp out of range: {millis!r}") from exc


def parse_node_timestamp(value: Any) -> datetime:
    """
    Convert a node timestamp to an aware UTC datetime.

    The node reports block time as Unix milliseconds. ISO-8601 strings and
    datetimes are accepted too, for fixtures and alternative nodes.

    Raises:
        ValueError: The value is not a timestamp or is out of range.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        raise ValueError("timestamp must be a number or ISO-8601 string")
    if isinstance(value, int | float):
        return _from_millis(value)
    if isinstance(value, str):
        if value.isascii() and value.isdigit():
            return _from_millis(int(value))
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    raise ValueError(f"unsupported timestamp: {value!r}")


class RemoteBlock(BaseModel):
    """Block body as returned by `get_block`."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    timestamp: datetime
    """Block time."""

    anchor_height: int = Field(
        validation_alias=AliasChoices("bitcoin_block_height", "anchor_height"),
    )
    """Settlement-chain height the block is anchored to."""

    transaction_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("transactions", "transaction_ids"),
    )
    """Ordered ids of the transactions in the block."""

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> datetime:
        return parse_node_timestamp(v)

    @field_validator("transaction_ids", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class RemoteTransaction(BaseModel):
    """Processed transaction as returned by `get_processed_transaction`."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    payload: dict[str, Any] = Field(
        validation_alias=AliasChoices("runtime_transaction", "payload"),
    )
    """The runtime transaction, kept opaque."""

    status: Any
    """Remote status: a string or a structured object."""

    settlement_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("bitcoin_txids", "settlement_ids"),
    )
    """Settlement-chain txids. May be missing or null on the wire."""

    @field_validator("settlement_ids", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v
