"""Tests for node wire payload parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from arch_indexer.node import RemoteBlock, RemoteTransaction, parse_node_timestamp


class TestParseNodeTimestamp:
    """Tests for timestamp conversion."""

    def test_integer_is_unix_millis(self) -> None:
        """Integers are milliseconds since the epoch."""
        assert parse_node_timestamp(1_700_000_000_000) == datetime(
            2023, 11, 14, 22, 13, 20, tzinfo=UTC
        )

    def test_digit_string_is_unix_millis(self) -> None:
        """Numeric strings are treated like integers."""
        assert parse_node_timestamp("1700000000000") == parse_node_timestamp(1_700_000_000_000)

    def test_iso_string(self) -> None:
        """ISO-8601 strings are accepted and made aware."""
        assert parse_node_timestamp("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=UTC)

    def test_naive_datetime_becomes_utc(self) -> None:
        """Naive datetimes are interpreted as UTC."""
        assert parse_node_timestamp(datetime(2024, 1, 1)).tzinfo is UTC

    def test_bool_rejected(self) -> None:
        """Booleans are not timestamps."""
        with pytest.raises(ValueError):
            parse_node_timestamp(True)

    @pytest.mark.parametrize("value", [10**22, -(10**22), "9" * 30])
    def test_out_of_range_rejected(self, value: int | str) -> None:
        """Milliseconds outside the datetime range are a ValueError."""
        with pytest.raises(ValueError, match="out of range"):
            parse_node_timestamp(value)

    def test_out_of_range_block_fails_validation(self) -> None:
        """An unrepresentable block time fails model validation."""
        with pytest.raises(ValidationError):
            RemoteBlock.model_validate({"timestamp": 10**22, "bitcoin_block_height": 1})


class TestRemoteBlock:
    """Tests for get_block payloads."""

    def test_parses_node_field_names(self) -> None:
        """The node's own field names map onto the model."""
        block = RemoteBlock.model_validate(
            {
                "timestamp": 1_700_000_000_000,
                "bitcoin_block_height": 812_345,
                "transactions": ["a", "b"],
                "merkle_root": "ignored",
            }
        )
        assert block.anchor_height == 812_345
        assert block.transaction_ids == ["a", "b"]

    def test_null_transactions_become_empty(self) -> None:
        """A block without transactions has an empty id list."""
        block = RemoteBlock.model_validate(
            {"timestamp": 0, "bitcoin_block_height": 1, "transactions": None}
        )
        assert block.transaction_ids == []

    def test_missing_anchor_height_rejected(self) -> None:
        """A block without its anchor height is malformed."""
        with pytest.raises(ValidationError):
            RemoteBlock.model_validate({"timestamp": 0, "transactions": []})


class TestRemoteTransaction:
    """Tests for get_processed_transaction payloads."""

    def test_parses_node_field_names(self) -> None:
        """The node's own field names map onto the model."""
        tx = RemoteTransaction.model_validate(
            {
                "runtime_transaction": {"version": 0},
                "status": "Processed",
                "bitcoin_txids": ["btc1", "btc2"],
            }
        )
        assert tx.payload == {"version": 0}
        assert tx.settlement_ids == ["btc1", "btc2"]

    @pytest.mark.parametrize("payload", [{}, {"bitcoin_txids": None}])
    def test_missing_or_null_settlement_ids(self, payload: dict[str, object]) -> None:
        """Absent or null settlement ids become an empty list."""
        tx = RemoteTransaction.model_validate(
            {"runtime_transaction": {}, "status": "Processing", **payload}
        )
        assert tx.settlement_ids == []

    def test_structured_status_kept(self) -> None:
        """Structured statuses pass through untouched."""
        tx = RemoteTransaction.model_validate(
            {"runtime_transaction": {}, "status": {"Failed": "reason"}}
        )
        assert tx.status == {"Failed": "reason"}

    def test_missing_payload_rejected(self) -> None:
        """A transaction without its runtime payload is malformed."""
        with pytest.raises(ValidationError):
            RemoteTransaction.model_validate({"status": "Processed"})
