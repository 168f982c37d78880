"""Tests for domain records."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from arch_indexer.types import (
    Block,
    BlockDetail,
    NetworkStats,
    ThroughputWindow,
    Transaction,
    TransactionStatus,
)
from tests.arch_indexer.helpers import make_block, make_transaction

NOW = datetime(2024, 1, 1, tzinfo=UTC)


class TestTransactionStatus:
    """Tests for remote status normalization."""

    def test_processing_maps_to_pending(self) -> None:
        """The node's in-progress status is the only pending one."""
        assert TransactionStatus.from_remote("Processing") is TransactionStatus.PENDING

    @pytest.mark.parametrize(
        "status",
        ["Processed", {"Failed": "insufficient funds"}, {"Processed": None}, None, "processing"],
    )
    def test_everything_else_is_finalized(self, status: object) -> None:
        """Any other remote status, structured or not, is finalized."""
        assert TransactionStatus.from_remote(status) is TransactionStatus.FINALIZED

    def test_stored_values(self) -> None:
        """Statuses are stored as small integers."""
        assert int(TransactionStatus.PENDING) == 0
        assert int(TransactionStatus.FINALIZED) == 1


class TestTransaction:
    """Tests for the Transaction record."""

    def test_settlement_ids_default_to_empty(self) -> None:
        """Settlement ids are never null."""
        tx = Transaction(
            txid="abc",
            block_height=1,
            data={},
            status=TransactionStatus.PENDING,
        )
        assert tx.settlement_ids == []

    def test_negative_height_rejected(self) -> None:
        """Block heights are non-negative."""
        with pytest.raises(ValidationError):
            make_transaction("abc", -1)

    def test_records_are_frozen(self) -> None:
        """Records cannot be mutated after creation."""
        tx = make_transaction("abc", 1)
        with pytest.raises(ValidationError):
            tx.txid = "other"  # type: ignore[misc]

    def test_json_uses_camel_case(self) -> None:
        """Serialized keys are camelCase."""
        tx = make_transaction("abc", 4, settlement_ids=["btc1"])
        assert tx.to_json() == {
            "txid": "abc",
            "blockHeight": 4,
            "data": {"version": 0, "txid": "abc"},
            "status": 1,
            "settlementIds": ["btc1"],
        }


class TestBlock:
    """Tests for Block and BlockDetail."""

    def test_transactions_excluded_from_json(self) -> None:
        """The serialized block row does not embed its transactions."""
        block = make_block(3, ["a", "b"])
        data = block.to_json()

        assert "transactions" not in data
        assert data["height"] == 3
        assert data["anchorHeight"] == 800_003
        assert len(block.transactions) == 2

    def test_strict_fields_reject_strings(self) -> None:
        """Heights must be real integers."""
        with pytest.raises(ValidationError):
            Block(height="3", hash="h", timestamp=NOW, anchor_height=1)  # type: ignore[arg-type]

    def test_detail_json(self) -> None:
        """Block detail carries previous hash and transaction ids."""
        detail = BlockDetail(
            height=2,
            hash="h2",
            timestamp=NOW,
            anchor_height=10,
            previous_block_hash="h1",
            transactions=["t1"],
        )
        data = detail.to_json()

        assert data["previousBlockHash"] == "h1"
        assert data["transactions"] == ["t1"]
        assert data["timestamp"].startswith("2024-01-01T00:00:00")


class TestThroughputWindow:
    """Tests for throughput computation."""

    def test_empty_window_is_zero(self) -> None:
        """No blocks means no throughput."""
        assert ThroughputWindow(tx_count=0).per_second() == 0.0

    def test_single_instant_is_zero(self) -> None:
        """A window of one block spans no time."""
        window = ThroughputWindow(tx_count=5, start=NOW, end=NOW)
        assert window.per_second() == 0.0

    def test_rate_over_span(self) -> None:
        """Transactions are divided by the span in seconds."""
        window = ThroughputWindow(tx_count=30, start=NOW, end=NOW + timedelta(seconds=10))
        assert window.per_second() == 3.0


class TestNetworkStats:
    """Tests for the NetworkStats projection."""

    def test_json_keys(self) -> None:
        """Serialized keys match the read API."""
        stats = NetworkStats(
            total_transactions=5, block_height=None, slot_height=None, tps=1.5, true_tps=0.25
        )
        assert stats.to_json() == {
            "totalTransactions": 5,
            "blockHeight": None,
            "slotHeight": None,
            "tps": 1.5,
            "trueTps": 0.25,
        }
