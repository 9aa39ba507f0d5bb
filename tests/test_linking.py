"""
Tests for pairing helpers.
"""

from decimal import Decimal

import pytest

from ledger.errors import CorruptLink
from ledger.models import Account, TransactionKind, TransactionRecord
from ledger.services.storage import SERVER_TIMESTAMP, DocumentSnapshot
from ledger.transfers import build_transfer_legs, reversal_delta, select_counterpart


def snap(doc_id: str) -> DocumentSnapshot:
    return DocumentSnapshot(collection="transactions", id=doc_id, data={"relatedTransactionId": "d"})


class TestSelectCounterpart:

    def test_drops_the_record_itself(self):
        assert select_counterpart("d", "d", [snap("c"), snap("d")]).id == "c"

    def test_orphan(self):
        assert select_counterpart("d", "d", [snap("d")]) is None
        assert select_counterpart("d", "d", []) is None

    def test_two_others_is_corrupt(self):
        with pytest.raises(CorruptLink) as exc_info:
            select_counterpart("d", "d", [snap("c1"), snap("d"), snap("c2")])
        assert exc_info.value.matches == ["c1", "c2"]
        assert exc_info.value.link_id == "d"


class TestReversalDelta:

    @pytest.mark.parametrize("kind,amount,expected", [
        (TransactionKind.EXPENSE, "-30", "30"),
        (TransactionKind.EXPENSE, "30", "30"),
        (TransactionKind.INCOME, "30", "-30"),
        (TransactionKind.INCOME, "-5", "5"),
    ])
    def test_delta(self, kind, amount, expected):
        record = TransactionRecord(id="t", account_id="A", amount=amount, kind=kind)
        assert reversal_delta(record) == Decimal(expected)


class TestBuildTransferLegs:

    def legs(self, **overrides):
        arguments = dict(
            debit_id="d",
            credit_id="c",
            source=Account(id="A", title="Wallet", amount="100"),
            target=Account(id="B", title="Savings", amount="50"),
            amount=Decimal("30"),
            description="rent",
            timestamp=SERVER_TIMESTAMP,
        )
        arguments.update(overrides)
        return build_transfer_legs(**arguments)

    def test_mirrored_legs(self):
        debit, credit = self.legs()

        assert debit["amount"] == "-30.00"
        assert credit["amount"] == "30.00"
        assert debit["type"] == "expense"
        assert credit["type"] == "income"
        assert debit["categoryId"] == "A"
        assert credit["categoryId"] == "B"
        for leg in (debit, credit):
            assert leg["relatedTransactionId"] == "d"
            assert leg["fromUser"] == "Wallet"
            assert leg["toUser"] == "Savings"
            assert leg["description"] == "rent"
            assert leg["date"] is SERVER_TIMESTAMP

    def test_legs_read_back_as_records(self):
        """Stored legs parse back into a matching debit/credit pair."""
        debit, credit = self.legs(timestamp=None)

        debit_record = TransactionRecord.from_document("d", debit)
        credit_record = TransactionRecord.from_document("c", credit)

        assert debit_record.is_debit
        assert credit_record.kind is debit_record.kind.opposite
        assert debit_record.amount == -credit_record.amount
