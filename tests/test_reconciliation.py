"""
Tests for balance reconciliation and pair lookup.
"""

from decimal import Decimal

import pytest

from ledger.errors import AccountNotFound
from ledger.models import TransactionKind
from ledger.orchestrator import Ledger
from ledger.queries import BalanceReconciler


@pytest.fixture
def empty_accounts(seed_account):
    """Accounts starting at zero, so every balance is backed by records."""
    seed_account("X", "Checking", "0")
    seed_account("Y", "Cash", "0")
    seed_account("Z", "Holiday", "0")


class TestReconcile:

    @pytest.mark.asyncio
    async def test_transfers_keep_accounts_balanced(self, store, settings, empty_accounts):
        ledger = Ledger(store, settings)
        await ledger.transfer("X", "Y", "12.34", "one")
        await ledger.transfer("Y", "Z", 5, "two")
        second = await ledger.transfer("Z", "X", "0.66", "three")
        await ledger.reverse(second.credit_id)

        reconciler = BalanceReconciler(store, settings)
        results = await reconciler.reconcile_many(["X", "Y", "Z"])

        assert [r.is_balanced for r in results] == [True, True, True]
        assert results[0].balance == Decimal("-12.34")
        assert results[0].record_count == 1
        assert results[2].transactions_total == Decimal("5")

    @pytest.mark.asyncio
    async def test_seeded_balance_shows_as_difference(self, ledger):
        """Opening balances without records are reported, not hidden."""
        await ledger.transfer("A", "B", 30, "rent")

        result = await ledger.reconcile("A")

        assert result.balance == Decimal("70")
        assert result.transactions_total == Decimal("-30")
        assert result.difference == Decimal("100")
        assert not result.is_balanced

    @pytest.mark.asyncio
    async def test_missing_account(self, ledger):
        with pytest.raises(AccountNotFound):
            await ledger.reconcile("ghost")

    @pytest.mark.asyncio
    async def test_records_oldest_first(self, ledger, store, settings):
        first = await ledger.transfer("A", "B", 1, "first")
        second = await ledger.transfer("A", "C", 2, "second")

        records = await BalanceReconciler(store, settings).records_for("A")

        assert [r.id for r in records] == [first.debit_id, second.debit_id]


class TestGetPair:

    @pytest.mark.asyncio
    async def test_debit_leg_first(self, ledger):
        receipt = await ledger.transfer("A", "B", 30, "rent")

        pair = await ledger.get_pair(receipt.link_id)

        assert [r.id for r in pair] == [receipt.debit_id, receipt.credit_id]
        assert [r.kind for r in pair] == [TransactionKind.EXPENSE, TransactionKind.INCOME]
        assert pair[0].amount == -pair[1].amount

    @pytest.mark.asyncio
    async def test_unknown_link(self, ledger):
        assert await ledger.get_pair("nothing") == []
