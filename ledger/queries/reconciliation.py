"""
Balance Reconciliation

Read-only checks of the ledger's central invariant: an account's balance
equals the sum of the signed amounts of every transaction record that
references it.

Reads here run outside any attempt. A reconciliation that overlaps with
in-flight transfers can report a transient difference; run it again
before treating a difference as corruption.
"""

from decimal import Decimal
from typing import Iterable, Optional

from ledger.config import LedgerSettings, get_settings
from ledger.errors import AccountNotFound
from ledger.models import Account, Reconciliation, TransactionRecord
from ledger.services.storage import TransactionalStore
from ledger.transfers.linking import LINK_FIELD


ACCOUNT_FIELD = "categoryId"


class BalanceReconciler:
    """Compares stored balances with the records behind them."""

    def __init__(
        self,
        store: TransactionalStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()

    async def reconcile(self, account_id: str) -> Reconciliation:
        """
        Raises:
            AccountNotFound: The account does not exist
        """
        snapshot = await self._store.get(self._settings.accounts_collection, account_id)
        if not snapshot.exists:
            raise AccountNotFound(account_id)
        account = Account.from_document(snapshot.id, snapshot.data)

        records = await self.records_for(account_id)
        total = sum((record.amount for record in records), Decimal("0"))

        return Reconciliation(
            account_id=account_id,
            balance=account.amount,
            transactions_total=total,
            record_count=len(records),
        )

    async def reconcile_many(self, account_ids: Iterable[str]) -> list[Reconciliation]:
        return [await self.reconcile(account_id) for account_id in account_ids]

    async def records_for(self, account_id: str) -> list[TransactionRecord]:
        """Every record referencing the account, oldest first."""
        snapshots = await self._store.query(
            self._settings.transactions_collection,
            ACCOUNT_FIELD,
            account_id,
        )
        records = [TransactionRecord.from_document(s.id, s.data) for s in snapshots]
        records.sort(key=lambda r: (r.timestamp is None, r.timestamp, r.id))
        return records


class TransferPairLookup:
    """Finds the records sharing one link id."""

    def __init__(
        self,
        store: TransactionalStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()

    async def get_pair(self, link_id: str) -> list[TransactionRecord]:
        """
        Records linked under link_id, debit leg first.

        A healthy transfer returns two records, an orphan one, and a
        reversed transfer none.
        """
        snapshots = await self._store.query(
            self._settings.transactions_collection,
            LINK_FIELD,
            link_id,
        )
        records = [TransactionRecord.from_document(s.id, s.data) for s in snapshots]
        records.sort(key=lambda r: (not r.is_debit, r.id))
        return records
