"""
Ledger Orchestrator

Ties the components to one store:
- TransferExecutor for transfers
- ReversalExecutor for deleting a transaction and its counterpart
- BalanceReconciler / TransferPairLookup for read-only checks

DESIGN DECISION: The store is passed in, never looked up globally.
Two Ledger objects on two stores are fully independent, which is what
the tests rely on.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from ledger.config import LedgerSettings, get_settings
from ledger.log import configure_logging
from ledger.models import (
    Reconciliation,
    ReversalReceipt,
    TransactionRecord,
    TransferReceipt,
)
from ledger.queries import BalanceReconciler, TransferPairLookup
from ledger.services.storage import InMemoryStore, TransactionalStore
from ledger.transfers import ReversalExecutor, TransferExecutor
from ledger.validation import AccountRef


class Ledger:
    """
    Entry point for callers.

    transfer() and reverse() are the only operations that write.
    """

    def __init__(
        self,
        store: TransactionalStore,
        settings: Optional[LedgerSettings] = None,
        transfer_executor: Optional[TransferExecutor] = None,
        reversal_executor: Optional[ReversalExecutor] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._transfers = transfer_executor or TransferExecutor(store, self._settings)
        self._reversals = reversal_executor or ReversalExecutor(store, self._settings)
        self._reconciler = BalanceReconciler(store, self._settings)
        self._pairs = TransferPairLookup(store, self._settings)

    @property
    def store(self) -> TransactionalStore:
        return self._store

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    async def transfer(
        self,
        source: AccountRef,
        target: AccountRef,
        amount: Decimal | int | float | str,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> TransferReceipt:
        """Move amount from source to target. See TransferExecutor.transfer."""
        return await self._transfers.transfer(
            source, target, amount, description, correlation_id=correlation_id
        )

    async def reverse(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ReversalReceipt:
        """Delete a transaction and its counterpart. See ReversalExecutor.reverse."""
        return await self._reversals.reverse(transaction_id, correlation_id=correlation_id)

    async def reconcile(self, account_id: str) -> Reconciliation:
        return await self._reconciler.reconcile(account_id)

    async def get_pair(self, link_id: str) -> list[TransactionRecord]:
        return await self._pairs.get_pair(link_id)


def create_ledger(
    store: Optional[TransactionalStore] = None,
    settings: Optional[LedgerSettings] = None,
    configure_logs: bool = True,
) -> Ledger:
    """
    Factory function to create a wired Ledger.

    Args:
        store: Store to run on. Defaults to a fresh InMemoryStore.
        settings: Settings to use. Defaults to get_settings().
        configure_logs: Whether to set up structlog from the settings.

    Returns:
        Ledger bound to the store
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings)

    return Ledger(store or InMemoryStore(), settings)
