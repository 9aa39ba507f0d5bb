"""Read-only ledger queries."""

from ledger.queries.reconciliation import BalanceReconciler, TransferPairLookup

__all__ = ["BalanceReconciler", "TransferPairLookup"]
