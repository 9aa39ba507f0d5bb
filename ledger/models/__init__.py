"""
Data Models Package

Pydantic models for the documents the ledger touches and the receipts
it hands back to callers.
"""

from ledger.models.amounts import (
    AmountError,
    format_amount,
    parse_amount,
    to_decimal,
)
from ledger.models.records import (
    Account,
    TransactionKind,
    TransactionRecord,
)
from ledger.models.receipts import (
    Reconciliation,
    ReversalReceipt,
    TransferReceipt,
)

__all__ = [
    # Amounts
    "AmountError",
    "format_amount",
    "parse_amount",
    "to_decimal",
    # Documents
    "Account",
    "TransactionKind",
    "TransactionRecord",
    # Receipts
    "Reconciliation",
    "ReversalReceipt",
    "TransferReceipt",
]
