"""Validation package."""

from ledger.validation.validator import (
    AccountRef,
    TransferRequest,
    TransferValidator,
    account_id_of,
)

__all__ = ["AccountRef", "TransferRequest", "TransferValidator", "account_id_of"]
