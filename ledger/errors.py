"""
Ledger Errors

Precondition errors (InvalidTransfer and subclasses) are raised before the
store is touched. Every other error aborts an attempt before commit, so no
staged write ever becomes visible and nothing needs to be undone.
"""

from typing import Optional

from ledger.services.storage.interface import StoreUnavailable

__all__ = [
    "AccountNotFound",
    "Conflict",
    "CorruptLink",
    "InvalidAmount",
    "InvalidTransfer",
    "LedgerError",
    "MissingDescription",
    "SameAccountTransfer",
    "StoreUnavailable",
    "TransactionNotFound",
]


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidTransfer(LedgerError):
    """Transfer request rejected before touching the store."""
    pass


class InvalidAmount(InvalidTransfer):
    """Amount is not a finite number strictly greater than zero."""

    def __init__(self, amount: object, reason: str = "must be a finite number greater than zero"):
        self.amount = amount
        super().__init__(f"Transfer amount {amount!r} {reason}")


class MissingDescription(InvalidTransfer):
    """Description is empty or whitespace only."""

    def __init__(self):
        super().__init__("A transfer needs a non-empty description")


class SameAccountTransfer(InvalidTransfer):
    """Source and target are the same account."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Cannot transfer from account {account_id} to itself")


class AccountNotFound(LedgerError):
    """Referenced account does not exist."""

    def __init__(self, account_id: str, side: str = "account"):
        self.account_id = account_id
        self.side = side
        super().__init__(f"{side.capitalize()} account not found: {account_id}")


class TransactionNotFound(LedgerError):
    """Transaction record to reverse does not exist."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class CorruptLink(LedgerError):
    """Link id does not join exactly one debit and one credit leg."""

    def __init__(self, link_id: str, matches: list[str], reason: Optional[str] = None):
        self.link_id = link_id
        self.matches = list(matches)
        reason = reason or f"has {len(self.matches)} counterparts, expected at most one"
        super().__init__(f"Link {link_id} {reason} ({', '.join(self.matches)})")


class Conflict(LedgerError):
    """Concurrent writers kept invalidating the attempt until the retry budget ran out."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"Gave up after {attempts} conflicting attempts{detail}")
