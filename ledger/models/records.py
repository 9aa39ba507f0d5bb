"""
Core Data Models for the Ledger

These models define the documents the ledger reads and writes:
1. Accounts (balance-carrying documents, owned by the category layer)
2. Transaction records (one leg of a transfer each)

DESIGN DECISION: Field names in Python are snake_case, while the stored
documents keep the camelCase names already used by existing data
(categoryId, fromUser, relatedTransactionId, ...). Models accept either
spelling and serialize back to the stored one.

Only the fields the ledger touches are modelled. Anything else on a stored
document is ignored on read and left alone on write (updates are partial).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from ledger.models.amounts import format_amount, parse_amount


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """
    Leg of a transfer.

    EXPENSE is the debit leg (negative amount on the source account),
    INCOME is the credit leg (positive amount on the target account).
    """
    EXPENSE = "expense"
    INCOME = "income"

    @property
    def opposite(self) -> 'TransactionKind':
        if self is TransactionKind.EXPENSE:
            return TransactionKind.INCOME
        return TransactionKind.EXPENSE


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A balance-holding account as seen by the ledger.

    The balance is stored under "amount" as a fixed-point string.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Document identifier"
    )
    title: str = Field(
        default="",
        description="Display label, copied onto transaction records"
    )
    amount: Decimal = Field(
        default=Decimal("0"),
        description="Current balance"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        alias="updatedAt",
        description="Time of the last balance change"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def parse_stored_amount(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> 'Account':
        return cls.model_validate({**data, "id": doc_id})


# =============================================================================
# TRANSACTION RECORD
# =============================================================================

class TransactionRecord(BaseModel):
    """
    One immutable leg of a transfer.

    Both legs of one transfer share link_id, which equals the id of the
    debit leg. Records are created in pairs and only ever deleted in pairs.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Document identifier assigned by the store"
    )
    account_id: str = Field(
        ...,
        alias="categoryId",
        description="Account whose balance this record moved"
    )
    counterparty_from: str = Field(
        default="",
        alias="fromUser",
        description="Source account title at transfer time"
    )
    counterparty_to: str = Field(
        default="",
        alias="toUser",
        description="Target account title at transfer time"
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount: negative for expense, positive for income"
    )
    description: str = Field(
        default="",
        description="Transfer comment"
    )
    kind: TransactionKind = Field(
        ...,
        alias="type",
        description="expense (debit leg) or income (credit leg)"
    )
    timestamp: Optional[datetime] = Field(
        default=None,
        alias="date",
        description="Server time of the committing attempt"
    )
    link_id: Optional[str] = Field(
        default=None,
        alias="relatedTransactionId",
        description="Identifier shared by both legs of one transfer"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def parse_stored_amount(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @property
    def is_debit(self) -> bool:
        return self.kind is TransactionKind.EXPENSE

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> 'TransactionRecord':
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self, places: int = 2) -> dict[str, Any]:
        """Serialize to the stored field names (id is the document key, not a field)."""
        data = self.model_dump(by_alias=True, exclude={"id"})
        data["amount"] = format_amount(self.amount, places)
        data["type"] = self.kind.value
        return data
