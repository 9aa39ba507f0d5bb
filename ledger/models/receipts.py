"""
Result models returned to callers.

A receipt describes an operation that has been committed. Nothing is
returned for operations that failed; those raise instead.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class TransferReceipt(BaseModel):
    """Outcome of a committed transfer."""

    link_id: str = Field(
        ...,
        description="Identifier shared by both legs (equals debit_id)"
    )
    debit_id: str
    credit_id: str
    source_id: str
    target_id: str
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount moved from source to target"
    )
    source_balance: Decimal = Field(
        ...,
        description="Source balance written by the committing attempt"
    )
    target_balance: Decimal = Field(
        ...,
        description="Target balance written by the committing attempt"
    )
    attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts used, including the committing one"
    )


class ReversalReceipt(BaseModel):
    """Outcome of a committed reversal."""

    transaction_id: str
    counterpart_id: Optional[str] = Field(
        default=None,
        description="Linked leg that was deleted with it (None for a single leg)"
    )
    link_id: Optional[str] = None
    balances: dict[str, Decimal] = Field(
        default_factory=dict,
        description="New balance per account that was corrected"
    )
    skipped_accounts: list[str] = Field(
        default_factory=list,
        description="Accounts referenced by a deleted record that no longer exist"
    )
    attempts: int = Field(default=1, ge=1)

    @computed_field
    @property
    def deleted_ids(self) -> list[str]:
        ids = [self.transaction_id]
        if self.counterpart_id:
            ids.append(self.counterpart_id)
        return ids


class Reconciliation(BaseModel):
    """Balance of one account compared with the records that reference it."""

    account_id: str
    balance: Decimal
    transactions_total: Decimal
    record_count: int = Field(ge=0)

    @computed_field
    @property
    def difference(self) -> Decimal:
        return self.balance - self.transactions_total

    @computed_field
    @property
    def is_balanced(self) -> bool:
        return self.difference == 0
