"""
Transfer Preconditions

Checks a transfer request before the store is touched:
- amount is a finite number strictly greater than zero
- amount fits the storage precision (no silent rounding of cents)
- amount stays within the configured limit, if there is one
- description is non-empty after trimming
- source and target are different accounts

IMPORTANT: Validation never fixes a request. The only normalization is
trimming the description and converting the amount to Decimal.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from pydantic import BaseModel, Field

from ledger.config import LedgerSettings, get_settings
from ledger.errors import (
    InvalidAmount,
    MissingDescription,
    SameAccountTransfer,
)
from ledger.models import Account, AmountError, to_decimal


AccountRef = Union[str, Account]


class TransferRequest(BaseModel):
    """A transfer that passed every precondition."""

    source_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1)


def account_id_of(account: AccountRef) -> str:
    if isinstance(account, Account):
        return account.id
    return account


class TransferValidator:
    """Validates and normalizes transfer requests."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings()

    def validate(
        self,
        source: AccountRef,
        target: AccountRef,
        amount: object,
        description: str,
    ) -> TransferRequest:
        """
        Raises:
            InvalidAmount: Non-numeric, non-finite, non-positive, too precise or too large
            MissingDescription: Empty or whitespace-only description
            SameAccountTransfer: Source and target are one account
        """
        value = self.validate_amount(amount)
        text = self.validate_description(description)

        source_id = account_id_of(source)
        target_id = account_id_of(target)
        if source_id == target_id:
            raise SameAccountTransfer(source_id)

        return TransferRequest(
            source_id=source_id,
            target_id=target_id,
            amount=value,
            description=text,
        )

    def validate_amount(self, amount: object) -> Decimal:
        try:
            value = to_decimal(amount)  # type: ignore[arg-type]
        except AmountError:
            raise InvalidAmount(amount)

        if value <= 0:
            raise InvalidAmount(amount)

        places = self._settings.amount_places
        try:
            exact = value == value.quantize(Decimal(1).scaleb(-places))
        except InvalidOperation:
            raise InvalidAmount(amount, "is too large to store")
        if not exact:
            raise InvalidAmount(amount, f"has more than {places} decimal places")

        limit = self._settings.max_transfer_amount
        if limit is not None and value > limit:
            raise InvalidAmount(amount, f"exceeds the transfer limit of {limit}")

        return value

    @staticmethod
    def validate_description(description: str) -> str:
        text = description.strip() if isinstance(description, str) else ""
        if not text:
            raise MissingDescription()
        return text
