"""
Pairing helpers shared by transfers and reversals.

The store has no foreign keys. The two legs of a transfer find each other
only through the link id they share, so lookups are an explicit two-step:
query by link id, then drop the record we already hold.
"""

from decimal import Decimal
from typing import Any, Iterable

from ledger.errors import CorruptLink
from ledger.models import Account, TransactionKind, TransactionRecord
from ledger.services.storage import DocumentSnapshot


LINK_FIELD = "relatedTransactionId"


def select_counterpart(
    primary_id: str,
    link_id: str,
    matches: Iterable[DocumentSnapshot],
) -> DocumentSnapshot | None:
    """
    Pick the other leg out of a link-id query result.

    Zero remaining matches means the record is an orphaned single leg.

    Raises:
        CorruptLink: More than one other record carries the link id
    """
    others = [m for m in matches if m.id != primary_id and m.exists]
    if len(others) > 1:
        raise CorruptLink(link_id, [m.id for m in others])
    return others[0] if others else None


def reversal_delta(record: TransactionRecord) -> Decimal:
    """
    Balance correction that undoes one record.

    Expense legs give back abs(amount); income legs take amount away.
    """
    if record.kind is TransactionKind.EXPENSE:
        return abs(record.amount)
    return -record.amount


def build_transfer_legs(
    debit_id: str,
    credit_id: str,
    source: Account,
    target: Account,
    amount: Decimal,
    description: str,
    timestamp: Any,
    places: int = 2,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Stored documents for the debit and credit legs of one transfer.

    Both carry the debit id as link id and the same timestamp value, which
    is usually the store's server-timestamp placeholder.
    """
    common = {
        "counterparty_from": source.title,
        "counterparty_to": target.title,
        "description": description,
        "link_id": debit_id,
    }
    debit = TransactionRecord(
        id=debit_id,
        account_id=source.id,
        amount=-amount,
        kind=TransactionKind.EXPENSE,
        **common,
    )
    credit = TransactionRecord(
        id=credit_id,
        account_id=target.id,
        amount=amount,
        kind=debit.kind.opposite,
        **common,
    )

    legs = []
    for record in (debit, credit):
        document = record.to_document(places)
        document["date"] = timestamp
        legs.append(document)
    return legs[0], legs[1]
