"""
Reversal Executor

Deletes a transaction together with its linked counterpart and undoes
what both did to their accounts, in one attempt:

1. Read the record; missing → TransactionNotFound
2. Query by its link id, drop the record itself; more than one
   remaining match or one of the same kind → CorruptLink, none →
   single-leg reversal
3. Re-read the counterpart inside the attempt so a concurrent change
   to it is caught at commit
4. Read every affected account once and stage the corrected balance
   (accounts that no longer exist are skipped)
5. Stage deletion of the counterpart and of the record, commit

Reversing via the debit id or via the credit id ends in the same state.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from ledger.config import LedgerSettings, get_settings
from ledger.errors import CorruptLink, TransactionNotFound
from ledger.log import create_correlation_id, get_logger
from ledger.models import (
    Account,
    ReversalReceipt,
    TransactionRecord,
    format_amount,
)
from ledger.services.storage import StoreAttempt, TransactionalStore
from ledger.transfers.attempts import (
    Aborted,
    AttemptOutcome,
    Committable,
    run_in_attempt,
)
from ledger.transfers.linking import LINK_FIELD, reversal_delta, select_counterpart


class ReversalExecutor:
    """
    Reverses transfers (or single orphaned legs).

    GUARANTEES:
    - On success neither record exists and every surviving account is
      back where it would be without them
    - On any failure nothing changed
    """

    def __init__(
        self,
        store: TransactionalStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._logger = get_logger(__name__)

    async def reverse(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ReversalReceipt:
        """
        Reverse the transaction and its linked counterpart.

        Args:
            transaction_id: Id of either leg

        Returns:
            Receipt listing deleted ids and corrected balances

        Raises:
            TransactionNotFound: No record with this id
            CorruptLink: More than one counterpart shares the link id, or
                the counterpart is of the same kind as the record
            Conflict: Retry budget exhausted by concurrent writers
            StoreUnavailable: Store could not be reached
        """
        correlation_id = correlation_id or create_correlation_id()
        log = self._logger.bind(
            correlation_id=str(correlation_id),
            transaction_id=transaction_id,
        )

        async def work(attempt: StoreAttempt) -> AttemptOutcome:
            return await self._stage_reversal(attempt, transaction_id)

        try:
            receipt, attempts = await run_in_attempt(
                self._store,
                work,
                self._settings,
                operation="reverse",
                correlation_id=correlation_id,
            )
        except Exception as e:
            log.error("reversal_failed", error=str(e), error_type=type(e).__name__)
            raise

        receipt = receipt.model_copy(update={"attempts": attempts})
        log.info(
            "reversal_committed",
            counterpart_id=receipt.counterpart_id,
            link_id=receipt.link_id,
            skipped_accounts=receipt.skipped_accounts,
            attempts=attempts,
        )
        return receipt

    async def _stage_reversal(
        self,
        attempt: StoreAttempt,
        transaction_id: str,
    ) -> AttemptOutcome:
        accounts = self._settings.accounts_collection
        transactions = self._settings.transactions_collection
        places = self._settings.amount_places

        snapshot = await attempt.get(transactions, transaction_id)
        if not snapshot.exists:
            return Aborted(TransactionNotFound(transaction_id))
        primary = TransactionRecord.from_document(snapshot.id, snapshot.data)

        counterpart = None
        if primary.link_id:
            try:
                counterpart = await self._find_counterpart(attempt, primary)
            except CorruptLink as e:
                return Aborted(e)

        records = [primary] if counterpart is None else [primary, counterpart]

        # One read and one update per account, even if both legs share it
        deltas: dict[str, Decimal] = {}
        for record in records:
            deltas[record.account_id] = (
                deltas.get(record.account_id, Decimal("0")) + reversal_delta(record)
            )

        found: dict[str, Optional[Account]] = {}
        for account_id in deltas:
            account_snapshot = await attempt.get(accounts, account_id)
            found[account_id] = (
                Account.from_document(account_snapshot.id, account_snapshot.data)
                if account_snapshot.exists
                else None
            )

        timestamp = attempt.server_timestamp()
        balances: dict[str, Decimal] = {}
        skipped: list[str] = []
        for account_id, delta in deltas.items():
            account = found[account_id]
            if account is None:
                skipped.append(account_id)
                continue
            balances[account_id] = account.amount + delta
            attempt.update(accounts, account_id, {
                "amount": format_amount(balances[account_id], places),
                "updatedAt": timestamp,
            })

        if counterpart is not None:
            attempt.delete(transactions, counterpart.id)
        attempt.delete(transactions, primary.id)

        return Committable(ReversalReceipt(
            transaction_id=primary.id,
            counterpart_id=counterpart.id if counterpart else None,
            link_id=primary.link_id,
            balances=balances,
            skipped_accounts=skipped,
        ))

    async def _find_counterpart(
        self,
        attempt: StoreAttempt,
        primary: TransactionRecord,
    ) -> Optional[TransactionRecord]:
        """
        Locate the other leg of primary's link.

        The query runs outside attempt isolation, so its answer is only a
        hint: the candidate is read again through the attempt and dropped
        if it vanished or no longer carries the link id. A counterpart of
        the same kind (two expenses, two incomes) is a corrupt link.
        """
        transactions = self._settings.transactions_collection
        matches = await self._store.query(transactions, LINK_FIELD, primary.link_id)
        candidate = select_counterpart(primary.id, primary.link_id, matches)
        if candidate is None:
            return None

        fresh = await attempt.get(transactions, candidate.id)
        if not fresh.exists:
            return None
        record = TransactionRecord.from_document(fresh.id, fresh.data)
        if record.link_id != primary.link_id:
            return None
        if record.kind is not primary.kind.opposite:
            raise CorruptLink(
                primary.link_id,
                [record.id],
                reason=f"joins two {record.kind.value} legs",
            )
        return record
