"""
Transfer Executor

Moves an amount from one account to another as a double-entry pair:

1. Validate → amount and description checked before any store access
2. Read     → both accounts snapshot-read inside one attempt
3. Stage    → debit record, credit record, two balance updates
4. Commit   → all four writes become visible together, or none do

Both records and both balance updates carry one server timestamp, and
both records carry the debit record's id as their link id. A concurrent
commit touching either account restarts the attempt from step 2.
"""

from typing import Optional
from uuid import UUID

from ledger.config import LedgerSettings, get_settings
from ledger.errors import AccountNotFound, InvalidTransfer
from ledger.log import create_correlation_id, get_logger
from ledger.models import Account, TransferReceipt, format_amount
from ledger.services.storage import StoreAttempt, TransactionalStore
from ledger.transfers.attempts import (
    Aborted,
    AttemptOutcome,
    Committable,
    run_in_attempt,
)
from ledger.transfers.linking import build_transfer_legs
from ledger.validation import AccountRef, TransferRequest, TransferValidator


class TransferExecutor:
    """
    Executes transfers between two accounts.

    GUARANTEES:
    - On success both records exist, are linked, and each balance moved
      by exactly the amount
    - On any failure no record and no balance changed
    """

    def __init__(
        self,
        store: TransactionalStore,
        settings: Optional[LedgerSettings] = None,
        validator: Optional[TransferValidator] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._validator = validator or TransferValidator(self._settings)
        self._logger = get_logger(__name__)

    async def transfer(
        self,
        source: AccountRef,
        target: AccountRef,
        amount: object,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> TransferReceipt:
        """
        Transfer amount from source to target.

        Args:
            source: Account id (or Account) to debit
            target: Account id (or Account) to credit
            amount: Positive finite amount (Decimal, int, float or numeric str)
            description: Comment stored on both records

        Returns:
            Receipt with both record ids and the new balances

        Raises:
            InvalidAmount, MissingDescription, SameAccountTransfer: Before any store access
            AccountNotFound: Source or target is missing (see .side)
            Conflict: Retry budget exhausted by concurrent writers
            StoreUnavailable: Store could not be reached
        """
        correlation_id = correlation_id or create_correlation_id()
        log = self._logger.bind(correlation_id=str(correlation_id))

        try:
            request = self._validator.validate(source, target, amount, description)
        except InvalidTransfer as e:
            log.warning("transfer_rejected", error=str(e), error_type=type(e).__name__)
            raise

        async def work(attempt: StoreAttempt) -> AttemptOutcome:
            return await self._stage_transfer(attempt, request)

        try:
            receipt, attempts = await run_in_attempt(
                self._store,
                work,
                self._settings,
                operation="transfer",
                correlation_id=correlation_id,
            )
        except Exception as e:
            log.error(
                "transfer_failed",
                source_id=request.source_id,
                target_id=request.target_id,
                amount=str(request.amount),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        receipt = receipt.model_copy(update={"attempts": attempts})
        log.info(
            "transfer_committed",
            link_id=receipt.link_id,
            source_id=receipt.source_id,
            target_id=receipt.target_id,
            amount=str(receipt.amount),
            attempts=attempts,
        )
        return receipt

    async def _stage_transfer(
        self,
        attempt: StoreAttempt,
        request: TransferRequest,
    ) -> AttemptOutcome:
        """One attempt: read both accounts, stage both legs and both balances."""
        accounts = self._settings.accounts_collection
        transactions = self._settings.transactions_collection
        places = self._settings.amount_places

        source_snapshot = await attempt.get(accounts, request.source_id)
        target_snapshot = await attempt.get(accounts, request.target_id)

        if not source_snapshot.exists:
            return Aborted(AccountNotFound(request.source_id, side="source"))
        if not target_snapshot.exists:
            return Aborted(AccountNotFound(request.target_id, side="target"))

        source = Account.from_document(source_snapshot.id, source_snapshot.data)
        target = Account.from_document(target_snapshot.id, target_snapshot.data)

        # The debit id doubles as the link id of the pair
        debit_id = self._store.new_id(transactions)
        credit_id = self._store.new_id(transactions)
        timestamp = attempt.server_timestamp()

        debit, credit = build_transfer_legs(
            debit_id=debit_id,
            credit_id=credit_id,
            source=source,
            target=target,
            amount=request.amount,
            description=request.description,
            timestamp=timestamp,
            places=places,
        )
        attempt.create(transactions, debit_id, debit)
        attempt.create(transactions, credit_id, credit)

        source_balance = source.amount - request.amount
        target_balance = target.amount + request.amount
        attempt.update(accounts, source.id, {
            "amount": format_amount(source_balance, places),
            "updatedAt": timestamp,
        })
        attempt.update(accounts, target.id, {
            "amount": format_amount(target_balance, places),
            "updatedAt": timestamp,
        })

        return Committable(TransferReceipt(
            link_id=debit_id,
            debit_id=debit_id,
            credit_id=credit_id,
            source_id=source.id,
            target_id=target.id,
            amount=request.amount,
            source_balance=source_balance,
            target_balance=target_balance,
        ))
