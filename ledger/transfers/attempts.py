"""
Attempt Driver

Runs one unit of ledger work against the store as an optimistic
transaction and retries it when a concurrent commit gets in the way.

The work function receives a fresh StoreAttempt and returns a tagged
outcome instead of raising:
- Committable(value): stage writes are good, commit them
- Aborted(error): discard everything staged and raise error to the caller

WriteConflict on commit restarts the whole work function from its first
read, with exponential backoff, at most settings.max_attempts times in
total. Once the budget is spent the caller gets Conflict.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledger.config import LedgerSettings, get_settings
from ledger.errors import Conflict, LedgerError
from ledger.log import get_logger
from ledger.services.storage import StoreAttempt, TransactionalStore, WriteConflict


T = TypeVar("T")

logger = get_logger(__name__)


@dataclass(frozen=True)
class Committable(Generic[T]):
    """Attempt finished its reads and staged its writes."""
    value: T


@dataclass(frozen=True)
class Aborted:
    """Attempt must not commit."""
    error: LedgerError


AttemptOutcome = Union[Committable[T], Aborted]
AttemptWork = Callable[[StoreAttempt], Awaitable[AttemptOutcome]]


async def run_in_attempt(
    store: TransactionalStore,
    work: AttemptWork,
    settings: Optional[LedgerSettings] = None,
    operation: str = "attempt",
    correlation_id: Optional[UUID] = None,
) -> tuple[T, int]:
    """
    Run work inside store attempts until one commits.

    Returns:
        (value from the committed outcome, number of attempts used)

    Raises:
        LedgerError: Whatever the work aborted with
        Conflict: Every attempt in the budget hit a write conflict
        StorageError: Any other store failure, unretried
    """
    settings = settings or get_settings()
    log = logger.bind(
        operation=operation,
        correlation_id=str(correlation_id) if correlation_id else None,
    )

    def _log_retry(state: RetryCallState) -> None:
        log.warning(
            "attempt_conflict",
            attempt=state.attempt_number,
            max_attempts=settings.max_attempts,
            error=str(state.outcome.exception()) if state.outcome else None,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(settings.max_attempts),
        wait=wait_exponential(
            multiplier=settings.backoff_multiplier,
            min=settings.backoff_min,
            max=settings.backoff_max,
        ),
        retry=retry_if_exception_type(WriteConflict),
        before_sleep=_log_retry,
        reraise=False,
    )

    attempts = 0
    try:
        async for attempt_state in retrying:
            with attempt_state:
                attempts = attempt_state.retry_state.attempt_number
                value = await _run_once(store, work)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        log.error(
            "attempt_budget_exhausted",
            attempts=attempts,
            error=str(last_error),
        )
        raise Conflict(attempts, last_error) from last_error

    return value, attempts


async def _run_once(store: TransactionalStore, work: AttemptWork):
    attempt = store.begin()
    try:
        outcome = await work(attempt)
    except BaseException:
        attempt.discard()
        raise

    if isinstance(outcome, Aborted):
        attempt.discard()
        raise outcome.error

    await store.commit(attempt)
    return outcome.value
