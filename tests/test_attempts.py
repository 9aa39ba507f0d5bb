"""
Tests for the attempt driver (run_in_attempt).
"""

import pytest

from ledger.config import LedgerSettings
from ledger.errors import Conflict, StoreUnavailable, TransactionNotFound
from ledger.services.storage import InMemoryStore, WriteConflict
from ledger.transfers import Aborted, Committable, run_in_attempt


class FlakyStore(InMemoryStore):
    """Fails the first commits with a given error, then behaves normally."""

    def __init__(self, failures: int, error: Exception):
        super().__init__()
        self.failures = failures
        self.error = error
        self.commit_calls = 0

    async def commit(self, attempt):
        self.commit_calls += 1
        if self.commit_calls <= self.failures:
            attempt.discard()
            raise self.error
        await super().commit(attempt)


@pytest.fixture
def fast_settings() -> LedgerSettings:
    return LedgerSettings(
        max_attempts=4,
        backoff_multiplier=0.0,
        backoff_max=0.0,
    )


async def stage_counter(attempt):
    snapshot = await attempt.get("counters", "c")
    value = (snapshot.data or {}).get("value", 0) + 1
    if snapshot.exists:
        attempt.update("counters", "c", {"value": value})
    else:
        attempt.create("counters", "c", {"value": value})
    return Committable(value)


class TestOutcomes:

    @pytest.mark.asyncio
    async def test_committable_is_committed(self, fast_settings):
        store = InMemoryStore()

        value, attempts = await run_in_attempt(store, stage_counter, fast_settings)

        assert value == 1
        assert attempts == 1
        assert store.documents("counters")["c"] == {"value": 1}

    @pytest.mark.asyncio
    async def test_aborted_discards_and_raises(self, fast_settings):
        store = InMemoryStore()
        seen = []

        async def work(attempt):
            attempt.create("counters", "c", {"value": 1})
            seen.append(attempt)
            return Aborted(TransactionNotFound("t1"))

        with pytest.raises(TransactionNotFound):
            await run_in_attempt(store, work, fast_settings)

        assert store.count("counters") == 0
        assert store.commit_count == 0
        assert len(seen) == 1
        assert seen[0].closed and seen[0].writes == []

    @pytest.mark.asyncio
    async def test_exception_in_work_discards(self, fast_settings):
        store = InMemoryStore()
        seen = []

        async def work(attempt):
            seen.append(attempt)
            attempt.create("counters", "c", {"value": 1})
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await run_in_attempt(store, work, fast_settings)

        assert seen[0].closed
        assert store.count("counters") == 0


class TestRetries:

    @pytest.mark.asyncio
    async def test_conflict_then_success(self, fast_settings):
        store = FlakyStore(failures=2, error=WriteConflict("lost the race"))

        value, attempts = await run_in_attempt(store, stage_counter, fast_settings)

        assert attempts == 3
        assert store.commit_calls == 3
        assert value == 1

    @pytest.mark.asyncio
    async def test_work_restarts_from_first_read(self, fast_settings):
        """Each retry sees the state left by the winner of the race."""
        store = InMemoryStore()
        store.put("counters", "c", {"value": 10})
        raced = False

        async def work(attempt):
            nonlocal raced
            outcome = await stage_counter(attempt)
            if not raced:
                raced = True
                store.put("counters", "c", {"value": 20})
            return outcome

        value, attempts = await run_in_attempt(store, work, fast_settings)

        assert attempts == 2
        assert value == 21
        assert store.documents("counters")["c"] == {"value": 21}

    @pytest.mark.asyncio
    async def test_budget_exhausted(self, fast_settings):
        store = FlakyStore(failures=100, error=WriteConflict("always"))

        with pytest.raises(Conflict) as exc_info:
            await run_in_attempt(store, stage_counter, fast_settings, operation="count")

        assert exc_info.value.attempts == fast_settings.max_attempts
        assert store.commit_calls == fast_settings.max_attempts
        assert isinstance(exc_info.value.last_error, WriteConflict)
        assert store.count("counters") == 0

    @pytest.mark.asyncio
    async def test_unavailable_store_is_not_retried(self, fast_settings):
        store = FlakyStore(failures=1, error=StoreUnavailable("connection refused"))

        with pytest.raises(StoreUnavailable):
            await run_in_attempt(store, stage_counter, fast_settings)

        assert store.commit_calls == 1
