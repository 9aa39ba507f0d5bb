"""
Shared fixtures for ledger tests.

Every test gets its own InMemoryStore seeded with three accounts:
A ("Wallet", 100), B ("Savings", 50) and C ("Travel", 0).
Retries use zero backoff so conflict tests run instantly.
"""

from decimal import Decimal

import pytest

from ledger.config import LedgerSettings
from ledger.models import format_amount
from ledger.orchestrator import Ledger
from ledger.services.storage import InMemoryStore


@pytest.fixture
def settings() -> LedgerSettings:
    return LedgerSettings(
        max_attempts=25,
        backoff_multiplier=0.0,
        backoff_min=0.0,
        backoff_max=0.0,
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def seed_account(store, settings):
    def _seed(account_id: str, title: str, balance: str) -> None:
        store.put(settings.accounts_collection, account_id, {
            "title": title,
            "amount": format_amount(Decimal(balance)),
            "color": "#4CAF50",
        })
    return _seed


@pytest.fixture
def accounts(seed_account):
    seed_account("A", "Wallet", "100")
    seed_account("B", "Savings", "50")
    seed_account("C", "Travel", "0")
    return ["A", "B", "C"]


@pytest.fixture
def balance_of(store, settings):
    def _balance(account_id: str) -> Decimal:
        return Decimal(store.documents(settings.accounts_collection)[account_id]["amount"])
    return _balance


@pytest.fixture
def records(store, settings):
    def _records() -> dict[str, dict]:
        return store.documents(settings.transactions_collection)
    return _records


@pytest.fixture
def ledger(store, settings, accounts) -> Ledger:
    return Ledger(store, settings)
