"""Services package."""

from ledger.services.storage import (
    DocumentSnapshot,
    InMemoryStore,
    NotFoundError,
    StorageError,
    StoreAttempt,
    StoreUnavailable,
    TransactionalStore,
    WriteConflict,
)

__all__ = [
    "DocumentSnapshot",
    "InMemoryStore",
    "NotFoundError",
    "StorageError",
    "StoreAttempt",
    "StoreUnavailable",
    "TransactionalStore",
    "WriteConflict",
]
