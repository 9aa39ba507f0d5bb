"""
Storage Services Package

Abstract transactional store interface plus the in-memory implementation.
"""

from ledger.services.storage.interface import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    NotFoundError,
    StagedWrite,
    StorageError,
    StoreAttempt,
    StoreUnavailable,
    TransactionalStore,
    WriteConflict,
    WriteKind,
)
from ledger.services.storage.memory import InMemoryAttempt, InMemoryStore

__all__ = [
    # Interfaces
    "DocumentSnapshot",
    "SERVER_TIMESTAMP",
    "StagedWrite",
    "StoreAttempt",
    "TransactionalStore",
    "WriteKind",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StoreUnavailable",
    "WriteConflict",
    # In-memory implementation
    "InMemoryAttempt",
    "InMemoryStore",
]
