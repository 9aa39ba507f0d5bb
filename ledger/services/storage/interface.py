"""
Abstract Transactional Store Interface

DESIGN DECISION: The ledger never talks to a database directly. It talks to
a document store that offers optimistic transactions:
1. Snapshot reads inside an attempt
2. Staged writes (create / update / delete) applied together at commit
3. Conflict detection when something read by the attempt changed meanwhile

The store is injected into every executor. Any backend offering these
primitives (a cloud document database, a SQL table with version columns,
the in-memory store used by the tests) can sit behind this interface.

Retry policy is NOT part of the store. The store reports a conflict once;
the ledger decides how often to start over.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class _ServerTimestamp:
    """Placeholder replaced by the store with the commit time."""

    _instance: Optional['_ServerTimestamp'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class WriteKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class DocumentSnapshot(BaseModel):
    """A document as read at one point in time. data is None when absent."""

    collection: str
    id: str
    data: Optional[dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.data is not None


class StagedWrite(BaseModel):
    """A write waiting for commit."""

    kind: WriteKind
    collection: str
    doc_id: str
    data: dict[str, Any] = Field(default_factory=dict)


class StoreAttempt(ABC):
    """
    One optimistic transaction attempt.

    All reads must happen before the first staged write. Nothing staged is
    visible to anybody until the store commits the attempt.
    """

    def __init__(self):
        self._writes: list[StagedWrite] = []
        self._closed = False

    @property
    def writes(self) -> list[StagedWrite]:
        return list(self._writes)

    @property
    def closed(self) -> bool:
        return self._closed

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """
        Snapshot-read a document inside this attempt.

        Raises:
            StorageError: If the attempt is closed or writes were already staged
        """
        self._ensure_open()
        if self._writes:
            raise StorageError(
                f"Read of {collection}/{doc_id} after writes were staged; "
                "all reads must precede writes"
            )
        return await self._read(collection, doc_id)

    @abstractmethod
    async def _read(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Backend-specific snapshot read."""
        pass

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Stage creation of a new document. Commit conflicts if it exists."""
        self._stage(WriteKind.CREATE, collection, doc_id, data)

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Stage a partial update. Fields not named are left unchanged."""
        self._stage(WriteKind.UPDATE, collection, doc_id, fields)

    def delete(self, collection: str, doc_id: str) -> None:
        """Stage deletion of a document."""
        self._stage(WriteKind.DELETE, collection, doc_id, {})

    def server_timestamp(self) -> Any:
        """
        Value the store replaces with the commit time.

        Every occurrence inside one attempt resolves to the same instant.
        """
        return SERVER_TIMESTAMP

    def discard(self) -> None:
        """Drop all staged writes; the attempt cannot be used afterwards."""
        self._writes.clear()
        self._closed = True

    def _stage(
        self,
        kind: WriteKind,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        self._ensure_open()
        self._writes.append(StagedWrite(
            kind=kind,
            collection=collection,
            doc_id=doc_id,
            data=dict(data),
        ))

    def _ensure_open(self) -> None:
        if self._closed:
            raise StorageError("Attempt is already committed or discarded")


class TransactionalStore(ABC):
    """
    Abstract interface for the document store the ledger runs on.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def begin(self) -> StoreAttempt:
        """Start a new attempt."""
        pass

    @abstractmethod
    def new_id(self, collection: str) -> str:
        """
        Generate a fresh document identifier.

        Args:
            collection: Collection the document will live in

        Returns:
            An identifier not used by any existing document
        """
        pass

    @abstractmethod
    async def commit(self, attempt: StoreAttempt) -> None:
        """
        Apply every staged write of the attempt atomically.

        Raises:
            WriteConflict: A document read by the attempt changed after
                it was read, or a created document already exists
            NotFoundError: An update targets a missing document
            StoreUnavailable: The backend could not be reached
        """
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """
        Read a document outside any attempt.

        Returns:
            The snapshot (check .exists)
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        """
        Find documents whose field equals value.

        Evaluated outside attempt isolation: the result can be stale by the
        time the attempt commits, and nothing guarantees uniqueness.

        Returns:
            Matching snapshots
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class WriteConflict(StorageError):
    """A concurrent commit invalidated this attempt."""
    pass


class StoreUnavailable(StorageError):
    """Could not reach the storage backend."""
    pass
