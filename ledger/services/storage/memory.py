"""
In-Memory Transactional Store

A process-local implementation of TransactionalStore with optimistic
concurrency control. Used by the tests and by anything that embeds the
ledger without an external database.

How conflicts are detected:
- Every document key carries a version counter that grows on each write,
  including deletes (the counter survives deletion)
- An attempt remembers the version of every key it read
- Commit re-checks those versions under a lock; any difference means a
  concurrent commit got there first, and the attempt is rejected whole

Reads yield to the event loop so concurrent tasks interleave the same way
they would against a remote store.
"""

import asyncio
import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from ledger.log import get_logger
from ledger.services.storage.interface import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    NotFoundError,
    StorageError,
    StoreAttempt,
    TransactionalStore,
    WriteConflict,
    WriteKind,
)


Key = tuple[str, str]


class InMemoryAttempt(StoreAttempt):
    """Attempt against an InMemoryStore. Repeated reads return the first snapshot."""

    def __init__(self, store: 'InMemoryStore'):
        super().__init__()
        self._store = store
        self._read_versions: dict[Key, int] = {}
        self._snapshots: dict[Key, DocumentSnapshot] = {}

    @property
    def read_versions(self) -> dict[Key, int]:
        return dict(self._read_versions)

    async def _read(self, collection: str, doc_id: str) -> DocumentSnapshot:
        key = (collection, doc_id)
        if key in self._snapshots:
            return self._snapshots[key]

        await asyncio.sleep(0)
        snapshot, version = self._store._snapshot_with_version(collection, doc_id)
        self._read_versions[key] = version
        self._snapshots[key] = snapshot
        return snapshot

    def close(self) -> None:
        self._closed = True


class InMemoryStore(TransactionalStore):
    """
    Dictionary-backed store.

    Commit timestamps are timezone-aware UTC and strictly increasing,
    so records written by later commits always sort after earlier ones.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._documents: dict[Key, dict[str, Any]] = {}
        self._versions: dict[Key, int] = {}
        self._lock = asyncio.Lock()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_timestamp: Optional[datetime] = None
        self._logger = get_logger(__name__)

        self.commit_count = 0
        self.conflict_count = 0

    # ------------------------------------------------------------------
    # Direct access (bootstrap and inspection)
    # ------------------------------------------------------------------

    def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Write a document immediately, outside any attempt."""
        key = (collection, doc_id)
        self._documents[key] = copy.deepcopy(data)
        self._bump(key)

    def count(self, collection: str) -> int:
        return sum(1 for (name, _) in self._documents if name == collection)

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Copy of every document in a collection, keyed by id."""
        return {
            doc_id: copy.deepcopy(data)
            for (name, doc_id), data in self._documents.items()
            if name == collection
        }

    # ------------------------------------------------------------------
    # TransactionalStore
    # ------------------------------------------------------------------

    def begin(self) -> InMemoryAttempt:
        return InMemoryAttempt(self)

    def new_id(self, collection: str) -> str:
        while True:
            doc_id = uuid4().hex
            if (collection, doc_id) not in self._versions:
                return doc_id

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        await asyncio.sleep(0)
        snapshot, _ = self._snapshot_with_version(collection, doc_id)
        return snapshot

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        await asyncio.sleep(0)
        matches = [
            DocumentSnapshot(collection=name, id=doc_id, data=copy.deepcopy(data))
            for (name, doc_id), data in self._documents.items()
            if name == collection and data.get(field) == value
        ]
        matches.sort(key=lambda snapshot: snapshot.id)
        return matches

    async def commit(self, attempt: StoreAttempt) -> None:
        if not isinstance(attempt, InMemoryAttempt) or attempt._store is not self:
            raise StorageError("Attempt does not belong to this store")
        if attempt.closed:
            raise StorageError("Attempt is already committed or discarded")

        async with self._lock:
            try:
                self._check_reads(attempt)
                self._check_writes(attempt)
            except WriteConflict:
                self.conflict_count += 1
                attempt.close()
                raise
            except StorageError:
                attempt.close()
                raise

            timestamp = self._next_timestamp()
            for write in attempt.writes:
                key = (write.collection, write.doc_id)
                data = self._resolve(write.data, timestamp)
                if write.kind is WriteKind.CREATE:
                    self._documents[key] = data
                elif write.kind is WriteKind.UPDATE:
                    self._documents[key].update(data)
                else:
                    self._documents.pop(key, None)
                self._bump(key)

            self.commit_count += 1
            attempt.close()

        self._logger.debug(
            "store_commit",
            writes=len(attempt.writes),
            timestamp=timestamp.isoformat(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _snapshot_with_version(
        self,
        collection: str,
        doc_id: str,
    ) -> tuple[DocumentSnapshot, int]:
        key = (collection, doc_id)
        data = self._documents.get(key)
        snapshot = DocumentSnapshot(
            collection=collection,
            id=doc_id,
            data=copy.deepcopy(data) if data is not None else None,
        )
        return snapshot, self._versions.get(key, 0)

    def _check_reads(self, attempt: InMemoryAttempt) -> None:
        for key, version in attempt.read_versions.items():
            if self._versions.get(key, 0) != version:
                raise WriteConflict(f"{key[0]}/{key[1]} changed since it was read")

    def _check_writes(self, attempt: InMemoryAttempt) -> None:
        # Simulated state so a create followed by an update in one attempt works
        present = {
            key: key in self._documents
            for key in {(w.collection, w.doc_id) for w in attempt.writes}
        }
        for write in attempt.writes:
            key = (write.collection, write.doc_id)
            if write.kind is WriteKind.CREATE:
                if present[key]:
                    raise WriteConflict(f"{key[0]}/{key[1]} already exists")
                present[key] = True
            elif write.kind is WriteKind.UPDATE:
                if not present[key]:
                    raise NotFoundError(f"No document to update: {key[0]}/{key[1]}")
            else:
                present[key] = False

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _bump(self, key: Key) -> None:
        self._versions[key] = self._versions.get(key, 0) + 1

    @staticmethod
    def _resolve(data: dict[str, Any], timestamp: datetime) -> dict[str, Any]:
        return {
            name: timestamp if value is SERVER_TIMESTAMP else copy.deepcopy(value)
            for name, value in data.items()
        }
