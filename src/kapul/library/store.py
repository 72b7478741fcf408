"""Async record store and blob store over a single storage backend."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from .backends import (
    JsonBackend,
    SqliteBackend,
    StorageBackend,
    StorageOperationFailed,
    StorageUnavailable,
)

log = logging.getLogger(__name__)

Records = list[dict[str, Any]]


class RecordStore:
    """Uniform collection access regardless of which backend is active.

    ``initialize()`` opens SQLite when it can and otherwise switches to the JSON
    fallback without raising. Mutations that read, transform and rewrite a
    collection go through :meth:`update`, which holds a per-collection lock so
    two concurrent writers cannot lose each other's changes.
    """

    def __init__(
        self, db_path: Path, kv_path: Path, backend: str = "auto"
    ) -> None:
        self._db_path = db_path
        self._kv_path = kv_path
        self._preferred = backend
        self._backend: Optional[StorageBackend] = None
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def mode(self) -> Optional[str]:
        return self._backend.name if self._backend else None

    @property
    def supports_blobs(self) -> bool:
        return bool(self._backend and self._backend.supports_blobs)

    async def initialize(self) -> str:
        if self._backend is not None:
            return self._backend.name

        if self._preferred == "json":
            self._backend = JsonBackend(self._kv_path)
        else:
            try:
                self._backend = SqliteBackend(self._db_path)
            except StorageUnavailable as e:
                if self._preferred == "sqlite":
                    raise
                log.warning("SQLite not available, falling back to JSON store: %s", e)
                self._backend = JsonBackend(self._kv_path)

        log.info("Record store ready (%s)", self._backend.name)
        return self._backend.name

    async def close(self) -> None:
        if self._backend is not None:
            self._backend.close()
            self._backend = None

    @property
    def backend(self) -> StorageBackend:
        if self._backend is None:
            raise StorageOperationFailed("Record store is not initialized")
        return self._backend

    def _lock(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    # ── Ordered collections ───────────────────────────

    async def get_all(self, collection: str) -> Records:
        return self.backend.get_all(collection)

    async def get_all_by_index(self, collection: str, field: str, value: Any) -> Records:
        return self.backend.get_all_by_index(collection, field, value)

    async def replace_all(self, collection: str, records: Records) -> None:
        _check_unique_ids(collection, records)
        self.backend.replace_all(collection, records)

    async def update(
        self, collection: str, transform: Callable[[Records], Records]
    ) -> Records:
        async with self._lock(collection):
            records = self.backend.get_all(collection)
            updated = transform(records)
            _check_unique_ids(collection, updated)
            self.backend.replace_all(collection, updated)
            return updated

    # ── Keyed records ─────────────────────────────────

    async def get_singleton(self, collection: str, key: Any) -> Optional[dict[str, Any]]:
        return self.backend.get_singleton(collection, str(key))

    async def upsert_singleton(
        self, collection: str, key: Any, record: dict[str, Any]
    ) -> None:
        self.backend.upsert_singleton(collection, str(key), record)

    async def delete_singleton(self, collection: str, key: Any) -> None:
        self.backend.delete_singleton(collection, str(key))

    # ── Flat values ───────────────────────────────────

    async def get_value(self, key: str, default: Any = None) -> Any:
        return self.backend.get_value(key, default)

    async def set_value(self, key: str, value: Any) -> None:
        self.backend.set_value(key, value)

    async def append_value(self, key: str, item: Any) -> list[Any]:
        """Append to a list-valued entry under the entry's lock."""
        async with self._lock(key):
            items = list(self.backend.get_value(key, []) or [])
            items.append(item)
            self.backend.set_value(key, items)
            return items


def _check_unique_ids(collection: str, records: Records) -> None:
    seen: set[Any] = set()
    for record in records:
        if "id" not in record:
            raise StorageOperationFailed(f"{collection}: record without id")
        if record["id"] in seen:
            raise StorageOperationFailed(
                f"{collection}: duplicate id {record['id']!r}"
            )
        seen.add(record["id"])


class BlobStore:
    """Raw document bytes, one buffer per book.

    Only the SQLite backend keeps blobs; in fallback mode writes are skipped and
    reads return ``None``, which callers treat as "re-upload required".
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def put(self, book_id: Any, data: bytes | bytearray | memoryview) -> bool:
        # Copy before storing: callers may reuse or mutate their buffer.
        snapshot = bytes(data)
        backend = self._store.backend
        if not backend.supports_blobs:
            log.info("Skipping file data for %s: %s store has no blobs", book_id, backend.name)
            return False
        return backend.put_blob(str(book_id), snapshot)

    async def get(self, book_id: Any) -> Optional[bytes]:
        backend = self._store.backend
        if not backend.supports_blobs:
            return None
        return backend.get_blob(str(book_id))

    async def delete(self, book_id: Any) -> None:
        backend = self._store.backend
        if backend.supports_blobs:
            backend.delete_blob(str(book_id))
