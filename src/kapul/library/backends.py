"""Storage backends: SQLite (transactional) and a JSON key-value fallback.

Both variants implement :class:`StorageBackend`. The record store picks one at
start-up and never branches on the variant again; blob support is the only
capability that differs and is advertised by ``supports_blobs``.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

log = logging.getLogger(__name__)

# Ordered collections and the fields the SQLite backend keeps an index on.
LIST_COLLECTIONS: dict[str, dict[str, str]] = {
    "books": {"title": "title", "dateAdded": "date_added"},
    "highlights": {"bookId": "book_id"},
    "flashcards": {"bookId": "book_id"},
}
SINGLETON_COLLECTIONS = ("progress",)
VALUE_KEYS = ("settings", "currentBookId", "quizScores")

# Keys used by the JSON fallback, one serialized value per key.
NAMESPACED_KEYS = {
    "books": "kapul_books",
    "highlights": "kapul_highlights",
    "progress": "kapul_progress",
    "flashcards": "kapul_flashcards",
    "quizScores": "kapul_quiz_scores",
    "settings": "kapul_settings",
    "currentBookId": "kapul_current_book",
}

_SCALARS = (str, int, float, type(None))


class StorageError(Exception):
    """Base class for storage failures."""


class StorageUnavailable(StorageError):
    """The backend could not be opened."""


class StorageOperationFailed(StorageError):
    """A single read or write failed."""


def _linear_filter(
    records: list[dict[str, Any]], field: str, value: Any
) -> list[dict[str, Any]]:
    return [r for r in records if r.get(field) == value]


def _check_list(collection: str) -> None:
    if collection not in LIST_COLLECTIONS:
        raise KeyError(f"Unknown collection: {collection}")


def _check_singleton(collection: str) -> None:
    if collection not in SINGLETON_COLLECTIONS:
        raise KeyError(f"Unknown collection: {collection}")


class StorageBackend(ABC):
    name: str = ""
    supports_blobs: bool = False

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def get_all(self, collection: str) -> list[dict[str, Any]]: ...

    def get_all_by_index(
        self, collection: str, field: str, value: Any
    ) -> list[dict[str, Any]]:
        return _linear_filter(self.get_all(collection), field, value)

    @abstractmethod
    def replace_all(self, collection: str, records: list[dict[str, Any]]) -> None: ...

    @abstractmethod
    def get_singleton(self, collection: str, key: str) -> Optional[dict[str, Any]]: ...

    @abstractmethod
    def upsert_singleton(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> None: ...

    @abstractmethod
    def delete_singleton(self, collection: str, key: str) -> None: ...

    @abstractmethod
    def get_value(self, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    def set_value(self, key: str, value: Any) -> None: ...

    def put_blob(self, key: str, data: bytes) -> bool:
        return False

    def get_blob(self, key: str) -> Optional[bytes]:
        return None

    def delete_blob(self, key: str) -> None:
        return None


# ── SQLite ─────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS books (
    position INTEGER PRIMARY KEY,
    id NOT NULL UNIQUE,
    title,
    date_added,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS books_title ON books(title);
CREATE INDEX IF NOT EXISTS books_date_added ON books(date_added);

CREATE TABLE IF NOT EXISTS highlights (
    position INTEGER PRIMARY KEY,
    id NOT NULL UNIQUE,
    book_id,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS highlights_book_id ON highlights(book_id);

CREATE TABLE IF NOT EXISTS flashcards (
    position INTEGER PRIMARY KEY,
    id NOT NULL UNIQUE,
    book_id,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS flashcards_book_id ON flashcards(book_id);

CREATE TABLE IF NOT EXISTS progress (
    book_id TEXT PRIMARY KEY,
    data TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS file_data (
    book_id TEXT PRIMARY KEY,
    data BLOB NOT NULL
);

CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


@contextmanager
def _guard(operation: str) -> Iterator[None]:
    try:
        yield
    except (sqlite3.Error, ValueError, TypeError) as e:
        log.error("Storage %s failed: %s", operation, e)
        raise StorageOperationFailed(f"{operation} failed: {e}") from e


class SqliteBackend(StorageBackend):
    name = "sqlite"
    supports_blobs = True

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        try:
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot open {db_path}: {e}") from e

    def close(self) -> None:
        self._conn.close()

    # ── Ordered collections ───────────────────────────

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        _check_list(collection)
        with _guard(f"read {collection}"):
            rows = self._conn.execute(
                f"SELECT data FROM {collection} ORDER BY position"
            ).fetchall()
            return [json.loads(r["data"]) for r in rows]

    def get_all_by_index(
        self, collection: str, field: str, value: Any
    ) -> list[dict[str, Any]]:
        _check_list(collection)
        column = LIST_COLLECTIONS[collection].get(field)
        if column is None or value is None or not isinstance(value, _SCALARS):
            return super().get_all_by_index(collection, field, value)
        with _guard(f"read {collection} by {field}"):
            rows = self._conn.execute(
                f"SELECT data FROM {collection} WHERE {column} IS ? ORDER BY position",
                (value,),
            ).fetchall()
            return [json.loads(r["data"]) for r in rows]

    def replace_all(self, collection: str, records: list[dict[str, Any]]) -> None:
        _check_list(collection)
        indexed = LIST_COLLECTIONS[collection]
        columns = ["position", "id", *indexed.values(), "data"]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({placeholders})"
        with _guard(f"write {collection}"), self._conn:
            rows = []
            for position, record in enumerate(records):
                index_values = [
                    v if isinstance(v, _SCALARS) else None
                    for v in (record.get(f) for f in indexed)
                ]
                rows.append((position, record["id"], *index_values, json.dumps(record)))
            self._conn.execute(f"DELETE FROM {collection}")
            self._conn.executemany(sql, rows)

    # ── Keyed records ─────────────────────────────────

    def get_singleton(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        _check_singleton(collection)
        with _guard(f"read {collection}"):
            row = self._conn.execute(
                f"SELECT data FROM {collection} WHERE book_id = ?", (key,)
            ).fetchone()
            return json.loads(row["data"]) if row else None

    def upsert_singleton(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> None:
        _check_singleton(collection)
        with _guard(f"write {collection}"), self._conn:
            self._conn.execute(
                f"INSERT OR REPLACE INTO {collection} (book_id, data) VALUES (?, ?)",
                (key, json.dumps(record)),
            )

    def delete_singleton(self, collection: str, key: str) -> None:
        _check_singleton(collection)
        with _guard(f"delete {collection}"), self._conn:
            self._conn.execute(f"DELETE FROM {collection} WHERE book_id = ?", (key,))

    # ── Flat values ───────────────────────────────────

    def get_value(self, key: str, default: Any = None) -> Any:
        with _guard(f"read {key}"):
            row = self._conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
            return json.loads(row["value"]) if row else default

    def set_value(self, key: str, value: Any) -> None:
        with _guard(f"write {key}"), self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )

    # ── Blobs ─────────────────────────────────────────

    def put_blob(self, key: str, data: bytes) -> bool:
        with _guard("write file data"), self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO file_data (book_id, data) VALUES (?, ?)",
                (key, sqlite3.Binary(data)),
            )
        return True

    def get_blob(self, key: str) -> Optional[bytes]:
        with _guard("read file data"):
            row = self._conn.execute(
                "SELECT data FROM file_data WHERE book_id = ?", (key,)
            ).fetchone()
            return bytes(row["data"]) if row else None

    def delete_blob(self, key: str) -> None:
        with _guard("delete file data"), self._conn:
            self._conn.execute("DELETE FROM file_data WHERE book_id = ?", (key,))


# ── JSON fallback ──────────────────────────────────────


class JsonBackend(StorageBackend):
    """Flat key-value store persisted as one JSON document.

    Each collection lives under its namespaced key as a single serialized value,
    so every read returns a fresh copy. Binary file data is not supported.
    """

    name = "json"
    supports_blobs = False

    def __init__(self, path: Path) -> None:
        self._path = path
        self._values: dict[str, str] = {}
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                self._values = {k: json.dumps(v) for k, v in raw.items()}
            except (OSError, ValueError, AttributeError) as e:
                log.error("Ignoring unreadable store %s: %s", path, e)

    def close(self) -> None:
        self._values = {}

    def _read(self, name: str, default: Any) -> Any:
        item = self._values.get(NAMESPACED_KEYS[name])
        if item is None:
            return default
        try:
            return json.loads(item)
        except ValueError as e:
            log.error("Corrupt value under %s: %s", NAMESPACED_KEYS[name], e)
            return default

    def _write(self, name: str, value: Any) -> None:
        key = NAMESPACED_KEYS[name]
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageOperationFailed(f"write {name} failed: {e}") from e
        previous = self._values.get(key)
        self._values[key] = serialized
        try:
            self._flush()
        except OSError as e:
            if previous is None:
                self._values.pop(key, None)
            else:
                self._values[key] = previous
            log.error("Storage write %s failed: %s", name, e)
            raise StorageOperationFailed(f"write {name} failed: {e}") from e

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        document = {k: json.loads(v) for k, v in self._values.items()}
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f)
            os.replace(tmp, self._path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        _check_list(collection)
        return self._read(collection, [])

    def replace_all(self, collection: str, records: list[dict[str, Any]]) -> None:
        _check_list(collection)
        self._write(collection, list(records))

    def get_singleton(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        _check_singleton(collection)
        return self._read(collection, {}).get(key)

    def upsert_singleton(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> None:
        _check_singleton(collection)
        everything = self._read(collection, {})
        everything[key] = record
        self._write(collection, everything)

    def delete_singleton(self, collection: str, key: str) -> None:
        _check_singleton(collection)
        everything = self._read(collection, {})
        if everything.pop(key, None) is not None:
            self._write(collection, everything)

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._read(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._write(key, value)
