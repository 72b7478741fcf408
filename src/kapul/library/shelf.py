"""Book lifecycle and study records on top of the record and blob stores."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from kapul.parsers.base import DocumentParseError, get_parser

from .backends import StorageOperationFailed
from .models import (
    BOOK_FIELDS,
    Book,
    Flashcard,
    Highlight,
    QuizScore,
    ReadingProgress,
    Settings,
    file_size_label,
    now_iso,
    now_ms,
)
from .stats import round_half_up
from .store import BlobStore, RecordStore, Records

log = logging.getLogger(__name__)

DELETE_POLICIES = ("orphan", "cascade")


def next_id(records: Iterable[dict[str, Any]]) -> int:
    """A millisecond timestamp, bumped past any id already in use."""
    ids = [r["id"] for r in records if isinstance(r.get("id"), int)]
    candidate = now_ms()
    if ids and max(ids) >= candidate:
        candidate = max(ids) + 1
    return candidate


def progress_percentage(current_page: int, total_pages: int) -> int:
    if total_pages <= 0:
        return 0
    return min(100, max(0, round_half_up(current_page / total_pages * 100)))


class Library:
    """Keeps books, their file data and the records that hang off them consistent.

    Books are kept most-recently-added first; highlights and flashcards in the
    order they were created. Deleting a book always removes its file data.
    Whether its highlights, flashcards and progress go too is decided by
    ``delete_policy``: ``"orphan"`` keeps them as study history, ``"cascade"``
    removes them.
    """

    def __init__(
        self, store: RecordStore, blobs: BlobStore, delete_policy: str = "orphan"
    ) -> None:
        if delete_policy not in DELETE_POLICIES:
            raise ValueError(f"Unknown delete policy: {delete_policy}")
        self.store = store
        self.blobs = blobs
        self.delete_policy = delete_policy

    # ── Books ──────────────────────────────────────────

    async def get_books(self) -> list[Book]:
        return [Book.from_record(r) for r in await self.store.get_all("books")]

    async def get_book(self, book_id: int) -> Optional[Book]:
        for record in await self.store.get_all("books"):
            if record["id"] == book_id:
                return Book.from_record(record)
        return None

    async def add_book(self, book: Book, data: Optional[bytes] = None) -> list[Book]:
        def prepend(records: Records) -> Records:
            if any(r["id"] == book.id for r in records):
                raise StorageOperationFailed(f"books: duplicate id {book.id!r}")
            return [book.to_record(), *records]

        # Record first: a rejected id must never touch another book's file.
        records = await self.store.update("books", prepend)
        if data is not None:
            await self.blobs.put(book.id, data)
        log.info("Added book %s (%s)", book.id, book.title)
        return [Book.from_record(r) for r in records]

    async def update_book(self, book_id: int, **fields: Any) -> list[Book]:
        unknown = set(fields) - set(BOOK_FIELDS)
        if unknown:
            raise TypeError(f"Unknown book fields: {', '.join(sorted(unknown))}")
        changes = {BOOK_FIELDS[name]: value for name, value in fields.items()}

        def merge(records: Records) -> Records:
            return [{**r, **changes} if r["id"] == book_id else r for r in records]

        records = await self.store.update("books", merge)
        return [Book.from_record(r) for r in records]

    async def delete_book(self, book_id: int) -> list[Book]:
        records = await self.store.update(
            "books", lambda rs: [r for r in rs if r["id"] != book_id]
        )
        await self.blobs.delete(book_id)

        if self.delete_policy == "cascade":
            await self.store.update(
                "highlights", lambda rs: [r for r in rs if r.get("bookId") != book_id]
            )
            await self.store.update(
                "flashcards", lambda rs: [r for r in rs if r.get("bookId") != book_id]
            )
            await self.store.delete_singleton("progress", book_id)

        if await self.get_current_book() == book_id:
            await self.set_current_book(None)

        log.info("Deleted book %s (%s)", book_id, self.delete_policy)
        return [Book.from_record(r) for r in records]

    async def get_blob(self, book_id: int) -> Optional[bytes]:
        return await self.blobs.get(book_id)

    async def import_file(self, path: Path) -> Book:
        """Parse a PDF/EPUB and add it to the library.

        Nothing is written until parsing has fully succeeded. Raises
        ``UnsupportedFileFormat`` or ``DocumentParseError``.
        """
        parser = get_parser(path)
        if not path.is_file():
            raise DocumentParseError(f"File not found: {path}")

        document = await asyncio.to_thread(parser.parse, path)
        cover = await asyncio.to_thread(parser.safe_cover, document.data)

        book = Book(
            id=next_id(await self.store.get_all("books")),
            title=document.title or path.stem,
            author=document.author or "Unknown Author",
            format=document.format,
            total_pages=document.num_pages,
            file_size=file_size_label(path.stat().st_size),
            date_added=now_iso(),
            cover_image=cover,
        )
        await self.add_book(book, document.data or None)
        return book

    # ── Progress ───────────────────────────────────────

    async def record_progress(
        self,
        book_id: int,
        percentage: int,
        current_page: int,
        total_pages: int,
        location: Optional[str] = None,
    ) -> ReadingProgress:
        progress = ReadingProgress(
            book_id=book_id,
            percentage=percentage,
            current_page=current_page,
            total_pages=total_pages,
        )
        await self.store.upsert_singleton("progress", book_id, progress.to_record())

        fields: dict[str, Any] = {"progress": percentage, "last_page": current_page}
        if location is not None:
            fields["last_location"] = location
        await self.update_book(book_id, **fields)
        return progress

    async def get_progress(self, book_id: int) -> Optional[ReadingProgress]:
        record = await self.store.get_singleton("progress", book_id)
        return ReadingProgress.from_record(record) if record else None

    # ── Highlights ─────────────────────────────────────

    async def get_highlights(self, book_id: Optional[int] = None) -> list[Highlight]:
        if book_id is None:
            records = await self.store.get_all("highlights")
        else:
            records = await self.store.get_all_by_index("highlights", "bookId", book_id)
        return [Highlight.from_record(r) for r in records]

    async def add_highlight(
        self, book_id: Optional[int], text: str, book_title: Optional[str] = None
    ) -> list[Highlight]:
        if book_title is None:
            book = await self.get_book(book_id) if book_id is not None else None
            book_title = book.title if book else "Unknown"

        def append(records: Records) -> Records:
            highlight = Highlight(
                id=next_id(records), book_id=book_id, text=text, book_title=book_title
            )
            return [*records, highlight.to_record()]

        records = await self.store.update("highlights", append)
        return [Highlight.from_record(r) for r in records]

    async def delete_highlight(self, highlight_id: int) -> list[Highlight]:
        records = await self.store.update(
            "highlights", lambda rs: [r for r in rs if r["id"] != highlight_id]
        )
        return [Highlight.from_record(r) for r in records]

    # ── Flashcards ─────────────────────────────────────

    async def get_flashcards(self, book_id: Optional[int] = None) -> list[Flashcard]:
        if book_id is None:
            records = await self.store.get_all("flashcards")
        else:
            records = await self.store.get_all_by_index("flashcards", "bookId", book_id)
        return [Flashcard.from_record(r) for r in records]

    async def add_flashcard(
        self, book_id: Optional[int], front: str, back: str
    ) -> list[Flashcard]:
        return await self.add_flashcards(book_id, [{"front": front, "back": back}])

    async def add_flashcards(
        self, book_id: Optional[int], cards: Iterable[dict[str, str]]
    ) -> list[Flashcard]:
        cards = list(cards)

        def append(records: Records) -> Records:
            added = []
            for card in cards:
                flashcard = Flashcard(
                    id=next_id([*records, *added]),
                    book_id=book_id,
                    front=card["front"],
                    back=card["back"],
                )
                added.append(flashcard.to_record())
            return [*records, *added]

        records = await self.store.update("flashcards", append)
        return [Flashcard.from_record(r) for r in records]

    # ── Quiz scores ────────────────────────────────────

    async def save_quiz_score(self, percentage: float) -> list[QuizScore]:
        items = await self.store.append_value(
            "quizScores", QuizScore(percentage=percentage).to_record()
        )
        return [QuizScore.from_record(r) for r in items]

    async def get_quiz_scores(self) -> list[QuizScore]:
        items = await self.store.get_value("quizScores", []) or []
        return [QuizScore.from_record(r) for r in items]

    async def average_quiz_score(self) -> int:
        scores = await self.get_quiz_scores()
        if not scores:
            return 0
        return round_half_up(sum(s.percentage for s in scores) / len(scores))

    # ── Settings & session ─────────────────────────────

    async def get_settings(self) -> Settings:
        return Settings.from_record(await self.store.get_value("settings", {}) or {})

    async def save_settings(self, settings: Settings) -> None:
        await self.store.set_value("settings", settings.to_record())

    async def set_current_book(self, book_id: Optional[int]) -> None:
        await self.store.set_value("currentBookId", book_id)

    async def get_current_book(self) -> Optional[int]:
        return await self.store.get_value("currentBookId")
