"""Tests for the library aggregate."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from conftest import make_book

from kapul.library.backends import StorageOperationFailed
from kapul.library.models import Settings
from kapul.library.shelf import Library, next_id, progress_percentage
from kapul.library.store import BlobStore, RecordStore


class TestBooks:
    @pytest.mark.asyncio
    async def test_add_without_blob(self, library: Library):
        book = make_book(1, "Calc", total_pages=100)
        books = await library.add_book(book)
        assert [b.id for b in books] == [1]
        stored = await library.store.get_all("books")
        assert stored == [book.to_record()]
        assert await library.get_blob(1) is None

    @pytest.mark.asyncio
    async def test_round_trip(self, library: Library):
        book = make_book(7, "Optics", author="Snell", cover_image="data:image/png;base64,AA")
        await library.add_book(book)
        assert await library.get_book(7) == book

    @pytest.mark.asyncio
    async def test_most_recent_first(self, library: Library):
        for i in range(1, 4):
            await library.add_book(make_book(i, f"Book {i}"))
        assert [b.id for b in await library.get_books()] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_get_missing_book(self, library: Library):
        assert await library.get_book(99) is None

    @pytest.mark.asyncio
    async def test_update_book(self, library: Library):
        await library.add_book(make_book(1))
        await library.add_book(make_book(2, "Other"))
        books = await library.update_book(1, title="Renamed", last_location="ch1.xhtml#2")
        assert [b.id for b in books] == [2, 1]
        book = await library.get_book(1)
        assert book.title == "Renamed"
        assert book.last_location == "ch1.xhtml#2"

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, library: Library):
        await library.add_book(make_book(1))
        with pytest.raises(TypeError):
            await library.update_book(1, colour="red")

    @pytest.mark.asyncio
    async def test_concurrent_adds(self, library: Library):
        await asyncio.gather(*(library.add_book(make_book(i)) for i in range(1, 11)))
        assert sorted(b.id for b in await library.get_books()) == list(range(1, 11))

    def test_unknown_delete_policy(self, tmp_path: Path):
        store = RecordStore(tmp_path / "kapul.db", tmp_path / "kapul.json")
        with pytest.raises(ValueError):
            Library(store, BlobStore(store), delete_policy="shred")


class TestBlobs:
    @pytest.mark.asyncio
    async def test_blob_saved_with_book(self, sqlite_library: Library):
        await sqlite_library.add_book(make_book(1), b"%PDF-1.4")
        assert await sqlite_library.get_blob(1) == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_blob_isolation(self, sqlite_library: Library):
        await sqlite_library.add_book(make_book(1), b"book one bytes")
        assert await sqlite_library.get_blob(2) is None

    @pytest.mark.asyncio
    async def test_duplicate_id_keeps_existing_blob(self, sqlite_library: Library):
        await sqlite_library.add_book(make_book(1, "Original"), b"ORIGINAL BYTES")
        with pytest.raises(StorageOperationFailed):
            await sqlite_library.add_book(make_book(1, "Imposter"), b"IMPOSTER BYTES")
        assert await sqlite_library.get_blob(1) == b"ORIGINAL BYTES"
        assert [b.title for b in await sqlite_library.get_books()] == ["Original"]

    @pytest.mark.asyncio
    async def test_delete_removes_blob(self, sqlite_library: Library):
        await sqlite_library.add_book(make_book(1), b"data")
        books = await sqlite_library.delete_book(1)
        assert books == []
        assert await sqlite_library.get_blob(1) is None


class TestDelete:
    async def _populate(self, library: Library) -> None:
        await library.add_book(make_book(1))
        await library.add_book(make_book(2, "Keep"))
        await library.add_highlight(1, "foo")
        await library.add_highlight(2, "other")
        await library.add_flashcard(1, "Q", "A")
        await library.record_progress(1, 50, 5, 10)
        await library.set_current_book(1)

    @pytest.mark.asyncio
    async def test_orphan_keeps_study_records(self, library: Library):
        await self._populate(library)
        await library.delete_book(1)
        assert [b.id for b in await library.get_books()] == [2]
        assert [h.text for h in await library.get_highlights(1)] == ["foo"]
        assert len(await library.get_flashcards(1)) == 1
        assert await library.get_progress(1) is not None
        assert await library.get_current_book() is None

    @pytest.mark.asyncio
    async def test_cascade_removes_study_records(self, store: RecordStore):
        library = Library(store, BlobStore(store), delete_policy="cascade")
        await self._populate(library)
        await library.delete_book(1)
        assert await library.get_highlights(1) == []
        assert await library.get_flashcards(1) == []
        assert await library.get_progress(1) is None
        assert [h.text for h in await library.get_highlights()] == ["other"]

    @pytest.mark.asyncio
    async def test_current_book_kept_when_other_deleted(self, library: Library):
        await self._populate(library)
        await library.delete_book(2)
        assert await library.get_current_book() == 1


class TestProgress:
    @pytest.mark.asyncio
    async def test_record_progress(self, library: Library):
        await library.add_book(make_book(1, "Calc", total_pages=100))
        await library.record_progress(1, 42, 42, 100)
        progress = await library.get_progress(1)
        assert progress.percentage == 42
        assert progress.current_page == 42
        book = await library.get_book(1)
        assert book.progress == 42
        assert book.last_page == 42

    @pytest.mark.asyncio
    async def test_location_recorded(self, library: Library):
        await library.add_book(make_book(1, format="epub"))
        await library.record_progress(1, 10, 1, 9, location="ch1.xhtml#1")
        assert (await library.get_book(1)).last_location == "ch1.xhtml#1"

    @pytest.mark.asyncio
    async def test_no_progress(self, library: Library):
        assert await library.get_progress(1) is None

    def test_progress_percentage(self):
        assert progress_percentage(1, 3) == 33
        assert progress_percentage(1, 8) == 13  # 12.5 rounds up
        assert progress_percentage(10, 10) == 100
        assert progress_percentage(12, 10) == 100
        assert progress_percentage(1, 0) == 0


class TestHighlights:
    @pytest.mark.asyncio
    async def test_insertion_order(self, library: Library):
        await library.add_book(make_book(1))
        await library.add_highlight(1, "foo")
        await library.add_highlight(1, "bar")
        assert [h.text for h in await library.get_highlights(1)] == ["foo", "bar"]

    @pytest.mark.asyncio
    async def test_title_snapshot(self, library: Library):
        await library.add_book(make_book(1, "Biology"))
        await library.add_highlight(1, "cells")
        await library.update_book(1, title="Biology 2nd ed.")
        assert (await library.get_highlights(1))[0].book_title == "Biology"

    @pytest.mark.asyncio
    async def test_unknown_book_title(self, library: Library):
        await library.add_highlight(None, "loose note")
        assert (await library.get_highlights())[0].book_title == "Unknown"

    @pytest.mark.asyncio
    async def test_ids_unique_when_added_together(self, library: Library):
        await asyncio.gather(*(library.add_highlight(1, f"h{i}") for i in range(5)))
        ids = [h.id for h in await library.get_highlights()]
        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_delete_highlight(self, library: Library):
        await library.add_highlight(1, "foo")
        await library.add_highlight(1, "bar")
        first = (await library.get_highlights())[0]
        remaining = await library.delete_highlight(first.id)
        assert [h.text for h in remaining] == ["bar"]


class TestFlashcards:
    @pytest.mark.asyncio
    async def test_batch_keeps_order(self, library: Library):
        cards = [{"front": f"Q{i}", "back": f"A{i}"} for i in range(3)]
        stored = await library.add_flashcards(1, cards)
        assert [c.front for c in stored] == ["Q0", "Q1", "Q2"]
        assert len({c.id for c in stored}) == 3

    @pytest.mark.asyncio
    async def test_filtered_by_book(self, library: Library):
        await library.add_flashcard(1, "Q1", "A1")
        await library.add_flashcard(2, "Q2", "A2")
        assert [c.front for c in await library.get_flashcards(2)] == ["Q2"]
        assert len(await library.get_flashcards()) == 2


class TestQuizAndSettings:
    @pytest.mark.asyncio
    async def test_quiz_scores(self, library: Library):
        assert await library.average_quiz_score() == 0
        await library.save_quiz_score(50)
        await library.save_quiz_score(75)
        assert [s.percentage for s in await library.get_quiz_scores()] == [50, 75]
        assert await library.average_quiz_score() == 63  # 62.5 rounds up

    @pytest.mark.asyncio
    async def test_settings(self, library: Library):
        assert await library.get_settings() == Settings()
        await library.save_settings(Settings(theme="dark", font_size=18))
        settings = await library.get_settings()
        assert settings.theme == "dark"
        assert settings.font_size == 18

    @pytest.mark.asyncio
    async def test_current_book(self, library: Library):
        assert await library.get_current_book() is None
        await library.set_current_book(3)
        assert await library.get_current_book() == 3


class TestNextId:
    def test_monotonic_past_existing(self):
        future = 10**15
        assert next_id([{"id": future}]) == future + 1

    def test_ignores_non_int_ids(self):
        assert next_id([{"id": "abc"}]) > 0
