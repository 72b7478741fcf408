"""Tests for study statistics."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import make_book

from kapul.library.models import Flashcard, Highlight, QuizScore, StudyStats
from kapul.library.shelf import Library
from kapul.library.stats import (
    collect_stats,
    compute_stats,
    estimate_pages_read,
    round_half_up,
)
from kapul.library.store import BlobStore, RecordStore


class TestHeuristics:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2
        assert round_half_up(0) == 0

    def test_pages_from_progress(self):
        books = [
            make_book(1, total_pages=100, progress=42),
            make_book(2, total_pages=9, progress=50),
        ]
        assert estimate_pages_read(books) == 42 + 4

    def test_pages_without_page_counts(self):
        books = [
            make_book(1, total_pages=0, progress=10),
            make_book(2, total_pages=0, progress=0),
            make_book(3, total_pages=0, progress=80),
        ]
        assert estimate_pages_read(books) == 6

    def test_no_books(self):
        assert estimate_pages_read([]) == 0

    def test_compute_stats(self):
        highlights = [Highlight(id=i, book_id=1, text="t") for i in range(5)]
        cards = [Flashcard(id=i, book_id=1, front="f", back="b") for i in range(3)]
        scores = [QuizScore(percentage=100), QuizScore(percentage=67)]
        stats = compute_stats([make_book(1, progress=50)], highlights, cards, scores)
        assert stats == StudyStats(
            pages_read=5, problems_solved=2, flashcards=3, quiz_score=84
        )

    def test_empty(self):
        assert compute_stats([], [], [], []) == StudyStats()


class TestCollectStats:
    @pytest.mark.asyncio
    async def test_idempotent(self, library: Library):
        await library.add_book(make_book(1, total_pages=20))
        await library.record_progress(1, 50, 10, 20)
        await library.add_highlight(1, "a")
        await library.add_highlight(1, "b")
        await library.add_flashcard(1, "Q", "A")
        await library.save_quiz_score(80)

        first = await collect_stats(library)
        second = await collect_stats(library)
        assert first == second
        assert first == StudyStats(
            pages_read=10, problems_solved=1, flashcards=1, quiz_score=80
        )

    @pytest.mark.asyncio
    async def test_storage_failure_gives_zeros(self, tmp_path: Path):
        store = RecordStore(tmp_path / "kapul.db", tmp_path / "kapul.json")
        # never initialized, so every read fails
        library = Library(store, BlobStore(store))
        assert await collect_stats(library) == StudyStats()


class TestQuizPercentage:
    def test_score_percentage(self):
        from kapul.ui.screens.quiz_screen import score_percentage

        assert score_percentage(2, 3) == pytest.approx(66.666, rel=1e-3)
        assert score_percentage(3, 3) == 100
        assert score_percentage(0, 0) == 0

    @pytest.mark.asyncio
    async def test_fractional_scores_average(self, library: Library):
        await library.save_quiz_score(200 / 3)
        await library.save_quiz_score(100)
        assert await library.average_quiz_score() == 83
