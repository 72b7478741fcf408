"""Study statistics derived from library state.

``pages_read`` and ``problems_solved`` are heuristics, not tracked events:
pages are estimated from each book's progress, and every two highlights count
as one problem worked through.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Sequence

from .backends import StorageOperationFailed
from .models import Book, Flashcard, Highlight, QuizScore, StudyStats

if TYPE_CHECKING:
    from .shelf import Library

log = logging.getLogger(__name__)

# Pages credited per started book when no book has page-count metadata.
PAGES_PER_STARTED_BOOK = 3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_pages_read(books: Sequence[Book]) -> int:
    total = 0
    for book in books:
        if book.total_pages and book.progress:
            total += math.floor(book.progress / 100 * book.total_pages)
    if total:
        return total
    return PAGES_PER_STARTED_BOOK * sum(1 for b in books if b.progress > 0)


def compute_stats(
    books: Sequence[Book],
    highlights: Sequence[Highlight],
    flashcards: Sequence[Flashcard],
    quiz_scores: Sequence[QuizScore],
) -> StudyStats:
    quiz = 0
    if quiz_scores:
        quiz = round_half_up(sum(s.percentage for s in quiz_scores) / len(quiz_scores))
    return StudyStats(
        pages_read=estimate_pages_read(books),
        problems_solved=len(highlights) // 2,
        flashcards=len(flashcards),
        quiz_score=quiz,
    )


async def collect_stats(library: Library) -> StudyStats:
    """Read current state and compute stats; storage failures give zeros."""
    try:
        return compute_stats(
            await library.get_books(),
            await library.get_highlights(),
            await library.get_flashcards(),
            await library.get_quiz_scores(),
        )
    except StorageOperationFailed as e:
        log.error("Could not compute study stats: %s", e)
        return StudyStats()
