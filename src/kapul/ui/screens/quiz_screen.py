from __future__ import annotations

from typing import TYPE_CHECKING

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, Static

from kapul.library.backends import StorageOperationFailed
from kapul.library.models import Book

if TYPE_CHECKING:
    from kapul.app import KapulApp


def score_percentage(correct: int, total: int) -> float:
    return correct / total * 100 if total else 0.0


class QuizScreen(Screen):
    """Self-marked quiz: reveal each answer, then mark it right or wrong."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
        Binding("space", "reveal", "Reveal"),
        Binding("y", "mark(True)", "Right"),
        Binding("n", "mark(False)", "Wrong"),
    ]

    def __init__(self, book: Book, source_text: str) -> None:
        super().__init__()
        self._book = book
        self._source = source_text
        self._questions: list[dict[str, str]] = []
        self._index = 0
        self._correct = 0
        self._revealed = False
        self._finished = False

    @property
    def kapul(self) -> KapulApp:
        return self.app  # type: ignore[return-value]

    def compose(self) -> ComposeResult:
        yield Static(f" Quiz: {self._book.title}", id="quiz-header")
        yield Static("Generating questions...", id="quiz-question", classes="loading-text")
        yield Static("", id="quiz-answer")
        yield Static("", id="quiz-score")
        yield Footer()

    def on_mount(self) -> None:
        self._load_questions()

    @work(exclusive=True, group="quiz-load")
    async def _load_questions(self) -> None:
        self._questions = await self.kapul.tutor.generate_quiz(self._source)
        self.query_one("#quiz-question", Static).remove_class("loading-text")
        self._show_question()

    def _show_question(self) -> None:
        question = self._questions[self._index]
        self._revealed = False
        self.query_one("#quiz-question", Static).update(
            f"Q{self._index + 1}/{len(self._questions)}. {question['q']}"
        )
        self.query_one("#quiz-answer", Static).update("[space] to reveal the answer")
        self.query_one("#quiz-score", Static).update(
            f"Correct so far: {self._correct}"
        )

    def action_reveal(self) -> None:
        if not self._questions or self._finished:
            return
        self._revealed = True
        answer = self._questions[self._index]["a"]
        self.query_one("#quiz-answer", Static).update(
            f"{answer}\n\nDid you get it? [y] yes  [n] no"
        )

    async def action_mark(self, correct: bool) -> None:
        if not self._revealed or self._finished:
            return
        if correct:
            self._correct += 1
        self._index += 1
        if self._index < len(self._questions):
            self._show_question()
            return
        await self._finish()

    async def _finish(self) -> None:
        self._finished = True
        pct = score_percentage(self._correct, len(self._questions))
        try:
            await self.kapul.library.save_quiz_score(pct)
            average = await self.kapul.library.average_quiz_score()
        except StorageOperationFailed as e:
            self.notify(f"Could not save score: {e}", severity="error")
            average = None
        self.query_one("#quiz-question", Static).update(
            f"Done! {self._correct}/{len(self._questions)} correct ({pct:.0f}%)"
        )
        self.query_one("#quiz-answer", Static).update("")
        summary = f"Average across quizzes: {average}%" if average is not None else ""
        self.query_one("#quiz-score", Static).update(summary)

    def action_go_back(self) -> None:
        self.app.pop_screen()
