from __future__ import annotations

from typing import TYPE_CHECKING

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Static

from kapul.library.backends import StorageOperationFailed

if TYPE_CHECKING:
    from kapul.app import KapulApp


def _clip(text: str, width: int = 70) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"


class HighlightsScreen(Screen):
    """Saved highlights across all books, with the flashcard deck below."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
        Binding("D", "delete_highlight", "Delete", priority=True),
    ]

    @property
    def kapul(self) -> KapulApp:
        return self.app  # type: ignore[return-value]

    def compose(self) -> ComposeResult:
        yield Static("", id="highlights-header")
        yield DataTable(id="highlight-table")
        yield Static("Flashcards", id="flashcard-title")
        yield DataTable(id="flashcard-table")
        yield Footer()

    def on_mount(self) -> None:
        highlights = self.query_one("#highlight-table", DataTable)
        highlights.cursor_type = "row"
        highlights.add_columns("Book", "Highlight", "Saved")
        cards = self.query_one("#flashcard-table", DataTable)
        cards.cursor_type = "row"
        cards.add_columns("Front", "Back")
        self._refresh()
        highlights.focus()

    @work(exclusive=True, group="highlights-refresh")
    async def _refresh(self) -> None:
        library = self.kapul.library
        try:
            highlights = await library.get_highlights()
            flashcards = await library.get_flashcards()
        except StorageOperationFailed as e:
            self.notify(f"Could not load highlights: {e}", severity="error")
            highlights, flashcards = [], []

        table = self.query_one("#highlight-table", DataTable)
        table.clear()
        for h in highlights:
            table.add_row(
                _clip(h.book_title, 24), _clip(h.text), h.created_at[:10], key=str(h.id)
            )

        cards = self.query_one("#flashcard-table", DataTable)
        cards.clear()
        for c in flashcards:
            cards.add_row(_clip(c.front, 40), _clip(c.back), key=str(c.id))

        self.query_one("#highlights-header", Static).update(
            f" Highlights ({len(highlights)})  │  Flashcards ({len(flashcards)})"
        )

    @work(exclusive=True, group="highlights-delete")
    async def action_delete_highlight(self) -> None:
        table = self.query_one("#highlight-table", DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        try:
            await self.kapul.library.delete_highlight(int(str(row_key.value)))
        except StorageOperationFailed as e:
            self.notify(f"Could not delete highlight: {e}", severity="error")
            return
        self._refresh()
        self.notify("Highlight deleted")

    def action_go_back(self) -> None:
        self.app.pop_screen()
