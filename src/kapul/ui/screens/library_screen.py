from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    DataTable,
    DirectoryTree,
    Footer,
    Header,
    Label,
    Static,
)

from kapul.library.backends import StorageOperationFailed
from kapul.library.stats import collect_stats
from kapul.parsers.base import DocumentParseError, UnsupportedFileFormat

if TYPE_CHECKING:
    from kapul.app import KapulApp

BOOK_EXTENSIONS = {".epub", ".pdf"}

# Seconds an upload error stays on screen.
ERROR_TIMEOUT = 5


class BookDirectoryTree(DirectoryTree):
    def filter_paths(self, paths: Iterable[Path]) -> Iterable[Path]:
        return sorted(
            [p for p in paths if p.is_dir() or p.suffix.lower() in BOOK_EXTENSIONS],
            key=lambda p: (not p.is_dir(), p.name.lower()),
        )


class FilePickerScreen(ModalScreen[str | None]):
    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    DEFAULT_CSS = """
    FilePickerScreen {
        align: center middle;
    }
    #file-picker-dialog {
        width: 80%;
        height: 80%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }
    #file-picker-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #file-tree {
        height: 1fr;
        margin-bottom: 1;
    }
    #file-picker-buttons {
        align: center middle;
        height: 3;
    }
    """

    def __init__(self, start_path: str = "~") -> None:
        super().__init__()
        self._start = str(Path(start_path).expanduser().resolve())

    def compose(self) -> ComposeResult:
        with Vertical(id="file-picker-dialog"):
            yield Label("Select a PDF or EPUB file", id="file-picker-title")
            yield BookDirectoryTree(self._start, id="file-tree")
            with Horizontal(id="file-picker-buttons"):
                yield Button("Cancel [Esc]", variant="default", id="fp-cancel")

    def on_mount(self) -> None:
        self.query_one("#file-tree", BookDirectoryTree).focus()

    @on(DirectoryTree.FileSelected)
    def on_file_selected(self, event: DirectoryTree.FileSelected) -> None:
        self.dismiss(str(event.path))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "fp-cancel":
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmDeleteScreen(ModalScreen[bool]):
    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
    ]

    DEFAULT_CSS = """
    ConfirmDeleteScreen {
        align: center middle;
    }
    #confirm-delete-dialog {
        width: 64;
        height: 11;
        background: $surface;
        border: solid $error;
        padding: 1 2;
    }
    #confirm-delete-msg, #confirm-delete-note {
        text-align: center;
        margin: 0 0 1 0;
    }
    #confirm-delete-buttons {
        align: center middle;
        height: 3;
    }
    #confirm-delete-buttons Button {
        margin: 0 2;
    }
    """

    def __init__(self, book_title: str, cascade: bool) -> None:
        super().__init__()
        self._book_title = book_title
        self._cascade = cascade

    def compose(self) -> ComposeResult:
        note = (
            "Its highlights, flashcards and progress are removed too."
            if self._cascade
            else "Highlights and flashcards are kept."
        )
        with Vertical(id="confirm-delete-dialog"):
            yield Label(
                f'Delete "{self._book_title}" from library?',
                id="confirm-delete-msg",
            )
            yield Label(note, id="confirm-delete-note")
            with Horizontal(id="confirm-delete-buttons"):
                yield Button("Delete (y)", variant="error", id="cd-yes")
                yield Button("Cancel (n)", variant="default", id="cd-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "cd-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class LibraryScreen(Screen):
    BINDINGS = [
        Binding("A", "add_book", "Add", priority=True),
        Binding("D", "delete_book", "Delete", priority=True),
        Binding("h", "show_highlights", "Highlights"),
        Binding("z", "start_quiz", "Quiz"),
        Binding("q", "quit_app", "Quit"),
    ]

    @property
    def kapul(self) -> KapulApp:
        return self.app  # type: ignore[return-value]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="library-header")
        yield Static("", id="stats-bar")
        yield DataTable(id="book-table")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#book-table", DataTable)
        table.cursor_type = "row"
        table.add_columns("Title", "Author", "Format", "Progress", "Size", "Added")
        self._refresh_books()
        table.focus()

    def on_screen_resume(self) -> None:
        self._refresh_books()
        self.query_one("#book-table", DataTable).focus()

    @work(exclusive=True, group="library-refresh")
    async def _refresh_books(self) -> None:
        try:
            books = await self.kapul.library.get_books()
        except StorageOperationFailed as e:
            self.notify(f"Could not load library: {e}", severity="error")
            books = []
        stats = await collect_stats(self.kapul.library)

        table = self.query_one("#book-table", DataTable)
        table.clear()
        for book in books:
            table.add_row(
                book.title,
                book.author,
                book.format.upper(),
                f"{book.progress}%",
                book.file_size,
                book.date_added[:10],
                key=str(book.id),
            )

        mode = self.kapul.store.mode or "?"
        self.query_one("#library-header", Static).update(
            f" Kapul Library  ({len(books)} books)  Storage: {mode}"
        )
        self.query_one("#stats-bar", Static).update(
            f"Pages read {stats.pages_read}  │  "
            f"Problems solved {stats.problems_solved}  │  "
            f"Flashcards {stats.flashcards}  │  "
            f"Quiz average {stats.quiz_score}%"
        )

    def _selected_book_id(self) -> int | None:
        table = self.query_one("#book-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return int(str(row_key.value))

    # ── Add Book ────────────────────────────────

    def action_add_book(self) -> None:
        self.app.push_screen(FilePickerScreen("~"), callback=self._on_file_picked)

    def _on_file_picked(self, result: str | None) -> None:
        if result:
            self._do_add_book(result)

    @work(exclusive=True, group="import")
    async def _do_add_book(self, path_str: str) -> None:
        file_path = Path(path_str).expanduser().resolve()
        self.notify(f"Importing {file_path.name}...")
        try:
            book = await self.kapul.library.import_file(file_path)
        except (UnsupportedFileFormat, DocumentParseError, StorageOperationFailed) as e:
            self.notify(f"Error adding book: {e}", severity="error", timeout=ERROR_TIMEOUT)
            return
        self._refresh_books()
        self.notify(f"Added: {book.title}")

    # ── Delete Book ─────────────────────────────

    @work(exclusive=True, group="delete")
    async def action_delete_book(self) -> None:
        book_id = self._selected_book_id()
        if book_id is None:
            return
        try:
            book = await self.kapul.library.get_book(book_id)
        except StorageOperationFailed as e:
            self.notify(f"Could not load book: {e}", severity="error")
            return
        if not book:
            return
        cascade = self.kapul.library.delete_policy == "cascade"
        confirmed = await self.app.push_screen_wait(
            ConfirmDeleteScreen(book.title, cascade)
        )
        if not confirmed:
            return
        try:
            await self.kapul.library.delete_book(book_id)
        except StorageOperationFailed as e:
            self.notify(f"Could not delete: {e}", severity="error")
            return
        self._refresh_books()
        self.notify(f"Removed: {book.title}")

    # ── Open / Study / Quit ─────────────────────

    @on(DataTable.RowSelected, "#book-table")
    async def on_row_selected(self, event: DataTable.RowSelected) -> None:
        try:
            book = await self.kapul.library.get_book(int(str(event.row_key.value)))
            if book:
                await self.kapul.library.set_current_book(book.id)
        except StorageOperationFailed as e:
            self.notify(f"Could not open book: {e}", severity="error")
            return
        if book:
            self.kapul.open_book(book)

    def action_show_highlights(self) -> None:
        from kapul.ui.screens.highlights_screen import HighlightsScreen

        self.app.push_screen(HighlightsScreen())

    @work(exclusive=True, group="quiz")
    async def action_start_quiz(self) -> None:
        from kapul.ui.screens.quiz_screen import QuizScreen

        book_id = self._selected_book_id()
        try:
            book = await self.kapul.library.get_book(book_id) if book_id is not None else None
            highlights = await self.kapul.library.get_highlights(book.id) if book else []
        except StorageOperationFailed as e:
            self.notify(f"Could not load book: {e}", severity="error")
            return
        if book is None:
            self.notify("Select a book to quiz on", severity="warning")
            return
        source = "\n".join(h.text for h in highlights) or book.title
        self.app.push_screen(QuizScreen(book, source))

    async def action_quit_app(self) -> None:
        await self.kapul.action_quit()
