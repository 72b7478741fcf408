from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, ListItem, ListView, Markdown, Static

from kapul.library.backends import StorageOperationFailed
from kapul.library.models import Book
from kapul.library.shelf import progress_percentage
from kapul.parsers.base import DocumentRenderer, UnsupportedFileFormat, open_renderer

if TYPE_CHECKING:
    from kapul.app import KapulApp

MISSING_FILE = (
    "File data not available for this book. "
    "Please re-upload it from the library to read it."
)
NO_SELECTION = "Please select some text first."
NO_RESPONSE = "No response received. Please try again."


class ReaderScreen(Screen):
    """Paged reader. The highlighted paragraph is the text the study tools act on."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
        Binding("left", "prev_page", "←"),
        Binding("right", "next_page", "→"),
        Binding("space", "next_page", "Next", show=False),
        Binding("t", "toggle_toc", "TOC"),
        Binding("e", "explain", "Explain"),
        Binding("s", "solve", "Solve"),
        Binding("f", "flashcards", "Cards"),
        Binding("m", "save_highlight", "Mark"),
        Binding("u", "summarize", "Summary"),
        Binding("x", "close_answer", "Hide", show=False),
    ]

    def __init__(self, book: Book) -> None:
        super().__init__()
        self._book = book
        self._renderer: Optional[DocumentRenderer] = None
        self._page = 1
        self._paragraphs: list[str] = []

    @property
    def kapul(self) -> KapulApp:
        return self.app  # type: ignore[return-value]

    @property
    def page_count(self) -> int:
        return self._renderer.page_count if self._renderer else 0

    def compose(self) -> ComposeResult:
        yield Static("", id="reader-header")
        with Horizontal(id="reader-body"):
            with Vertical(id="toc-sidebar"):
                yield Static("Table of Contents", id="toc-title")
                yield ListView(id="toc-list")
            yield ListView(id="page-list")
            with Vertical(id="answer-panel"):
                yield Static("Tutor", id="answer-title")
                with VerticalScroll(id="answer-text"):
                    yield Markdown("", id="answer-body")
        yield Footer()

    def on_mount(self) -> None:
        self._update_header()
        self._load_book()

    @work(exclusive=True, group="reader-load")
    async def _load_book(self) -> None:
        try:
            data = await self.kapul.library.get_blob(self._book.id)
        except StorageOperationFailed as e:
            self.notify(f"Could not load book: {e}", severity="error")
            data = None
        if data is None:
            self._show_notice(MISSING_FILE)
            return

        try:
            self._renderer = await asyncio.to_thread(
                open_renderer, self._book.format, data
            )
        except UnsupportedFileFormat as e:
            self._show_notice(str(e))
            return
        except Exception as e:
            self.notify(f"Error loading book: {e}", severity="error")
            self._show_notice(MISSING_FILE)
            return

        try:
            progress = await self.kapul.library.get_progress(self._book.id)
        except StorageOperationFailed as e:
            self.notify(f"Could not load progress: {e}", severity="error")
            progress = None
        start = self._book.last_page or (progress.current_page if progress else 1)
        self._page = max(1, min(start, self.page_count))
        self._populate_toc()
        await self._render_page()

    def _show_notice(self, text: str) -> None:
        page_list = self.query_one("#page-list", ListView)
        page_list.clear()
        page_list.append(ListItem(Static(text, classes="notice")))

    async def _render_page(self) -> None:
        if not self._renderer:
            return
        self._paragraphs = await asyncio.to_thread(self._renderer.page_text, self._page)

        page_list = self.query_one("#page-list", ListView)
        await page_list.clear()
        items = [
            ListItem(Static(para), classes="paragraph") for para in self._paragraphs
        ] or [ListItem(Static("(empty page)", classes="notice"))]
        await page_list.extend(items)
        page_list.index = 0
        page_list.focus()
        self._update_header()

    def _update_header(self) -> None:
        parts = [f" {self._book.title}"]
        if self._renderer:
            total = self.page_count
            parts.append(f"P {self._page}/{total}")
            parts.append(f"{progress_percentage(self._page, total)}%")
        parts.append(self.kapul.tutor.status_label)
        self.query_one("#reader-header", Static).update("  │  ".join(parts))

    # ── Page Navigation ────────────────────────────

    async def _go_to(self, page: int) -> None:
        if not self._renderer or not 1 <= page <= self.page_count:
            return
        self._page = page
        await self._render_page()
        await self._save_progress()

    async def action_next_page(self) -> None:
        await self._go_to(self._page + 1)

    async def action_prev_page(self) -> None:
        await self._go_to(self._page - 1)

    def _populate_toc(self) -> None:
        toc_list = self.query_one("#toc-list", ListView)
        toc_list.clear()
        entries = self._renderer.toc if self._renderer else []
        for page, title in entries:
            item = ListItem(Static(title), classes="toc-item")
            item.data = page  # type: ignore[attr-defined]
            toc_list.append(item)
        if not entries:
            toc_list.append(ListItem(Static("No chapters", classes="notice")))

    def action_toggle_toc(self) -> None:
        sidebar = self.query_one("#toc-sidebar")
        sidebar.toggle_class("visible")
        if sidebar.has_class("visible"):
            self.query_one("#toc-list", ListView).focus()
        else:
            self.query_one("#page-list", ListView).focus()

    @on(ListView.Selected, "#toc-list")
    async def on_toc_selected(self, event: ListView.Selected) -> None:
        page = getattr(event.item, "data", None)
        if page is not None:
            self.query_one("#toc-sidebar").remove_class("visible")
            await self._go_to(page)

    async def _save_progress(self) -> None:
        if not self._renderer:
            return
        total = self.page_count
        try:
            await self.kapul.library.record_progress(
                self._book.id,
                percentage=progress_percentage(self._page, total),
                current_page=self._page,
                total_pages=total,
                location=self._renderer.location(self._page),
            )
        except StorageOperationFailed as e:
            self.notify(f"Could not save progress: {e}", severity="error")

    # ── Study tools ────────────────────────────────

    def _selected_text(self) -> str:
        index = self.query_one("#page-list", ListView).index
        if index is None or not 0 <= index < len(self._paragraphs):
            return ""
        return self._paragraphs[index]

    def _show_answer(self, title: str, text: str) -> None:
        self.query_one("#answer-title", Static).update(title)
        self.query_one("#answer-body", Markdown).update(text)
        self.query_one("#answer-panel").add_class("visible")

    def _require_selection(self) -> Optional[str]:
        text = self._selected_text()
        if len(text.strip()) < 2:
            self._show_answer("Tutor", NO_SELECTION)
            return None
        return text

    @work(exclusive=True, group="tutor")
    async def action_explain(self) -> None:
        text = self._require_selection()
        if text is None:
            return
        self._show_answer("Explain", "Thinking...")
        answer = await self.kapul.tutor.explain(text)
        self._show_answer("Explain", answer or NO_RESPONSE)
        self._update_header()

    @work(exclusive=True, group="tutor")
    async def action_solve(self) -> None:
        text = self._require_selection()
        if text is None:
            return
        self._show_answer("Solve", "Working it out...")
        answer = await self.kapul.tutor.solve(text)
        self._show_answer("Solve", answer or NO_RESPONSE)
        self._update_header()

    @work(exclusive=True, group="tutor")
    async def action_summarize(self) -> None:
        content = "\n\n".join(self._paragraphs)
        if not content.strip():
            self._show_answer("Summary", NO_SELECTION)
            return
        self._show_answer("Summary", "Summarizing...")
        answer = await self.kapul.tutor.summarize(content)
        self._show_answer("Summary", answer or NO_RESPONSE)

    @work(exclusive=True, group="tutor")
    async def action_flashcards(self) -> None:
        text = self._require_selection()
        if text is None:
            return
        self._show_answer("Flashcards", "Generating...")
        cards = await self.kapul.tutor.generate_flashcards(text)
        try:
            await self.kapul.library.add_flashcards(self._book.id, cards)
        except StorageOperationFailed as e:
            self._show_answer("Flashcards", "Failed to generate flashcards.")
            self.notify(str(e), severity="error")
            return
        lines = [f"Generated {len(cards)} flashcards!", ""]
        lines += [f"- **{c['front']}**: {c['back']}" for c in cards]
        self._show_answer("Flashcards", "\n".join(lines))

    async def action_save_highlight(self) -> None:
        text = self._selected_text()
        if not text:
            return
        try:
            await self.kapul.library.add_highlight(
                self._book.id, text, book_title=self._book.title
            )
        except StorageOperationFailed as e:
            self.notify(f"Could not save highlight: {e}", severity="error")
            return
        self.notify("Highlight saved")

    def action_close_answer(self) -> None:
        self.query_one("#answer-panel").remove_class("visible")

    @on(ListView.Selected, "#page-list")
    def on_paragraph_selected(self, event: ListView.Selected) -> None:
        self.action_explain()

    # ── Navigation ─────────────────────────────────

    async def action_go_back(self) -> None:
        if self._renderer:
            self._renderer.close()
            self._renderer = None
        self.app.pop_screen()
