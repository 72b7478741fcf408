"""Kapul Reader - study-oriented PDF/EPUB reader."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from textual.app import App

from kapul.config import AppConfig, load_config
from kapul.library.backends import StorageOperationFailed, StorageUnavailable
from kapul.library.models import Book
from kapul.library.shelf import Library
from kapul.library.store import BlobStore, RecordStore
from kapul.parsers.base import DocumentParseError, UnsupportedFileFormat
from kapul.tutor.engine import TutorEngine
from kapul.ui.screens.library_screen import LibraryScreen
from kapul.ui.screens.reader_screen import ReaderScreen
from kapul.ui.themes import APP_CSS

log = logging.getLogger(__name__)


class KapulApp(App):
    """A reader with a study library, highlights, flashcards and an AI tutor."""

    TITLE = "Kapul Reader"
    CSS = APP_CSS

    def __init__(
        self, config: AppConfig | None = None, open_file: str | None = None
    ) -> None:
        super().__init__()
        self.config = config or load_config()
        self.store = RecordStore(
            self.config.db_path, self.config.kv_path, backend=self.config.storage_backend
        )
        self.blobs = BlobStore(self.store)
        self.library = Library(self.store, self.blobs, self.config.delete_policy)
        self.tutor = TutorEngine(self.config.proxy)
        self._open_file = open_file

    async def on_mount(self) -> None:
        try:
            mode = await self.store.initialize()
        except StorageUnavailable as e:
            log.error("Cannot open storage: %s", e)
            self.exit(return_code=1, message=f"Cannot open storage: {e}")
            return

        if mode == "json":
            self.notify(
                "Database unavailable, using fallback storage. "
                "Book files will not be kept.",
                severity="warning",
                timeout=8,
            )
        if self._open_file:
            await self._import_file(self._open_file)
        self.push_screen(LibraryScreen())
        self.run_worker(self.tutor.check_status(), exclusive=True, group="ai-status")

    async def _import_file(self, file_path_str: str) -> None:
        file_path = Path(file_path_str).expanduser().resolve()
        try:
            book = await self.library.import_file(file_path)
        except (UnsupportedFileFormat, DocumentParseError, StorageOperationFailed) as e:
            self.notify(f"Error importing: {e}", severity="error", timeout=5)
            return
        self.notify(f"Added: {book.title}")

    def open_book(self, book: Book) -> None:
        """Open a book in the reader. Called from LibraryScreen."""
        self.push_screen(ReaderScreen(book))

    async def action_quit(self) -> None:
        await self.tutor.close()
        await self.store.close()
        self.exit()


def _setup_logging(config: AppConfig) -> None:
    handler = logging.FileHandler(config.log_path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root = logging.getLogger("kapul")
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)


def main() -> None:
    config = load_config()
    _setup_logging(config)

    open_file: str | None = None
    if len(sys.argv) > 1:
        open_file = sys.argv[1]

    app = KapulApp(config=config, open_file=open_file)
    app.run()


if __name__ == "__main__":
    main()
