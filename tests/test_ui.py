"""Headless tests for the reader and study screens."""

from __future__ import annotations

from pathlib import Path

import pymupdf
import pytest
from textual.widgets import DataTable, ListView

from kapul.app import KapulApp
from kapul.config import AppConfig
from kapul.tutor.engine import UNCONFIGURED
from kapul.ui.screens.highlights_screen import HighlightsScreen
from kapul.ui.screens.reader_screen import ReaderScreen


def _offline_app(config: AppConfig) -> KapulApp:
    app = KapulApp(config)
    app.tutor._status = dict(UNCONFIGURED)
    return app


def _make_chaptered_pdf(path: Path) -> Path:
    doc = pymupdf.open()
    for i in range(3):
        page = doc.new_page()
        page.insert_text((72, 200), f"Text of page {i + 1}.", fontsize=12)
    doc.set_toc([[1, "Statics", 1], [1, "Dynamics", 3]])
    doc.save(str(path))
    doc.close()
    return path


async def _settle(app: KapulApp, pilot) -> None:
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


class TestStorageFailures:
    @pytest.mark.asyncio
    async def test_highlights_screen_shows_empty_tables(self, config: AppConfig):
        app = _offline_app(config)
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await app.library.add_highlight(None, "kept")
            await app.store.close()

            app.push_screen(HighlightsScreen())
            await _settle(app, pilot)

            assert app.is_running
            assert isinstance(app.screen, HighlightsScreen)
            assert app.screen.query_one("#highlight-table", DataTable).row_count == 0

    @pytest.mark.asyncio
    async def test_reader_survives_unreadable_file(
        self, config: AppConfig, tmp_path: Path
    ):
        app = _offline_app(config)
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            book = await app.library.import_file(_make_chaptered_pdf(tmp_path / "mech.pdf"))
            await app.store.close()

            app.open_book(book)
            await _settle(app, pilot)

            assert app.is_running
            assert isinstance(app.screen, ReaderScreen)
            assert app.screen.page_count == 0


class TestReaderToc:
    @pytest.mark.asyncio
    async def test_jump_to_chapter(self, config: AppConfig, tmp_path: Path):
        app = _offline_app(config)
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            book = await app.library.import_file(_make_chaptered_pdf(tmp_path / "mech.pdf"))
            app.open_book(book)
            await _settle(app, pilot)

            reader = app.screen
            assert isinstance(reader, ReaderScreen)
            assert reader.page_count == 3

            await pilot.press("t")
            assert reader.query_one("#toc-sidebar").has_class("visible")
            toc_list = reader.query_one("#toc-list", ListView)
            assert len(toc_list.children) == 2

            toc_list.index = 1
            await pilot.press("enter")
            await _settle(app, pilot)

            assert reader.query_one("#page-list", ListView).children
            progress = await app.library.get_progress(book.id)
            assert progress.current_page == 3
            assert progress.percentage == 100
            await app.store.close()
