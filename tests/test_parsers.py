"""Tests for the PDF and EPUB parsers and renderers."""

from __future__ import annotations

from pathlib import Path

import pymupdf
import pytest
from ebooklib import epub

from kapul.library.shelf import Library
from kapul.parsers.base import (
    DocumentParseError,
    UnsupportedFileFormat,
    get_parser,
    open_renderer,
)
from kapul.parsers.epub_parser import PAGES_PER_SECTION, _split

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _make_pdf(path: Path, pages: int = 2, metadata: bool = True) -> Path:
    doc = pymupdf.open()
    for i in range(pages):
        page = doc.new_page()
        page.insert_text((72, 200), f"Velocity on page {i + 1}.", fontsize=12)
        page.insert_text((72, 400), "Acceleration is the rate of change of velocity.")
    if metadata:
        doc.set_metadata({"title": "Motion", "author": "Ada Lovelace"})
    doc.set_toc([[1, "Kinematics", 1]])
    doc.save(str(path))
    doc.close()
    return path


def _make_epub(path: Path, cover: bool = False) -> Path:
    book = epub.EpubBook()
    book.set_identifier("kapul-test")
    book.set_title("Cell Biology")
    book.set_language("en")
    book.add_author("Test Author")
    if cover:
        book.set_cover("cover.png", PNG_HEADER, create_page=False)

    c1 = epub.EpubHtml(title="Chapter 1", file_name="ch1.xhtml", lang="en")
    c1.content = (
        "<html><body><h1>Chapter 1</h1><p>First paragraph.</p>"
        "<p>Second paragraph.</p></body></html>"
    )
    book.add_item(c1)

    c2 = epub.EpubHtml(title="Chapter 2", file_name="ch2.xhtml", lang="en")
    c2.content = "<html><body><h1>Chapter 2</h1><p>Chapter two content.</p></body></html>"
    book.add_item(c2)

    book.toc = [
        epub.Link("ch1.xhtml", "Chapter 1", "ch1"),
        epub.Link("ch2.xhtml", "Chapter 2", "ch2"),
    ]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = [c1, c2]

    epub.write_epub(str(path), book)
    return path


# ── PDF Parser ─────────────────────────────────────


class TestPdfParser:
    def test_parse(self, tmp_path: Path):
        f = _make_pdf(tmp_path / "motion.pdf")
        doc = get_parser(f).parse(f)
        assert doc.format == "pdf"
        assert doc.title == "Motion"
        assert doc.author == "Ada Lovelace"
        assert doc.num_pages == 2
        assert doc.data == f.read_bytes()

    def test_title_defaults_to_file_name(self, tmp_path: Path):
        f = _make_pdf(tmp_path / "untitled-notes.pdf", metadata=False)
        doc = get_parser(f).parse(f)
        assert doc.title == "untitled-notes"
        assert doc.author == "Unknown Author"

    def test_corrupt_file(self, tmp_path: Path):
        f = tmp_path / "broken.pdf"
        f.write_bytes(b"this is not a pdf")
        with pytest.raises(DocumentParseError, match="Failed to parse PDF"):
            get_parser(f).parse(f)

    def test_cover(self, tmp_path: Path):
        f = _make_pdf(tmp_path / "motion.pdf")
        cover = get_parser(f).extract_cover(f.read_bytes())
        assert cover.startswith("data:image/png;base64,")

    def test_safe_cover_on_garbage(self, tmp_path: Path):
        parser = get_parser(tmp_path / "x.pdf")
        assert parser.safe_cover(b"garbage") is None
        assert parser.safe_cover(b"") is None

    def test_renderer(self, tmp_path: Path):
        f = _make_pdf(tmp_path / "motion.pdf", pages=3)
        renderer = open_renderer("pdf", f.read_bytes())
        assert renderer.page_count == 3
        assert "Velocity on page 2." in renderer.page_text(2)
        assert renderer.page_text(0) == []
        assert renderer.page_text(4) == []
        assert renderer.location(1) is None
        renderer.close()

    def test_renderer_toc(self, tmp_path: Path):
        f = _make_pdf(tmp_path / "motion.pdf")
        renderer = open_renderer("pdf", f.read_bytes())
        assert renderer.toc == [(1, "Kinematics")]
        renderer.close()


# ── EPUB Parser ────────────────────────────────────


class TestEpubParser:
    def test_parse(self, tmp_path: Path):
        f = _make_epub(tmp_path / "cells.epub")
        doc = get_parser(f).parse(f)
        assert doc.title == "Cell Biology"
        assert doc.author == "Test Author"
        assert doc.format == "epub"
        assert doc.num_pages == 2 * PAGES_PER_SECTION

    def test_corrupt_file(self, tmp_path: Path):
        f = tmp_path / "broken.epub"
        f.write_bytes(b"not a zip")
        with pytest.raises(DocumentParseError, match="Failed to parse EPUB"):
            get_parser(f).parse(f)

    def test_renderer_pages(self, tmp_path: Path):
        f = _make_epub(tmp_path / "cells.epub")
        renderer = open_renderer("epub", f.read_bytes())
        assert renderer.page_count == 6
        assert renderer.page_text(1) == ["Chapter 1"]
        assert renderer.page_text(2) == ["First paragraph."]
        assert renderer.page_text(5) == ["Chapter two content."]
        assert renderer.page_text(6) == []
        assert renderer.page_text(7) == []
        assert renderer.location(2).endswith("ch1.xhtml#2")
        assert renderer.location(4).endswith("ch2.xhtml#1")

    def test_renderer_toc(self, tmp_path: Path):
        f = _make_epub(tmp_path / "cells.epub")
        renderer = open_renderer("epub", f.read_bytes())
        assert renderer.toc == [(1, "Chapter 1"), (1 + PAGES_PER_SECTION, "Chapter 2")]

    def test_unexpected_error_is_parse_error(self, tmp_path: Path, monkeypatch):
        def boom(book):
            raise ValueError("bad spine")

        monkeypatch.setattr("kapul.parsers.epub_parser._spine_documents", boom)
        f = _make_epub(tmp_path / "cells.epub")
        with pytest.raises(DocumentParseError, match="bad spine"):
            get_parser(f).parse(f)

    def test_cover(self, tmp_path: Path):
        f = _make_epub(tmp_path / "cells.epub", cover=True)
        cover = get_parser(f).extract_cover(f.read_bytes())
        assert cover.startswith("data:image/png;base64,")

    def test_no_cover(self, tmp_path: Path):
        f = _make_epub(tmp_path / "cells.epub")
        assert get_parser(f).extract_cover(f.read_bytes()) is None

    def test_split(self):
        assert _split(["a", "b", "c", "d"], 3) == [["a", "b"], ["c"], ["d"]]
        assert _split([], 3) == [[], [], []]


# ── get_parser routing ─────────────────────────────


class TestGetParser:
    def test_supported_extensions(self, tmp_path: Path):
        for ext in [".epub", ".pdf", ".PDF"]:
            f = tmp_path / f"test{ext}"
            assert get_parser(f) is not None

    def test_unsupported_extension(self, tmp_path: Path):
        f = tmp_path / "notes.docx"
        with pytest.raises(UnsupportedFileFormat, match="Only PDF and EPUB"):
            get_parser(f)

    def test_unsupported_is_value_error(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Unsupported format"):
            get_parser(tmp_path / "test.txt")

    def test_unknown_renderer_format(self):
        with pytest.raises(UnsupportedFileFormat):
            open_renderer("mobi", b"")


# ── Import into the library ────────────────────────


class TestImport:
    @pytest.mark.asyncio
    async def test_import_pdf(self, sqlite_library: Library, tmp_path: Path):
        f = _make_pdf(tmp_path / "motion.pdf")
        book = await sqlite_library.import_file(f)
        assert book.title == "Motion"
        assert book.format == "pdf"
        assert book.total_pages == 2
        assert book.file_size.endswith(" MB")
        assert book.cover_image.startswith("data:image/png")
        assert book.progress == 0
        assert [b.id for b in await sqlite_library.get_books()] == [book.id]
        assert await sqlite_library.get_blob(book.id) == f.read_bytes()

    @pytest.mark.asyncio
    async def test_import_epub(self, library: Library, tmp_path: Path):
        f = _make_epub(tmp_path / "cells.epub")
        book = await library.import_file(f)
        assert book.total_pages == 6
        assert await library.get_book(book.id) == book

    @pytest.mark.asyncio
    async def test_failed_parse_writes_nothing(self, library: Library, tmp_path: Path):
        f = tmp_path / "broken.pdf"
        f.write_bytes(b"garbage")
        with pytest.raises(DocumentParseError):
            await library.import_file(f)
        assert await library.get_books() == []

    @pytest.mark.asyncio
    async def test_missing_file(self, library: Library, tmp_path: Path):
        with pytest.raises(DocumentParseError, match="File not found"):
            await library.import_file(tmp_path / "missing.pdf")

    @pytest.mark.asyncio
    async def test_unsupported_file(self, library: Library, tmp_path: Path):
        f = tmp_path / "notes.txt"
        f.write_text("hello")
        with pytest.raises(UnsupportedFileFormat):
            await library.import_file(f)
