"""PDF parser using PyMuPDF."""

from __future__ import annotations

import base64
import re
from pathlib import Path
from typing import Optional

import pymupdf

from kapul.library.models import ParsedDocument

from .base import BaseParser, DocumentParseError, DocumentRenderer

COVER_SCALE = 0.5


def _page_paragraphs(page: pymupdf.Page) -> list[str]:
    """Text blocks of a page in reading order, headers and footers dropped."""
    paragraphs: list[str] = []
    page_height = page.rect.height
    for block in sorted(page.get_text("blocks"), key=lambda b: b[1]):
        # block: (x0, y0, x1, y1, text, block_no, block_type)
        if block[6] != 0:  # skip image blocks
            continue
        text = block[4].strip()
        if not text:
            continue
        # Skip short lines in the top and bottom 5% (running heads, page numbers)
        y_pos = block[1]
        if (y_pos < page_height * 0.05 or y_pos > page_height * 0.95) and len(text) < 80:
            continue
        cleaned = re.sub(r"\s+", " ", text).strip()
        if cleaned:
            paragraphs.append(cleaned)
    return paragraphs


class PdfRenderer(DocumentRenderer):
    def __init__(self, data: bytes) -> None:
        self._doc = pymupdf.open(stream=data, filetype="pdf")

    @property
    def page_count(self) -> int:
        return len(self._doc)

    @property
    def toc(self) -> list[tuple[int, str]]:
        # get_toc rows are [level, title, page]; chapters and sections only
        return [(t[2], t[1]) for t in self._doc.get_toc() if t[0] <= 2 and t[2] > 0]

    def page_text(self, page_number: int) -> list[str]:
        if not 1 <= page_number <= len(self._doc):
            return []
        return _page_paragraphs(self._doc[page_number - 1])

    def close(self) -> None:
        self._doc.close()


class PdfParser(BaseParser):
    SUPPORTED_EXTENSIONS = (".pdf",)
    FORMAT = "pdf"

    def parse(self, file_path: Path) -> ParsedDocument:
        try:
            data = file_path.read_bytes()
            with pymupdf.open(stream=data, filetype="pdf") as doc:
                metadata = doc.metadata or {}
                return ParsedDocument(
                    title=metadata.get("title", "") or file_path.stem,
                    author=metadata.get("author", "") or "Unknown Author",
                    format=self.FORMAT,
                    num_pages=len(doc),
                    data=data,
                )
        except Exception as e:
            raise DocumentParseError(f"Failed to parse PDF: {e}") from e

    def extract_cover(self, data: bytes) -> Optional[str]:
        doc = pymupdf.open(stream=data, filetype="pdf")
        try:
            if len(doc) == 0:
                return None
            pix = doc[0].get_pixmap(matrix=pymupdf.Matrix(COVER_SCALE, COVER_SCALE))
            encoded = base64.b64encode(pix.tobytes("png")).decode("ascii")
            return f"data:image/png;base64,{encoded}"
        finally:
            doc.close()

    def open_renderer(self, data: bytes) -> DocumentRenderer:
        return PdfRenderer(data)
