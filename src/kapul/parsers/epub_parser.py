"""EPUB parser using ebooklib."""

from __future__ import annotations

import base64
import os
import re
import tempfile
import warnings
from pathlib import Path
from typing import Optional

import ebooklib
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from ebooklib import epub

warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

from kapul.library.models import ParsedDocument

from .base import BaseParser, DocumentParseError, DocumentRenderer

# EPUBs have no fixed pages; each spine document counts as this many.
PAGES_PER_SECTION = 3
COVER_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")

_BLOCK_TAGS = frozenset(
    ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "pre"]
)


def _html_to_paragraphs(html: str) -> list[str]:
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(["script", "style", "sup"]):
        tag.decompose()

    paragraphs: list[str] = []
    block_tags = soup.find_all(list(_BLOCK_TAGS))

    if block_tags:
        for tag in block_tags:
            if tag.find(list(_BLOCK_TAGS)):
                continue
            text = tag.get_text(separator=" ", strip=True)
            text = re.sub(r"\s+", " ", text).strip()
            if text:
                paragraphs.append(text)
    else:
        text = soup.get_text(separator="\n")
        for para in re.split(r"\n\s*\n", text):
            cleaned = re.sub(r"\s+", " ", para).strip()
            if cleaned:
                paragraphs.append(cleaned)

    return paragraphs


def _read_epub(data: bytes) -> epub.EpubBook:
    """ebooklib reads from a path, so stored bytes go through a temp file."""
    fd, tmp = tempfile.mkstemp(suffix=".epub")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        return epub.read_epub(tmp, options={"ignore_ncx": False})
    finally:
        os.unlink(tmp)


def _spine_documents(book: epub.EpubBook) -> list[epub.EpubItem]:
    spine_items = list(book.get_items_of_type(ebooklib.ITEM_DOCUMENT))
    id_to_item = {item.get_id(): item for item in spine_items}
    ordered = [id_to_item[sid] for sid, _ in book.spine if sid in id_to_item]
    # Fall back to all document items if spine is empty
    return ordered or spine_items


def _get_meta(book: epub.EpubBook, field: str) -> str:
    values = book.get_metadata("DC", field)
    if values:
        val = values[0]
        if isinstance(val, tuple):
            return str(val[0]) if val[0] else ""
        return str(val)
    return ""


def _split(paragraphs: list[str], parts: int) -> list[list[str]]:
    """Split into ``parts`` contiguous slices of near-equal length."""
    size, extra = divmod(len(paragraphs), parts)
    slices = []
    start = 0
    for i in range(parts):
        end = start + size + (1 if i < extra else 0)
        slices.append(paragraphs[start:end])
        start = end
    return slices


def _toc_entries(toc: list, items: list[epub.EpubItem]) -> list[tuple[int, str]]:
    """TOC entries as (first page of the section, title)."""
    entries: list[tuple[int, str]] = []
    item_names = [item.get_name() for item in items]

    def _flatten_toc(toc_list: list) -> None:
        for entry in toc_list:
            if isinstance(entry, (tuple, list)):
                _flatten_toc(list(entry))
            elif isinstance(entry, epub.Section):
                continue
            elif isinstance(entry, epub.Link) and entry.title:
                href = entry.href.split("#")[0] if entry.href else ""
                if not href:
                    continue
                for idx, name in enumerate(item_names):
                    if name == href or href.endswith(name) or name.endswith(href):
                        entries.append((idx * PAGES_PER_SECTION + 1, entry.title))
                        break

    _flatten_toc(toc)
    return entries


class EpubRenderer(DocumentRenderer):
    def __init__(self, data: bytes) -> None:
        book = _read_epub(data)
        self._items = _spine_documents(book)
        self._toc = _toc_entries(book.toc, self._items)
        self._cache: dict[int, list[list[str]]] = {}

    @property
    def page_count(self) -> int:
        return len(self._items) * PAGES_PER_SECTION

    @property
    def toc(self) -> list[tuple[int, str]]:
        return list(self._toc)

    def _section(self, index: int) -> list[list[str]]:
        if index not in self._cache:
            html = self._items[index].get_content().decode("utf-8", errors="replace")
            self._cache[index] = _split(_html_to_paragraphs(html), PAGES_PER_SECTION)
        return self._cache[index]

    def page_text(self, page_number: int) -> list[str]:
        if not 1 <= page_number <= self.page_count:
            return []
        section, part = divmod(page_number - 1, PAGES_PER_SECTION)
        return self._section(section)[part]

    def location(self, page_number: int) -> Optional[str]:
        if not 1 <= page_number <= self.page_count:
            return None
        section, part = divmod(page_number - 1, PAGES_PER_SECTION)
        return f"{self._items[section].get_name()}#{part + 1}"


class EpubParser(BaseParser):
    SUPPORTED_EXTENSIONS = (".epub",)
    FORMAT = "epub"

    def parse(self, file_path: Path) -> ParsedDocument:
        try:
            data = file_path.read_bytes()
            book = epub.read_epub(str(file_path), options={"ignore_ncx": False})
            return ParsedDocument(
                title=_get_meta(book, "title") or file_path.stem,
                author=_get_meta(book, "creator") or "Unknown Author",
                format=self.FORMAT,
                num_pages=len(_spine_documents(book)) * PAGES_PER_SECTION,
                data=data,
            )
        except Exception as e:
            raise DocumentParseError(f"Failed to parse EPUB: {e}") from e

    def extract_cover(self, data: bytes) -> Optional[str]:
        book = _read_epub(data)
        candidates = list(book.get_items_of_type(ebooklib.ITEM_COVER))
        candidates += [
            item
            for item in book.get_items_of_type(ebooklib.ITEM_IMAGE)
            if "cover" in item.get_name().lower()
            and item.get_name().lower().endswith(COVER_EXTENSIONS)
        ]
        for item in candidates:
            content = item.get_content()
            if content:
                encoded = base64.b64encode(content).decode("ascii")
                return f"data:{item.media_type};base64,{encoded}"
        return None

    def open_renderer(self, data: bytes) -> DocumentRenderer:
        return EpubRenderer(data)
