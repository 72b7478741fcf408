"""Base parser and renderer interfaces for the supported document formats."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from kapul.library.models import ParsedDocument

log = logging.getLogger(__name__)


class UnsupportedFileFormat(ValueError):
    """The file is neither a PDF nor an EPUB."""


class DocumentParseError(RuntimeError):
    """The document library could not read the file."""


class DocumentRenderer(ABC):
    """Page-addressable text view of a stored document (pages are 1-based)."""

    @property
    @abstractmethod
    def page_count(self) -> int: ...

    @property
    def toc(self) -> list[tuple[int, str]]:
        """(first page, title) entries for jumping to a chapter."""
        return []

    @abstractmethod
    def page_text(self, page_number: int) -> list[str]:
        """Paragraphs on the given page."""

    def location(self, page_number: int) -> Optional[str]:
        """Format-specific position marker for a page, if the format has one."""
        return None

    def close(self) -> None:
        return None


class BaseParser(ABC):
    """Abstract base for format-specific parsers."""

    SUPPORTED_EXTENSIONS: tuple[str, ...] = ()
    FORMAT: str = ""

    @abstractmethod
    def parse(self, file_path: Path) -> ParsedDocument:
        """Parse a file and return its metadata and raw bytes."""

    @abstractmethod
    def extract_cover(self, data: bytes) -> Optional[str]:
        """Return a cover image as a data URL, or None."""

    @abstractmethod
    def open_renderer(self, data: bytes) -> DocumentRenderer:
        """Open stored document bytes for page-by-page reading."""

    def safe_cover(self, data: bytes) -> Optional[str]:
        if not data:
            return None
        try:
            return self.extract_cover(data)
        except Exception as e:
            log.warning("Could not extract cover: %s", e)
            return None

    @classmethod
    def can_handle(cls, file_path: Path) -> bool:
        return file_path.suffix.lower() in cls.SUPPORTED_EXTENSIONS


def _parsers() -> list[type[BaseParser]]:
    from kapul.parsers.epub_parser import EpubParser
    from kapul.parsers.pdf_parser import PdfParser

    return [PdfParser, EpubParser]


def get_parser(file_path: Path) -> BaseParser:
    """Return the appropriate parser for a file."""
    parsers = _parsers()
    for parser_cls in parsers:
        if parser_cls.can_handle(file_path):
            return parser_cls()

    supported = []
    for p in parsers:
        supported.extend(p.SUPPORTED_EXTENSIONS)
    raise UnsupportedFileFormat(
        f"Unsupported format: {file_path.suffix or file_path.name}. "
        f"Only PDF and EPUB files are supported ({', '.join(supported)})"
    )


def open_renderer(format: str, data: bytes) -> DocumentRenderer:
    """Open a renderer for a stored document of the given format."""
    for parser_cls in _parsers():
        if parser_cls.FORMAT == format:
            return parser_cls().open_renderer(data)
    raise UnsupportedFileFormat(f"Unsupported format: {format}")
