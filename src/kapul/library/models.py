"""Data models for the reading library."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def file_size_label(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):.2f} MB"


@dataclass
class Book:
    id: int
    title: str
    author: str = "Unknown Author"
    format: str = ""  # pdf, epub
    total_pages: int = 0
    file_size: str = ""  # display label, e.g. "1.25 MB"
    date_added: str = field(default_factory=now_iso)
    cover_image: Optional[str] = None  # data URL
    progress: int = 0  # 0 - 100
    last_page: Optional[int] = None
    last_location: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "format": self.format,
            "totalPages": self.total_pages,
            "fileSize": self.file_size,
            "dateAdded": self.date_added,
            "coverImage": self.cover_image,
            "progress": self.progress,
            "lastPage": self.last_page,
            "lastLocation": self.last_location,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Book:
        return cls(
            id=record["id"],
            title=record.get("title", ""),
            author=record.get("author") or "Unknown Author",
            format=record.get("format", ""),
            total_pages=record.get("totalPages") or 0,
            file_size=record.get("fileSize", ""),
            date_added=record.get("dateAdded", ""),
            cover_image=record.get("coverImage"),
            progress=record.get("progress") or 0,
            last_page=record.get("lastPage"),
            last_location=record.get("lastLocation"),
        )


# Attribute name -> record key, for partial updates.
BOOK_FIELDS = {
    "title": "title",
    "author": "author",
    "format": "format",
    "total_pages": "totalPages",
    "file_size": "fileSize",
    "date_added": "dateAdded",
    "cover_image": "coverImage",
    "progress": "progress",
    "last_page": "lastPage",
    "last_location": "lastLocation",
}


@dataclass
class Highlight:
    id: int
    book_id: Optional[int]
    text: str
    book_title: str = "Unknown"  # snapshot at save time
    created_at: str = field(default_factory=now_iso)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bookId": self.book_id,
            "bookTitle": self.book_title,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Highlight:
        return cls(
            id=record["id"],
            book_id=record.get("bookId"),
            text=record.get("text", ""),
            book_title=record.get("bookTitle") or "Unknown",
            created_at=record.get("createdAt", ""),
        )


@dataclass
class Flashcard:
    id: int
    book_id: Optional[int]
    front: str
    back: str
    created_at: str = field(default_factory=now_iso)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bookId": self.book_id,
            "front": self.front,
            "back": self.back,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Flashcard:
        return cls(
            id=record["id"],
            book_id=record.get("bookId"),
            front=record.get("front", ""),
            back=record.get("back", ""),
            created_at=record.get("createdAt", ""),
        )


@dataclass
class ReadingProgress:
    book_id: int
    percentage: int = 0  # 0 - 100
    current_page: int = 0
    total_pages: int = 0
    last_read: str = field(default_factory=now_iso)

    def to_record(self) -> dict[str, Any]:
        return {
            "bookId": self.book_id,
            "percentage": self.percentage,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "lastRead": self.last_read,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ReadingProgress:
        return cls(
            book_id=record["bookId"],
            percentage=record.get("percentage") or 0,
            current_page=record.get("currentPage") or 0,
            total_pages=record.get("totalPages") or 0,
            last_read=record.get("lastRead", ""),
        )


@dataclass
class Settings:
    theme: str = "system"
    font_size: int = 16
    font_family: str = "serif"
    line_height: float = 1.8

    def to_record(self) -> dict[str, Any]:
        return {
            "theme": self.theme,
            "fontSize": self.font_size,
            "fontFamily": self.font_family,
            "lineHeight": self.line_height,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Settings:
        defaults = cls()
        return cls(
            theme=record.get("theme", defaults.theme),
            font_size=record.get("fontSize", defaults.font_size),
            font_family=record.get("fontFamily", defaults.font_family),
            line_height=record.get("lineHeight", defaults.line_height),
        )


@dataclass
class QuizScore:
    percentage: float
    date: str = field(default_factory=now_iso)

    def to_record(self) -> dict[str, Any]:
        return {"percentage": self.percentage, "date": self.date}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> QuizScore:
        return cls(percentage=record.get("percentage", 0), date=record.get("date", ""))


@dataclass
class StudyStats:
    """Summary numbers for the library header. Two of them are heuristics."""

    pages_read: int = 0
    problems_solved: int = 0
    flashcards: int = 0
    quiz_score: int = 0


@dataclass
class ParsedDocument:
    """Result of parsing an uploaded file, before anything is persisted."""

    title: str
    author: str
    format: str
    num_pages: int
    data: bytes
