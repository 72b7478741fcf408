"""Shared fixtures for tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from kapul.config import AppConfig
from kapul.library.models import Book
from kapul.library.shelf import Library
from kapul.library.store import BlobStore, RecordStore


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
    )


@pytest_asyncio.fixture(params=["sqlite", "json"])
async def store(request, tmp_path: Path) -> RecordStore:
    """An initialized store, once per backend."""
    record_store = RecordStore(
        tmp_path / "kapul.db", tmp_path / "kapul.json", backend=request.param
    )
    await record_store.initialize()
    yield record_store
    await record_store.close()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> RecordStore:
    record_store = RecordStore(tmp_path / "kapul.db", tmp_path / "kapul.json")
    await record_store.initialize()
    yield record_store
    await record_store.close()


@pytest.fixture
def library(store: RecordStore) -> Library:
    return Library(store, BlobStore(store))


@pytest.fixture
def sqlite_library(sqlite_store: RecordStore) -> Library:
    return Library(sqlite_store, BlobStore(sqlite_store))


def make_book(book_id: int = 1, title: str = "Calculus Basics", **kwargs) -> Book:
    kwargs.setdefault("format", "pdf")
    kwargs.setdefault("total_pages", 10)
    return Book(id=book_id, title=title, **kwargs)
