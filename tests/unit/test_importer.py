"""Unit tests for building and persisting imported books."""

from __future__ import annotations

import asyncio
import io
from itertools import count
from pathlib import Path

import pytest

from novelshelf.errors import StoreError
from novelshelf.io.importer import (
    BookRecordBuilder,
    is_supported_candidate,
    title_from_file_name,
)
from novelshelf.io.storage import LocalBookStore
from novelshelf.models.datatypes import Book, ImportCandidate
from novelshelf.telemetry.logger import CatalogLogger
from tests.fixture_paths import SAMPLE_NOVEL_TEXT


def _candidate(file_name: str, mime_type: str | None = None, text: str = "body") -> ImportCandidate:
    return ImportCandidate(file_name=file_name, mime_type=mime_type, text=text)


async def _collect(builder: BookRecordBuilder, candidates: list[ImportCandidate]) -> list[Book]:
    return [book async for book in builder.import_batch(candidates)]


@pytest.mark.parametrize(
    ("candidate", "expected"),
    [
        (_candidate("novel.txt"), True),
        (_candidate("NOVEL.TXT"), True),
        (_candidate("notes.md"), True),
        (_candidate("notes.Markdown"), True),
        (_candidate("story", mime_type="text/plain"), True),
        (_candidate("book.epub", mime_type="application/epub+zip"), False),
        (_candidate("scan.pdf"), False),
        (_candidate("readme.md.bak", mime_type=None), False),
    ],
)
def test_is_supported_candidate_accepts_text_and_markdown_only(
    candidate: ImportCandidate, expected: bool
) -> None:
    assert is_supported_candidate(candidate) is expected


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("三体.txt", "三体"),
        ("Guide.MD", "Guide"),
        ("notes.markdown", "notes"),
        ("archive.tar.txt", "archive.tar"),
        ("story", "story"),
    ],
)
def test_title_from_file_name_strips_text_extension(file_name: str, expected: str) -> None:
    assert title_from_file_name(file_name) == expected


def test_build_creates_fresh_local_book_at_first_chapter(tmp_path: Path) -> None:
    builder = BookRecordBuilder(LocalBookStore(tmp_path), id_factory=lambda: "fixed-id")

    book = builder.build(_candidate("novel.txt", text=SAMPLE_NOVEL_TEXT))

    assert book.id == "fixed-id"
    assert book.title == "novel"
    assert book.file_name == "novel.txt"
    assert book.content == SAMPLE_NOVEL_TEXT
    assert [chapter.title for chapter in book.chapters][1:] == [
        "第1章 开端",
        "第2章 发展",
        "第3章 结局",
    ]
    assert book.last_read_chapter_index == 0
    assert book.progress == 0
    assert book.is_remote is False


def test_build_generates_distinct_ids_by_default(tmp_path: Path) -> None:
    builder = BookRecordBuilder(LocalBookStore(tmp_path))

    first = builder.build(_candidate("a.txt"))
    second = builder.build(_candidate("a.txt"))

    assert first.id != second.id
    assert ":" not in first.id


def test_import_batch_orders_naturally_and_persists_each_book(tmp_path: Path) -> None:
    ids = count(1)
    store = LocalBookStore(tmp_path)
    builder = BookRecordBuilder(store, id_factory=lambda: f"id-{next(ids)}")

    async def scenario() -> tuple[list[Book], list[Book]]:
        imported = await _collect(
            builder,
            [_candidate("002.txt"), _candidate("010.txt"), _candidate("001.txt")],
        )
        return imported, await store.get_all()

    imported, stored = asyncio.run(scenario())

    assert [book.file_name for book in imported] == ["001.txt", "002.txt", "010.txt"]
    assert [book.id for book in imported] == ["id-1", "id-2", "id-3"]
    assert sorted(book.id for book in stored) == ["id-1", "id-2", "id-3"]


def test_import_batch_skips_unsupported_files_and_logs(
    tmp_path: Path, catalog_logger: CatalogLogger, log_buffer: io.StringIO
) -> None:
    builder = BookRecordBuilder(LocalBookStore(tmp_path), logger=catalog_logger)

    imported = asyncio.run(
        _collect(
            builder,
            [_candidate("cover.png", mime_type="image/png"), _candidate("story.md")],
        )
    )

    assert [book.file_name for book in imported] == ["story.md"]
    logs = log_buffer.getvalue()
    assert "stage=import event=skipped" in logs
    assert "file=cover.png" in logs
    assert "reason=unsupported-file-type" in logs


def test_import_batch_keeps_earlier_books_durable_when_a_save_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = LocalBookStore(tmp_path)
    builder = BookRecordBuilder(store)
    original_save = LocalBookStore.save

    async def _failing_second_save(self: LocalBookStore, book: Book) -> None:
        if book.file_name == "2.txt":
            raise StoreError("disk full")
        await original_save(self, book)

    monkeypatch.setattr(LocalBookStore, "save", _failing_second_save)
    received: list[Book] = []

    async def scenario() -> None:
        async for book in builder.import_batch(
            [_candidate("2.txt"), _candidate("1.txt"), _candidate("3.txt")]
        ):
            received.append(book)

    with pytest.raises(StoreError, match="disk full"):
        asyncio.run(scenario())

    assert [book.file_name for book in received] == ["1.txt"]
    stored = asyncio.run(store.get_all())
    assert [book.file_name for book in stored] == ["1.txt"]
