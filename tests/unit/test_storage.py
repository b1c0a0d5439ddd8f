"""Unit tests for the filesystem-backed local book store."""

from __future__ import annotations

import asyncio
import io
import json
from pathlib import Path

import pytest

from novelshelf.errors import StoreClosedError, StoreError
from novelshelf.io.storage import LocalBookStore
from novelshelf.models.datatypes import Book, Chapter
from novelshelf.telemetry.logger import CatalogLogger


def _book(book_id: str = "a1", chapter_count: int = 4) -> Book:
    return Book(
        id=book_id,
        title=f"Title {book_id}",
        file_name=f"{book_id}.txt",
        content="raw text",
        chapters=tuple(
            Chapter(index=index, title=f"第{index + 1}章", content=f"正文{index}")
            for index in range(chapter_count)
        ),
    )


def test_save_then_get_all_roundtrips_persisted_fields(
    tmp_path: Path, catalog_logger: CatalogLogger
) -> None:
    async def scenario() -> list[Book]:
        async with LocalBookStore(tmp_path / "library", logger=catalog_logger) as store:
            await store.save(_book("a1"))
            await store.save(_book("b2", chapter_count=1))
            return await store.get_all()

    books = asyncio.run(scenario())

    assert sorted(books, key=lambda book: book.id) == [_book("a1"), _book("b2", chapter_count=1)]


def test_open_creates_library_directory_on_first_use(tmp_path: Path) -> None:
    root = tmp_path / "nested" / "library"

    store = asyncio.run(LocalBookStore.open(root))

    assert root.is_dir()
    assert not store.closed


def test_save_is_last_write_wins(tmp_path: Path) -> None:
    async def scenario() -> Book | None:
        store = await LocalBookStore.open(tmp_path)
        await store.save(_book("a1"))
        await store.save(_book("a1").with_position(2))
        return await store.get("a1")

    stored = asyncio.run(scenario())

    assert stored is not None
    assert stored.last_read_chapter_index == 2
    assert stored.progress == 75


def test_save_rejects_remote_books(tmp_path: Path) -> None:
    remote = Book(
        id="remote:demo.txt",
        title="Demo",
        file_name="demo.txt",
        content="x",
        chapters=(Chapter(index=0, title="全文", content="x"),),
        is_remote=True,
    )

    with pytest.raises(ValueError, match="cannot be written"):
        asyncio.run(LocalBookStore(tmp_path).save(remote))
    assert list(tmp_path.glob("*.json")) == []


def test_update_progress_then_read_reflects_new_position(tmp_path: Path) -> None:
    async def scenario() -> tuple[Book | None, Book | None]:
        store = await LocalBookStore.open(tmp_path)
        await store.save(_book("a1", chapter_count=3))
        updated = await store.update_progress("a1", 1)
        return updated, await store.get("a1")

    updated, stored = asyncio.run(scenario())

    assert updated == stored
    assert stored is not None
    assert stored.last_read_chapter_index == 1
    assert stored.progress == 67


def test_update_progress_clamps_out_of_range_index(tmp_path: Path) -> None:
    async def scenario() -> Book | None:
        store = await LocalBookStore.open(tmp_path)
        await store.save(_book("a1", chapter_count=3))
        await store.update_progress("a1", 42)
        return await store.get("a1")

    stored = asyncio.run(scenario())

    assert stored is not None
    assert stored.last_read_chapter_index == 2
    assert stored.progress == 100


def test_update_progress_ignores_unknown_id(tmp_path: Path) -> None:
    async def scenario() -> Book | None:
        store = await LocalBookStore.open(tmp_path)
        return await store.update_progress("missing", 1)

    assert asyncio.run(scenario()) is None
    assert list(tmp_path.glob("*.json")) == []


def test_sequential_same_id_updates_observe_previous_writes(tmp_path: Path) -> None:
    async def scenario() -> Book | None:
        store = await LocalBookStore.open(tmp_path)
        await store.save(_book("a1", chapter_count=10))
        await asyncio.gather(*(store.update_progress("a1", index) for index in range(10)))
        return await store.get("a1")

    stored = asyncio.run(scenario())

    assert stored is not None
    assert stored.last_read_chapter_index == 9
    assert stored.progress == 100


def test_first_use_of_unopened_store_keeps_same_id_update_order(tmp_path: Path) -> None:
    asyncio.run(LocalBookStore(tmp_path).save(_book("a1", chapter_count=10)))

    async def scenario() -> Book | None:
        store = LocalBookStore(tmp_path)
        await asyncio.gather(*(store.update_progress("a1", index) for index in range(10)))
        return await store.get("a1")

    stored = asyncio.run(scenario())

    assert stored is not None
    assert stored.last_read_chapter_index == 9


def test_per_id_locks_are_released_when_idle(tmp_path: Path) -> None:
    store = LocalBookStore(tmp_path)

    async def scenario() -> None:
        await asyncio.gather(*(store.save(_book(f"id-{number}")) for number in range(5)))
        await asyncio.gather(*(store.update_progress("id-0", index) for index in range(3)))
        await store.get("id-1")
        await store.delete("id-2")

    asyncio.run(scenario())

    assert store._locks == {}


def test_get_all_clamps_hand_edited_position(tmp_path: Path) -> None:
    asyncio.run(LocalBookStore(tmp_path).save(_book("a1", chapter_count=4)))
    record_file = next(tmp_path.glob("*.json"))
    record = json.loads(record_file.read_text(encoding="utf-8"))
    record["last_read_chapter_index"] = 40
    record["progress"] = 3
    record_file.write_text(json.dumps(record), encoding="utf-8")

    books = asyncio.run(LocalBookStore(tmp_path).get_all())

    assert [(book.last_read_chapter_index, book.progress) for book in books] == [(3, 100)]


def test_delete_removes_record_and_missing_id_is_noop(tmp_path: Path) -> None:
    async def scenario() -> tuple[list[Book], list[Book]]:
        store = await LocalBookStore.open(tmp_path)
        await store.save(_book("a1"))
        await store.save(_book("b2"))
        await store.delete("a1")
        after_delete = await store.get_all()
        await store.delete("does-not-exist")
        return after_delete, await store.get_all()

    after_delete, after_noop = asyncio.run(scenario())

    assert [book.id for book in after_delete] == ["b2"]
    assert after_noop == after_delete


def test_record_file_names_do_not_leak_ids(tmp_path: Path) -> None:
    asyncio.run(LocalBookStore(tmp_path).save(_book("../../escape")))

    record_files = list(tmp_path.glob("*.json"))
    assert len(record_files) == 1
    assert record_files[0].parent == tmp_path
    assert "escape" not in record_files[0].name


def test_get_all_skips_malformed_records_and_logs(
    tmp_path: Path, catalog_logger: CatalogLogger, log_buffer: io.StringIO
) -> None:
    async def scenario() -> list[Book]:
        store = await LocalBookStore.open(tmp_path, logger=catalog_logger)
        await store.save(_book("a1"))
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        (tmp_path / "partial.json").write_text('{"id": "x"}', encoding="utf-8")
        return await store.get_all()

    books = asyncio.run(scenario())

    assert [book.id for book in books] == ["a1"]
    logs = log_buffer.getvalue()
    assert "stage=store-read event=skipped" in logs
    assert "record=broken.json" in logs
    assert "record=partial.json" in logs


def test_closed_store_rejects_operations(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = await LocalBookStore.open(tmp_path)
        await store.close()
        await store.get_all()

    with pytest.raises(StoreClosedError, match="is closed"):
        asyncio.run(scenario())


def test_open_failure_surfaces_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way", encoding="utf-8")

    with pytest.raises(StoreError, match="Cannot open local store"):
        asyncio.run(LocalBookStore.open(blocker / "library"))
