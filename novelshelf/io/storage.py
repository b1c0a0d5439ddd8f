"""Durable local book storage.

Responsibilities:
- Persist local books as one JSON record per id under a library directory.
- Serialize read-modify-write steps per id while letting different ids interleave.
- Surface filesystem failures as `StoreError` without touching caller state.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from hashlib import sha256
import json
import os
from pathlib import Path
from typing import Any, AsyncIterator

from ..errors import StoreClosedError, StoreError
from ..models.datatypes import Book
from ..telemetry.logger import CatalogLogger


class LocalBookStore:
    """Filesystem-backed keyed store for locally imported books.

    The store is opened on first use (the library directory is created if
    missing) and must not be used after `close()`. Blocking file access runs in
    worker threads so the event loop only suspends at I/O boundaries.
    """

    _RECORD_SUFFIX = ".json"

    def __init__(self, root: Path, logger: CatalogLogger | None = None) -> None:
        """Initialize the store handle for a library directory."""

        self.root = root
        self._logger = logger or CatalogLogger()
        self._opened = False
        self._closed = False
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @classmethod
    async def open(cls, root: Path, logger: CatalogLogger | None = None) -> LocalBookStore:
        """Create a store handle and make sure its library directory exists."""

        store = cls(root, logger=logger)
        await store._ensure_ready()
        return store

    async def close(self) -> None:
        """Close the handle; later operations raise `StoreClosedError`."""

        self._closed = True
        self._locks.clear()
        self._lock_users.clear()

    @property
    def closed(self) -> bool:
        """Return whether the handle was closed."""

        return self._closed

    async def __aenter__(self) -> LocalBookStore:
        await self._ensure_ready()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def save(self, book: Book) -> None:
        """Insert or fully replace the record for `book.id`."""

        if book.is_remote:
            raise ValueError(f"Remote book `{book.id}` cannot be written to the local store.")
        path = self._record_path(book.id)
        async with self._locked(book.id):
            await self._ensure_ready()
            await asyncio.to_thread(self._write_record, path, book.to_record())

    async def get(self, book_id: str) -> Book | None:
        """Return the stored book for `book_id`, or `None` when absent."""

        path = self._record_path(book_id)
        async with self._locked(book_id):
            await self._ensure_ready()
            record = await asyncio.to_thread(self._read_record, path)
        if record is None:
            return None
        return self._book_from_record(record, path)

    async def get_all(self) -> list[Book]:
        """Return every stored book in record file order.

        Unreadable records are logged and skipped so one damaged file does not
        hide the rest of the library.
        """

        await self._ensure_ready()
        paths = await asyncio.to_thread(self._list_record_paths)
        books: list[Book] = []
        for path in paths:
            try:
                record = await asyncio.to_thread(self._read_record, path)
                if record is not None:
                    books.append(self._book_from_record(record, path))
            except StoreError as exc:
                self._logger.log_skipped("store-read", reason=str(exc), record=path.name)
        return books

    async def delete(self, book_id: str) -> None:
        """Remove the record for `book_id`; absent ids are ignored."""

        path = self._record_path(book_id)
        async with self._locked(book_id):
            await self._ensure_ready()
            await asyncio.to_thread(self._remove_record, path)

    async def update_progress(self, book_id: str, chapter_index: int) -> Book | None:
        """Move a stored book to a chapter and recompute its progress.

        The chapter index is clamped to the stored chapter count. Returns the
        updated book, or `None` when no record exists for `book_id`.
        """

        path = self._record_path(book_id)
        async with self._locked(book_id):
            await self._ensure_ready()
            record = await asyncio.to_thread(self._read_record, path)
            if record is None:
                return None
            updated = self._book_from_record(record, path).with_position(chapter_index)
            await asyncio.to_thread(self._write_record, path, updated.to_record())
        return updated

    async def _ensure_ready(self) -> None:
        """Reject closed handles and create the library directory on first use."""

        if self._closed:
            raise StoreClosedError(f"Local store at `{self.root}` is closed.")
        if self._opened:
            return
        try:
            await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot open local store at `{self.root}`: {exc}") from exc
        self._opened = True

    @asynccontextmanager
    async def _locked(self, book_id: str) -> AsyncIterator[None]:
        """Hold the lock serializing operations on one id.

        The lock is taken before any other suspension point, so calls on the
        same id run in submission order. It is dropped once no caller holds or
        waits on it.
        """

        lock = self._locks.get(book_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[book_id] = lock
        self._lock_users[book_id] = self._lock_users.get(book_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users.get(book_id, 1) - 1
            if remaining > 0:
                self._lock_users[book_id] = remaining
            else:
                self._lock_users.pop(book_id, None)
                self._locks.pop(book_id, None)

    def _record_path(self, book_id: str) -> Path:
        """Map an id to its record file; ids never reach the filesystem directly."""

        digest = sha256(book_id.encode("utf-8")).hexdigest()
        return self.root / f"{digest}{self._RECORD_SUFFIX}"

    def _list_record_paths(self) -> list[Path]:
        try:
            return sorted(self.root.glob(f"*{self._RECORD_SUFFIX}"))
        except OSError as exc:
            raise StoreError(f"Cannot list local store at `{self.root}`: {exc}") from exc

    @staticmethod
    def _read_record(path: Path) -> dict[str, Any] | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"Cannot read record `{path.name}`: {exc}") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Record `{path.name}` is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise StoreError(f"Record `{path.name}` must contain a JSON object.")
        return payload

    @staticmethod
    def _write_record(path: Path, payload: dict[str, Any]) -> None:
        temporary = path.with_name(f"{path.name}.tmp")
        try:
            temporary.write_text(
                json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
                encoding="utf-8",
            )
            os.replace(temporary, path)
        except OSError as exc:
            raise StoreError(f"Cannot write record `{path.name}`: {exc}") from exc

    @staticmethod
    def _remove_record(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot delete record `{path.name}`: {exc}") from exc

    @staticmethod
    def _book_from_record(record: dict[str, Any], path: Path) -> Book:
        try:
            return Book.from_record(record)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Record `{path.name}` is malformed: {exc}") from exc
