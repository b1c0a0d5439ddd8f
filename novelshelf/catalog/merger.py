"""Merged catalog of remote and local books.

Responsibilities:
- Load remote and local books concurrently and join them in a fixed order.
- Route imports, selection, navigation, and deletion through one owned state.
"""

from __future__ import annotations

import asyncio
from typing import Iterable

from ..errors import StoreError
from ..io.importer import BookRecordBuilder
from ..io.remote_catalog import RemoteCatalogLoader
from ..io.storage import LocalBookStore
from ..models.datatypes import Book, ImportCandidate
from ..telemetry.logger import CatalogLogger
from .progress import ProgressTracker
from .state import CatalogState


class CatalogMerger:
    """Own the catalog state and expose the operations the reader UI calls."""

    def __init__(
        self,
        store: LocalBookStore,
        remote_loader: RemoteCatalogLoader,
        builder: BookRecordBuilder | None = None,
        logger: CatalogLogger | None = None,
    ) -> None:
        """Initialize the merger with injected store and loader handles."""

        self.store = store
        self.remote_loader = remote_loader
        self._logger = logger or CatalogLogger()
        self.builder = builder or BookRecordBuilder(store, logger=self._logger)
        self.state = CatalogState()
        self.tracker = ProgressTracker(self.state, store, logger=self._logger)

    def snapshot(self) -> tuple[Book, ...]:
        """Return the current ordered catalog."""

        return self.state.snapshot()

    async def load(self) -> tuple[Book, ...]:
        """Load remote books (manifest order) followed by local books (store order).

        No deduplication happens across sources. Remote ids use the
        `remote:` prefix and local ids are bare hex, so they never collide.
        """

        self._logger.log_stage_start("catalog-load")
        remote_books, local_books = await asyncio.gather(
            self.remote_loader.load(),
            self._load_local(),
        )
        self.state.books = [*remote_books, *local_books]
        if (
            self.state.current_book_id is not None
            and self.state.find(self.state.current_book_id) is None
        ):
            self.state.clear_selection()
        self._logger.log_stage_complete(
            "catalog-load", remote=len(remote_books), local=len(local_books)
        )
        return self.state.snapshot()

    async def import_files(self, candidates: Iterable[ImportCandidate]) -> list[Book]:
        """Import files and append each persisted book to the catalog.

        When nothing is selected, the first imported book becomes current at
        its first chapter.
        """

        imported: list[Book] = []
        try:
            async for book in self.builder.import_batch(candidates):
                self.state.books.append(book)
                imported.append(book)
        finally:
            if imported and self.state.current_book_id is None:
                self.state.current_book_id = imported[0].id
                self.state.current_chapter_index = 0
        return imported

    def select_book(self, book_id: str) -> Book | None:
        """Select a book and restore its last-read chapter.

        An empty id clears the selection; unknown ids leave it unchanged.
        """

        if not book_id:
            self.state.clear_selection()
            return None
        book = self.state.find(book_id)
        if book is None:
            return None
        self.state.current_book_id = book.id
        self.state.current_chapter_index = book.last_read_chapter_index
        return book

    async def select_chapter(self, book_id: str, index: int) -> bool:
        """Select a chapter of a book, recording it as the reading position."""

        book = self.state.find(book_id)
        if book is None or not 0 <= index < len(book.chapters):
            return False
        self.state.current_book_id = book_id
        return await self.tracker.advance(book_id, index)

    async def next_chapter(self, book_id: str | None = None) -> bool:
        """Advance the given (or current) book by one chapter."""

        target = book_id or self.state.current_book_id
        if target is None:
            return False
        return await self.tracker.next(target)

    async def previous_chapter(self, book_id: str | None = None) -> bool:
        """Step the given (or current) book back by one chapter."""

        target = book_id or self.state.current_book_id
        if target is None:
            return False
        return await self.tracker.previous(target)

    async def delete_book(self, book_id: str) -> bool:
        """Delete a local book.

        Returns `False` without touching anything when the target is a remote
        book; remote books can only be hidden, not deleted.
        """

        book = self.state.find(book_id)
        if book is not None and book.is_remote:
            self._logger.log_rejected("delete", reason="remote-book", book_id=book_id)
            return False
        await self.store.delete(book_id)
        self.state.remove_book(book_id)
        return True

    def hide_book(self, book_id: str) -> bool:
        """Remove a book from the session catalog without touching storage."""

        if self.state.find(book_id) is None:
            return False
        self.state.remove_book(book_id)
        return True

    async def _load_local(self) -> list[Book]:
        try:
            return await self.store.get_all()
        except StoreError as exc:
            self._logger.log_stage_failure("catalog-local", error_type=type(exc).__name__)
            return []
