"""Reading position bookkeeping.

Responsibilities:
- Validate and apply chapter moves to the in-memory catalog.
- Persist positions of local books; remote positions stay session-scoped.
"""

from __future__ import annotations

from ..errors import StoreError
from ..io.storage import LocalBookStore
from ..telemetry.logger import CatalogLogger
from .state import CatalogState


class ProgressTracker:
    """Apply reading-position changes to catalog state and the local store."""

    def __init__(
        self,
        state: CatalogState,
        store: LocalBookStore,
        logger: CatalogLogger | None = None,
    ) -> None:
        """Initialize the tracker over shared catalog state."""

        self.state = state
        self.store = store
        self._logger = logger or CatalogLogger()

    async def advance(self, book_id: str, new_chapter_index: int) -> bool:
        """Move a book to `new_chapter_index`.

        Unknown ids and out-of-range indices are ignored and return `False`.
        The in-memory copy is updated before persisting; a `StoreError` from
        persistence propagates and leaves the in-memory update in place.
        """

        book = self.state.find(book_id)
        if book is None:
            return False
        if not 0 <= new_chapter_index < len(book.chapters):
            return False

        updated = book.with_position(new_chapter_index)
        self.state.replace_book(updated)
        if self.state.current_book_id == book_id:
            self.state.current_chapter_index = updated.last_read_chapter_index

        if updated.is_remote:
            return True
        try:
            await self.store.update_progress(book_id, new_chapter_index)
        except StoreError as exc:
            self._logger.log_stage_failure(
                "progress", error_type=type(exc).__name__, book_id=book_id
            )
            raise
        return True

    async def next(self, book_id: str) -> bool:
        """Move one chapter forward; a no-op on the last chapter."""

        book = self.state.find(book_id)
        if book is None:
            return False
        return await self.advance(book_id, book.last_read_chapter_index + 1)

    async def previous(self, book_id: str) -> bool:
        """Move one chapter back; a no-op on the first chapter."""

        book = self.state.find(book_id)
        if book is None:
            return False
        return await self.advance(book_id, book.last_read_chapter_index - 1)
