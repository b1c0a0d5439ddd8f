"""Owned in-memory catalog state.

Responsibilities:
- Hold the merged book list and the current selection.
- Offer read-only snapshots to observers; mutation goes through the merger and tracker.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..models.datatypes import Book, Chapter


@dataclass(slots=True)
class CatalogState:
    """Merged book list plus selection.

    Attributes:
        books: Remote books in manifest order followed by local books.
        current_book_id: Selected book id, or `None`.
        current_chapter_index: Selected chapter within the current book.
    """

    books: list[Book] = field(default_factory=list)
    current_book_id: str | None = None
    current_chapter_index: int = 0

    def snapshot(self) -> tuple[Book, ...]:
        """Return an immutable view of the current book list."""

        return tuple(self.books)

    def find(self, book_id: str) -> Book | None:
        """Return the book with `book_id`, or `None`."""

        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def replace_book(self, book: Book) -> None:
        """Swap in an updated copy of a book already in the catalog."""

        self.books = [book if existing.id == book.id else existing for existing in self.books]

    def remove_book(self, book_id: str) -> None:
        """Drop a book and clear the selection when it pointed at it."""

        self.books = [book for book in self.books if book.id != book_id]
        if self.current_book_id == book_id:
            self.clear_selection()

    def clear_selection(self) -> None:
        self.current_book_id = None
        self.current_chapter_index = 0

    def current_book(self) -> Book | None:
        """Return the selected book, if any."""

        if self.current_book_id is None:
            return None
        return self.find(self.current_book_id)

    def current_chapter(self) -> Chapter | None:
        """Return the selected chapter of the selected book, if any."""

        book = self.current_book()
        if book is None or not 0 <= self.current_chapter_index < len(book.chapters):
            return None
        return book.chapters[self.current_chapter_index]
