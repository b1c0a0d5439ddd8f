"""Core datatypes shared across novelshelf modules.

Responsibilities:
- Represent immutable chapter and book records exchanged between components.
- Keep the persisted record layout and the reading-position invariants in one place.

Key types:
- `Chapter`, `Book`, `ManifestEntry`, and `ImportCandidate`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping


def compute_progress(chapter_index: int, chapter_count: int) -> int:
    """Return the 0-100 completion percentage for a reading position.

    Rounds half up, so two chapters read out of three yields 67 and one of
    eight yields 13.
    """

    if chapter_count <= 0:
        return 0
    return (200 * (chapter_index + 1) + chapter_count) // (2 * chapter_count)


def clamp_chapter_index(chapter_index: int, chapter_count: int) -> int:
    """Clamp a chapter index into `[0, chapter_count - 1]`."""

    if chapter_count <= 0:
        return 0
    return max(0, min(chapter_index, chapter_count - 1))


@dataclass(frozen=True, slots=True)
class Chapter:
    """A titled, contiguous slice of a book's raw text.

    Attributes:
        index: 0-based, dense chapter index within its book.
        title: Matched heading text or a synthetic label.
        content: Trimmed text between this heading and the next.
    """

    index: int
    title: str
    content: str


@dataclass(frozen=True, slots=True)
class Book:
    """Aggregate of raw text, derived chapters, and reading position.

    Attributes:
        id: Immutable identifier (`remote:<file>` or a generated hex id).
        title: Display title.
        file_name: Source file name or manifest file reference.
        content: Raw source text.
        chapters: Ordered chapters produced by the segmenter.
        last_read_chapter_index: Last selected chapter, always a valid index.
        progress: Completion percentage derived from `last_read_chapter_index`.
        is_remote: Whether the book came from the published manifest.
    """

    id: str
    title: str
    file_name: str
    content: str
    chapters: tuple[Chapter, ...]
    last_read_chapter_index: int = 0
    progress: int = 0
    is_remote: bool = False

    def with_position(self, chapter_index: int) -> Book:
        """Return a copy positioned at a clamped chapter index with recomputed progress."""

        clamped = clamp_chapter_index(chapter_index, len(self.chapters))
        return replace(
            self,
            last_read_chapter_index=clamped,
            progress=compute_progress(clamped, len(self.chapters)),
        )

    def to_record(self) -> dict[str, Any]:
        """Serialize persisted fields; `is_remote` is never part of a stored record."""

        return {
            "id": self.id,
            "title": self.title,
            "file_name": self.file_name,
            "content": self.content,
            "chapters": [
                {"index": chapter.index, "title": chapter.title, "content": chapter.content}
                for chapter in self.chapters
            ],
            "last_read_chapter_index": self.last_read_chapter_index,
            "progress": self.progress,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Book:
        """Build a local book from a persisted record.

        The stored position is clamped to the chapter list and its progress is
        recomputed, so a damaged record never yields an invalid position.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If chapter entries are not mappings.
        """

        chapters = tuple(
            Chapter(
                index=int(item["index"]),
                title=str(item["title"]),
                content=str(item["content"]),
            )
            for item in record["chapters"]
        )
        book = cls(
            id=str(record["id"]),
            title=str(record["title"]),
            file_name=str(record["file_name"]),
            content=str(record["content"]),
            chapters=chapters,
            is_remote=False,
        )
        return book.with_position(int(record.get("last_read_chapter_index", 0)))


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """One validated entry of the published remote manifest.

    Attributes:
        title: Display title of the published book.
        file: File reference relative to the publishing root.
        visible_chapters: Optional positive cap on exposed chapters.
    """

    title: str
    file: str
    visible_chapters: int | None = None


@dataclass(frozen=True, slots=True)
class ImportCandidate:
    """A file offered for import by the UI collaborator."""

    file_name: str
    mime_type: str | None
    text: str
