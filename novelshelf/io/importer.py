"""Book construction for user-imported text files.

Responsibilities:
- Accept plain-text and Markdown candidates and skip everything else.
- Order import batches by natural file name order before building.
- Persist each built book before it is handed to the catalog.
"""

from __future__ import annotations

import re
from typing import AsyncIterator, Callable, Iterable
import uuid

from ..models.datatypes import Book, ImportCandidate
from ..telemetry.logger import CatalogLogger
from ..text.natural_order import natural_sort_key
from ..text.segmenter import Segmenter
from .storage import LocalBookStore

_TEXT_EXTENSIONS = (".txt",)
_MARKDOWN_EXTENSIONS = (".md", ".markdown")
_PLAIN_TEXT_MIME_TYPE = "text/plain"
_TITLE_EXTENSION_RE = re.compile(r"\.(?:txt|md|markdown)$", re.IGNORECASE)


def is_supported_candidate(candidate: ImportCandidate) -> bool:
    """Return whether a candidate is a plain-text or Markdown file."""

    lower_name = candidate.file_name.lower()
    if lower_name.endswith(_TEXT_EXTENSIONS + _MARKDOWN_EXTENSIONS):
        return True
    return (candidate.mime_type or "").strip().lower() == _PLAIN_TEXT_MIME_TYPE


def title_from_file_name(file_name: str) -> str:
    """Strip a text-file extension from a file name."""

    return _TITLE_EXTENSION_RE.sub("", file_name)


def _new_local_id() -> str:
    return uuid.uuid4().hex


class BookRecordBuilder:
    """Build and persist local books from imported files."""

    def __init__(
        self,
        store: LocalBookStore,
        segmenter: Segmenter | None = None,
        logger: CatalogLogger | None = None,
        id_factory: Callable[[], str] = _new_local_id,
    ) -> None:
        """Initialize the builder with its store and segmentation collaborators."""

        self.store = store
        self.segmenter = segmenter or Segmenter()
        self._logger = logger or CatalogLogger()
        self._id_factory = id_factory

    def build(self, candidate: ImportCandidate) -> Book:
        """Build a fresh local book positioned at its first chapter."""

        return Book(
            id=self._id_factory(),
            title=title_from_file_name(candidate.file_name),
            file_name=candidate.file_name,
            content=candidate.text,
            chapters=tuple(self.segmenter.segment(candidate.text)),
            last_read_chapter_index=0,
            progress=0,
            is_remote=False,
        )

    def order_candidates(self, candidates: Iterable[ImportCandidate]) -> list[ImportCandidate]:
        """Return supported candidates in natural file name order.

        Unsupported candidates are logged and dropped.
        """

        supported: list[ImportCandidate] = []
        for candidate in candidates:
            if is_supported_candidate(candidate):
                supported.append(candidate)
            else:
                self._logger.log_skipped(
                    "import",
                    reason="unsupported-file-type",
                    file=candidate.file_name,
                    mime=candidate.mime_type or "none",
                )
        return sorted(supported, key=lambda candidate: natural_sort_key(candidate.file_name))

    async def import_batch(self, candidates: Iterable[ImportCandidate]) -> AsyncIterator[Book]:
        """Build, persist, and yield books one at a time in import order.

        A persistence failure propagates to the consumer; books yielded before
        it are already durable.
        """

        ordered = self.order_candidates(candidates)
        self._logger.log_stage_start("import", files=len(ordered))
        for candidate in ordered:
            book = self.build(candidate)
            await self.store.save(book)
            self._logger.log_stage_complete(
                "import-file",
                book_id=book.id,
                chapters=len(book.chapters),
                file=candidate.file_name,
            )
            yield book
        self._logger.log_stage_complete("import", files=len(ordered))
