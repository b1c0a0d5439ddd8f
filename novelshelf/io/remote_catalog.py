"""Remote catalog loading for statically published books.

Responsibilities:
- Fetch the publishing manifest and each listed text body as UTF-8.
- Segment each body, apply the optional visible-chapter cap, and build transient books.
- Isolate failures: a bad entry is dropped, a bad manifest yields an empty catalog.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests

from ..models.datatypes import Book, ManifestEntry
from ..parsing import normalize_optional_string, parse_optional_positive_int
from ..telemetry.logger import CatalogLogger
from ..text.segmenter import Segmenter

REMOTE_ID_PREFIX = "remote:"


class RemoteFetchError(RuntimeError):
    """Raised when a manifest or text body cannot be fetched."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        """Initialize fetch error metadata for log diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code


def remote_book_id(file_reference: str) -> str:
    """Return the stable id of a remote book for a manifest file reference."""

    return f"{REMOTE_ID_PREFIX}{file_reference}"


def _is_http_root(root: str) -> bool:
    return root.lower().startswith(("http://", "https://"))


class RemoteCatalogLoader:
    """Load transient remote books from a publishing root.

    The publishing root is either an `http(s)://` base URL or a local
    directory. The manifest lives at `<root>/<manifest_name>`; each entry's
    `file` is resolved relative to the same root.
    """

    _MAX_ERROR_MESSAGE_CHARS = 180

    def __init__(
        self,
        publishing_root: str | None,
        *,
        manifest_name: str = "manifest.json",
        timeout_seconds: float | None = None,
        segmenter: Segmenter | None = None,
        logger: CatalogLogger | None = None,
    ) -> None:
        """Initialize loader settings.

        `timeout_seconds=None` waits indefinitely for each request.
        """

        self.publishing_root = normalize_optional_string(publishing_root)
        self.manifest_name = manifest_name
        self.timeout_seconds = timeout_seconds
        self.segmenter = segmenter or Segmenter()
        self._logger = logger or CatalogLogger()

    async def load(self) -> list[Book]:
        """Return remote books in manifest order, never raising."""

        if self.publishing_root is None:
            return []

        self._logger.log_stage_start("remote-manifest", root=self.publishing_root)
        try:
            entries = await self.fetch_manifest()
        except RemoteFetchError as exc:
            self._logger.log_stage_failure(
                "remote-manifest",
                error_type=type(exc).__name__,
                failure_kind=exc.failure_kind,
            )
            return []
        except ValueError as exc:
            self._logger.log_stage_failure(
                "remote-manifest",
                error_type=type(exc).__name__,
                detail=self._short_message(str(exc)),
            )
            return []

        results = await asyncio.gather(*(self._load_entry_isolated(entry) for entry in entries))
        books = [book for book in results if book is not None]
        self._logger.log_stage_complete(
            "remote-manifest", entries=len(entries), books=len(books)
        )
        return books

    async def fetch_manifest(self) -> list[ManifestEntry]:
        """Fetch and validate the manifest.

        Raises:
            RemoteFetchError: If the manifest cannot be fetched.
            ValueError: If the manifest is not a JSON array.
        """

        raw = await asyncio.to_thread(self._fetch_text, self.manifest_name)
        payload = json.loads(raw)
        return self.parse_manifest(payload)

    def parse_manifest(self, payload: Any) -> list[ManifestEntry]:
        """Validate manifest entries, dropping invalid or duplicate ones.

        Raises:
            ValueError: If the payload is not a list.
        """

        if not isinstance(payload, list):
            raise ValueError("Manifest must be a JSON array of book entries.")

        entries: list[ManifestEntry] = []
        seen_files: set[str] = set()
        for position, item in enumerate(payload):
            entry = self._parse_entry(item)
            if entry is None:
                self._logger.log_skipped("remote-entry", reason="invalid-entry", position=position)
                continue
            if entry.file in seen_files:
                self._logger.log_skipped(
                    "remote-entry", reason="duplicate-file", file=entry.file
                )
                continue
            seen_files.add(entry.file)
            entries.append(entry)
        return entries

    def build_book(self, entry: ManifestEntry, text: str) -> Book:
        """Build a transient remote book from a manifest entry and its text."""

        chapters = self.segmenter.segment(text)
        if entry.visible_chapters is not None:
            chapters = chapters[: entry.visible_chapters]
        return Book(
            id=remote_book_id(entry.file),
            title=entry.title,
            file_name=entry.file,
            content=text,
            chapters=tuple(chapters),
            last_read_chapter_index=0,
            progress=0,
            is_remote=True,
        )

    async def load_entry(self, entry: ManifestEntry) -> Book:
        """Fetch and build one manifest entry.

        Raises:
            RemoteFetchError: If the text body cannot be fetched or decoded.
        """

        text = await asyncio.to_thread(self._fetch_text, entry.file)
        return self.build_book(entry, text)

    async def _load_entry_isolated(self, entry: ManifestEntry) -> Book | None:
        try:
            return await self.load_entry(entry)
        except RemoteFetchError as exc:
            self._logger.log_skipped(
                "remote-entry",
                reason=exc.failure_kind,
                file=entry.file,
                status=exc.status_code or "none",
            )
            return None
        except Exception as exc:
            self._logger.log_skipped(
                "remote-entry",
                reason=type(exc).__name__,
                file=entry.file,
            )
            return None

    @staticmethod
    def _parse_entry(item: Any) -> ManifestEntry | None:
        if not isinstance(item, dict):
            return None
        title = normalize_optional_string(item.get("title"))
        file_reference = normalize_optional_string(item.get("file"))
        if title is None or file_reference is None:
            return None
        # Non-positive or non-numeric caps are ignored, not rejected.
        return ManifestEntry(
            title=title,
            file=file_reference,
            visible_chapters=parse_optional_positive_int(item.get("visibleChapters")),
        )

    def _fetch_text(self, reference: str) -> str:
        """Fetch one resource below the publishing root as UTF-8 text."""

        root = self.publishing_root or ""
        if _is_http_root(root):
            payload = self._fetch_http_bytes(f"{root.rstrip('/')}/{quote(reference)}")
        else:
            payload = self._read_local_bytes(Path(root), reference)
        try:
            return payload.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise RemoteFetchError(
                f"Resource `{reference}` is not valid UTF-8.",
                failure_kind="decode",
            ) from exc

    def _fetch_http_bytes(self, url: str) -> bytes:
        try:
            response = requests.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise RemoteFetchError(
                f"HTTP {status_code} for `{url}`.",
                failure_kind="http_status",
                status_code=status_code,
            ) from exc
        except requests.Timeout as exc:
            raise RemoteFetchError(
                f"Request for `{url}` timed out.",
                failure_kind="timeout",
            ) from exc
        except requests.RequestException as exc:
            raise RemoteFetchError(
                f"Transport error for `{url}`: {self._short_message(str(exc))}",
                failure_kind="transport",
            ) from exc

    @staticmethod
    def _read_local_bytes(root: Path, reference: str) -> bytes:
        try:
            resolved_root = root.resolve()
            path = (resolved_root / reference).resolve()
        except (OSError, ValueError) as exc:
            raise RemoteFetchError(
                f"Resource `{reference}` is not a valid reference.",
                failure_kind="invalid_reference",
            ) from exc
        if not path.is_relative_to(resolved_root):
            raise RemoteFetchError(
                f"Resource `{reference}` escapes the publishing root.",
                failure_kind="invalid_reference",
            )
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise RemoteFetchError(
                f"Resource `{reference}` not found.",
                failure_kind="not_found",
            ) from exc
        except (OSError, ValueError) as exc:
            raise RemoteFetchError(
                f"Cannot read resource `{reference}`: {exc}",
                failure_kind="io",
            ) from exc

    @classmethod
    def _short_message(cls, message: str) -> str:
        compact = " ".join(message.split())
        if len(compact) <= cls._MAX_ERROR_MESSAGE_CHARS:
            return compact
        return compact[: cls._MAX_ERROR_MESSAGE_CHARS - 3] + "..."
