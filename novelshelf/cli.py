"""Command-line interface for novelshelf.

Responsibilities:
- Expose catalog operations (import, list, read, navigate, delete) as commands.
- Convert CLI arguments into `NovelshelfConfig` and run one catalog session per command.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
import sys
from typing import Annotated

import typer

from .catalog.merger import CatalogMerger
from .cli_rendering import (
    echo_book_list,
    echo_chapter,
    echo_chapter_list,
    exit_with_command_error,
)
from .cli_runtime import catalog_session, read_import_candidates, resolve_config
from .config import NovelshelfConfig
from .errors import CatalogStageError
from .models.datatypes import Book, Chapter, clamp_chapter_index
from .telemetry.logger import CatalogLogger
from .text.segmenter import segment

app = typer.Typer(
    name="novelshelf",
    no_args_is_help=True,
    help="Novelshelf CLI: a chapter-aware reader catalog for text and Markdown novels.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with session defaults."),
]
LibraryDirOption = Annotated[
    Path | None,
    typer.Option("--library-dir", help="Directory holding imported books (overrides config)."),
]
PublishingRootOption = Annotated[
    str | None,
    typer.Option(
        "--publishing-root",
        help="Base URL or directory containing the published `manifest.json`.",
    ),
]
BookIdArgument = Annotated[str, typer.Argument(help="Book id as shown by `novelshelf list`.")]


def _session_logger(config: NovelshelfConfig) -> CatalogLogger:
    return CatalogLogger(sink=sys.stderr, level=config.log_level)


def _require_book(merger: CatalogMerger, book_id: str) -> Book:
    """Return a catalog book or raise a lookup stage error."""

    book = merger.state.find(book_id)
    if book is None:
        raise CatalogStageError(
            stage="book-lookup",
            detail=f"No book with id `{book_id}` in the catalog.",
            hint="Run `novelshelf list` to see available ids.",
        )
    return book


def _current_chapter(merger: CatalogMerger, book_id: str) -> tuple[Book, Chapter]:
    book = _require_book(merger, book_id)
    position = clamp_chapter_index(book.last_read_chapter_index, len(book.chapters))
    return book, book.chapters[position]


@app.command("segment")
def segment_command(
    text_file: Annotated[Path, typer.Argument(help="Plain-text or Markdown novel file.")],
) -> None:
    """Print the chapters detected in a file without importing it."""

    try:
        text = text_file.read_bytes().decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        exit_with_command_error(
            "segment",
            CatalogStageError(
                stage="read",
                detail=f"Cannot read `{text_file}` as UTF-8 text: {exc}",
                hint="Provide an existing UTF-8 encoded `.txt` or `.md` file.",
            ),
        )

    chapters = segment(text)
    typer.echo(f"Chapters: {len(chapters)}")
    echo_chapter_list(chapters)


@app.command("import")
def import_command(
    files: Annotated[list[Path], typer.Argument(help="Files to import into the library.")],
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """Import text or Markdown files into the local library."""

    async def _run(config: NovelshelfConfig, logger: CatalogLogger) -> list[Book]:
        candidates = read_import_candidates(files, logger)
        async with catalog_session(config, logger) as merger:
            return await merger.import_files(candidates)

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
        imported = asyncio.run(_run(config, _session_logger(config)))
    except Exception as exc:
        exit_with_command_error("import", exc)

    typer.echo(f"Imported: {len(imported)} of {len(files)} file(s)")
    echo_book_list(imported)


@app.command("list")
def list_command(
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """List remote books followed by local books with reading progress."""

    async def _run(config: NovelshelfConfig, logger: CatalogLogger) -> tuple[Book, ...]:
        async with catalog_session(config, logger) as merger:
            return merger.snapshot()

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
        books = asyncio.run(_run(config, _session_logger(config)))
    except Exception as exc:
        exit_with_command_error("list", exc)

    echo_book_list(books)


@app.command("chapters")
def chapters_command(
    book_id: BookIdArgument,
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """List the chapters of a book, marking the last-read one."""

    async def _run(config: NovelshelfConfig, logger: CatalogLogger) -> Book:
        async with catalog_session(config, logger) as merger:
            return _require_book(merger, book_id)

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
        book = asyncio.run(_run(config, _session_logger(config)))
    except Exception as exc:
        exit_with_command_error("chapters", exc)

    echo_chapter_list(book.chapters, current_index=book.last_read_chapter_index)


@app.command("read")
def read_command(
    book_id: BookIdArgument,
    index: Annotated[
        int | None,
        typer.Argument(help="0-based chapter index; defaults to the last-read chapter."),
    ] = None,
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """Print a chapter and record it as the reading position."""

    async def _run(config: NovelshelfConfig, logger: CatalogLogger) -> tuple[Book, Chapter]:
        async with catalog_session(config, logger) as merger:
            book = _require_book(merger, book_id)
            if index is None:
                merger.select_book(book_id)
            elif not await merger.select_chapter(book_id, index):
                raise CatalogStageError(
                    stage="select-chapter",
                    detail=(
                        f"Chapter index {index} is out of range for `{book_id}` "
                        f"(0-{len(book.chapters) - 1})."
                    ),
                    hint="Run `novelshelf chapters <book-id>` to see valid indices.",
                )
            return _current_chapter(merger, book_id)

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
        book, chapter = asyncio.run(_run(config, _session_logger(config)))
    except Exception as exc:
        exit_with_command_error("read", exc)

    echo_chapter(book, chapter)


def _step_command(
    command_name: str, forward: bool, book_id: str, config: NovelshelfConfig
) -> None:
    """Run a one-chapter navigation step and print the resulting chapter."""

    async def _run(logger: CatalogLogger) -> tuple[bool, Book, Chapter]:
        async with catalog_session(config, logger) as merger:
            _require_book(merger, book_id)
            if forward:
                moved = await merger.next_chapter(book_id)
            else:
                moved = await merger.previous_chapter(book_id)
            book, chapter = _current_chapter(merger, book_id)
            return moved, book, chapter

    try:
        moved, book, chapter = asyncio.run(_run(_session_logger(config)))
    except Exception as exc:
        exit_with_command_error(command_name, exc)

    if not moved:
        typer.echo("Already at the last chapter." if forward else "Already at the first chapter.")
    echo_chapter(book, chapter)


@app.command("next")
def next_command(
    book_id: BookIdArgument,
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """Advance a book to its next chapter."""

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
    except Exception as exc:
        exit_with_command_error("next", exc)
    _step_command("next", True, book_id, config)


@app.command("prev")
def prev_command(
    book_id: BookIdArgument,
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """Step a book back to its previous chapter."""

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
    except Exception as exc:
        exit_with_command_error("prev", exc)
    _step_command("prev", False, book_id, config)


@app.command("delete")
def delete_command(
    book_id: BookIdArgument,
    config_file: ConfigOption = None,
    library_dir: LibraryDirOption = None,
    publishing_root: PublishingRootOption = None,
) -> None:
    """Delete a locally imported book; published books are refused."""

    async def _run(config: NovelshelfConfig, logger: CatalogLogger) -> tuple[Book, bool]:
        async with catalog_session(config, logger) as merger:
            book = _require_book(merger, book_id)
            return book, await merger.delete_book(book_id)

    try:
        config = resolve_config(config_file, library_dir, publishing_root)
        book, deleted = asyncio.run(_run(config, _session_logger(config)))
    except Exception as exc:
        exit_with_command_error("delete", exc)

    if not deleted:
        exit_with_command_error(
            "delete",
            CatalogStageError(
                stage="delete",
                detail=f"`{book.title}` is a published book and cannot be deleted.",
                hint="Only books imported with `novelshelf import` can be deleted.",
            ),
        )
    typer.echo(f"Deleted: {book.id}\t{book.title}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
