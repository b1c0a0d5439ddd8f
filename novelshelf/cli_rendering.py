"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
catalog listings, chapter listings, and chapter text.
"""

from __future__ import annotations

from typing import Iterable, NoReturn

import typer

from .errors import CatalogStageError, StoreError
from .models.datatypes import Book, Chapter


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CatalogStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    elif isinstance(exc, StoreError):
        typer.secho(
            f"{command_name} failed at stage `store`: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_book_list(books: Iterable[Book]) -> None:
    """Print one row per catalog book: id, source, progress, and title."""

    rows = list(books)
    if not rows:
        typer.echo("Catalog is empty.")
        return
    for book in rows:
        source = "remote" if book.is_remote else "local"
        typer.echo(
            f"{book.id}\t{source}\t{book.progress:>3}%\t"
            f"{book.last_read_chapter_index + 1}/{len(book.chapters)}\t{book.title}"
        )


def echo_chapter_list(chapters: Iterable[Chapter], current_index: int | None = None) -> None:
    """Print compact chapter index/title rows, marking the current chapter."""

    for chapter in chapters:
        marker = "*" if chapter.index == current_index else " "
        typer.echo(f"{marker} {chapter.index}. {chapter.title}")


def echo_chapter(book: Book, chapter: Chapter) -> None:
    """Print a chapter heading line followed by its text."""

    typer.echo(
        f"[{book.title}] {chapter.title} "
        f"({chapter.index + 1}/{len(book.chapters)}, {book.progress}%)"
    )
    typer.echo("")
    typer.echo(chapter.content)
