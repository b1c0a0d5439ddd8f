"""Shared typed data models for novelshelf.

This package contains dataclasses used across catalog modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    Book,
    Chapter,
    ImportCandidate,
    ManifestEntry,
    clamp_chapter_index,
    compute_progress,
)

__all__ = [
    "Book",
    "Chapter",
    "ImportCandidate",
    "ManifestEntry",
    "clamp_chapter_index",
    "compute_progress",
]
