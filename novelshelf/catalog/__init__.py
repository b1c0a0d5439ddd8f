"""Catalog state, merging, and reading progress."""

from .merger import CatalogMerger
from .progress import ProgressTracker
from .state import CatalogState

__all__ = ["CatalogMerger", "CatalogState", "ProgressTracker"]
