"""Top-level package for novelshelf.

This package imports plain-text and Markdown novels, splits them into
chapters, merges published and locally imported books into one catalog, and
tracks reading progress. The main entry point is `CatalogMerger`.
"""

from .catalog.merger import CatalogMerger
from .text.segmenter import segment

__all__ = ["CatalogMerger", "segment", "__version__"]

__version__ = "0.1.0"
