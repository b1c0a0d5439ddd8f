"""Text segmentation components.

This package provides the heading tokenizer, chapter carving, and file name
ordering helpers used when books are built.
"""

from .natural_order import natural_sort_key
from .segmenter import (
    DEFAULT_HEADING_PATTERNS,
    FULL_TEXT_TITLE,
    PREAMBLE_TITLE,
    HeadingPattern,
    HeadingToken,
    Segmenter,
    segment,
)

__all__ = [
    "DEFAULT_HEADING_PATTERNS",
    "FULL_TEXT_TITLE",
    "PREAMBLE_TITLE",
    "HeadingPattern",
    "HeadingToken",
    "Segmenter",
    "natural_sort_key",
    "segment",
]
