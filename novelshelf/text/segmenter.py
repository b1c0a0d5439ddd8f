"""Chapter segmentation for plain-text and Markdown novels.

Responsibilities:
- Tokenize raw text into heading tokens from a table of independent pattern classes.
- Carve chapter content between consecutive heading tokens.
- Preserve deterministic, dense 0-based chapter indexing.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Sequence

from ..models.datatypes import Chapter

PREAMBLE_TITLE = "前言 / 序章"
FULL_TEXT_TITLE = "全文"

_CJK_NUMERALS = "0-9０-９零〇一二三四五六七八九十百千万两"
_MARKDOWN_PREFIX_RE = re.compile(r"^#+\s*")


@dataclass(frozen=True, slots=True)
class HeadingPattern:
    """One heading pattern class.

    Attributes:
        name: Identifier of the class, used as the regex group name.
        body: Regex for the heading line body, without line anchoring. It must
            not consume line breaks.
    """

    name: str
    body: str


@dataclass(frozen=True, slots=True)
class HeadingToken:
    """A text span recognized as the start of a new chapter.

    Attributes:
        kind: Name of the pattern class that matched.
        start: Inclusive offset of the heading line start.
        end: Exclusive offset of the heading line end.
        title: Trimmed heading text with any Markdown prefix removed.
    """

    kind: str
    start: int
    end: int
    title: str


DEFAULT_HEADING_PATTERNS: tuple[HeadingPattern, ...] = (
    HeadingPattern("cjk", rf"第[{_CJK_NUMERALS}]+[章回节卷][^\r\n]*"),
    HeadingPattern("latin", r"(?i:chapter)[ \t]+[0-9]+[^\r\n]*"),
    HeadingPattern("markdown", r"#{1,2}[ \t]+[^\r\n]*"),
    HeadingPattern("numbered", r"[0-9]+[.、][ \t]+[^\r\n]*"),
)


def _compile_heading_regex(patterns: Sequence[HeadingPattern]) -> re.Pattern[str]:
    """Combine pattern classes into one line-anchored alternation.

    All classes compete as one token class: the leftmost match in the text wins
    regardless of the order of the table.
    """

    alternatives = "|".join(f"(?P<{pattern.name}>{pattern.body})" for pattern in patterns)
    return re.compile(rf"^[ \t\u3000]*(?:{alternatives})", re.MULTILINE)


def clean_heading_title(raw_heading: str) -> str:
    """Normalize a matched heading line into a chapter title."""

    return _MARKDOWN_PREFIX_RE.sub("", raw_heading.strip()).strip()


class Segmenter:
    """Split raw novel text into chapter records."""

    def __init__(self, patterns: Sequence[HeadingPattern] = DEFAULT_HEADING_PATTERNS) -> None:
        """Initialize the segmenter with a heading pattern table."""

        if not patterns:
            raise ValueError("Segmenter requires at least one heading pattern.")
        self.patterns = tuple(patterns)
        self._heading_re = _compile_heading_regex(self.patterns)

    def tokenize(self, text: str) -> list[HeadingToken]:
        """Return heading tokens in text order."""

        tokens: list[HeadingToken] = []
        for match in self._heading_re.finditer(text):
            kind = match.lastgroup or ""
            tokens.append(
                HeadingToken(
                    kind=kind,
                    start=match.start(),
                    end=match.end(),
                    title=clean_heading_title(match.group(kind)),
                )
            )
        return tokens

    def segment(self, text: str) -> list[Chapter]:
        """Split text into chapters.

        Recognized headings:
        - `第1章 开端`, `第十二回`, `第三卷 ...`
        - `Chapter 7`, `CHAPTER 2: Title`
        - `# Title`, `## Title`
        - `1. Title`, `12、 标题`

        Text before the first heading becomes a preamble chapter. A text without
        any heading becomes a single full-text chapter. Empty chapters are kept
        except in last position.
        """

        tokens = self.tokenize(text)
        if not tokens:
            return [Chapter(index=0, title=FULL_TEXT_TITLE, content=text.strip())]

        drafts: list[tuple[str, str]] = []
        preamble = text[: tokens[0].start].strip()
        if preamble:
            drafts.append((PREAMBLE_TITLE, preamble))

        last_position = len(tokens) - 1
        for position, token in enumerate(tokens):
            content_end = tokens[position + 1].start if position < last_position else len(text)
            content = text[token.end : content_end].strip()
            if content or position < last_position:
                drafts.append((token.title, content))

        if not drafts:
            # A lone heading with nothing after it.
            drafts.append((tokens[-1].title, ""))

        return [
            Chapter(index=index, title=title, content=content)
            for index, (title, content) in enumerate(drafts)
        ]


_DEFAULT_SEGMENTER = Segmenter()


def segment(text: str) -> list[Chapter]:
    """Split text into chapters using the default heading pattern table."""

    return _DEFAULT_SEGMENTER.segment(text)
