"""Cheap size estimates and boundary splitting for book text."""

from __future__ import annotations

import math
import re
from typing import Iterator, List, Optional, Tuple

PARAGRAPH_BREAK = re.compile(r"\n\n+")
SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

Span = Tuple[int, int]


def estimate_tokens(text: str, chars_per_token: float = 4) -> int:
    """Approximate a language-model token count from the character length."""

    return math.ceil(len(text) / chars_per_token)


def count_words(text: str) -> int:
    return len(text.split())


def split_paragraphs(text: str) -> List[str]:
    return [part for part in PARAGRAPH_BREAK.split(text) if part.strip()]


def split_sentences(text: str) -> List[str]:
    return [part for part in SENTENCE_BREAK.split(text) if part.strip()]


def paragraph_spans(text: str, offset: int = 0) -> Iterator[Span]:
    """Yield ``(start, end)`` of every non-blank paragraph in *text*.

    Offsets exclude the whitespace around each paragraph and are shifted by
    *offset*, so callers slicing a larger document can pass the position of
    *text* inside it.
    """

    return _spans(text, PARAGRAPH_BREAK, offset)


def sentence_spans(text: str, offset: int = 0) -> Iterator[Span]:
    """Yield ``(start, end)`` of every non-blank sentence in *text*."""

    return _spans(text, SENTENCE_BREAK, offset)


def _spans(text: str, separator: re.Pattern[str], offset: int) -> Iterator[Span]:
    start = 0
    for match in separator.finditer(text):
        span = _strip_span(text, start, match.start())
        if span is not None:
            yield span[0] + offset, span[1] + offset
        start = match.end()
    span = _strip_span(text, start, len(text))
    if span is not None:
        yield span[0] + offset, span[1] + offset


def _strip_span(text: str, start: int, end: int) -> Optional[Span]:
    piece = text[start:end]
    stripped = piece.strip()
    if not stripped:
        return None
    lead = len(piece) - len(piece.lstrip())
    return start + lead, start + lead + len(stripped)


__all__ = [
    "count_words",
    "estimate_tokens",
    "paragraph_spans",
    "sentence_spans",
    "split_paragraphs",
    "split_sentences",
]
