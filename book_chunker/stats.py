"""Derived book statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import math
from typing import Dict

from .text.measure import count_words

WORDS_PER_PAGE = 250
# Reading pace assumed for agent readers, not people.
WORDS_PER_MINUTE = 1000


@dataclass
class BookStats:
    word_count: int
    page_count: int
    estimated_read_time_minutes: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def get_book_stats(text: str) -> BookStats:
    word_count = count_words(text)
    return BookStats(
        word_count=word_count,
        page_count=math.ceil(word_count / WORDS_PER_PAGE),
        estimated_read_time_minutes=math.ceil(word_count / WORDS_PER_MINUTE),
    )


__all__ = ["BookStats", "get_book_stats"]
