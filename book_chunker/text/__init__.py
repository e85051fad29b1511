"""Text measurement helpers shared by the chapter detector and chunker."""

from .measure import (
    count_words,
    estimate_tokens,
    paragraph_spans,
    sentence_spans,
    split_paragraphs,
    split_sentences,
)

__all__ = [
    "count_words",
    "estimate_tokens",
    "paragraph_spans",
    "sentence_spans",
    "split_paragraphs",
    "split_sentences",
]
