"""Chapter-aware, token-budgeted chunking of long-form book text."""

from __future__ import annotations

__version__ = "0.1.0"

from .chapters import Chapter, detect_chapters, roman_to_int
from .chunker import BookChunk, ChunkFragment, ChunkOptions, chunk_book, chunk_chapter, chunk_chapters
from .pipeline import BookChunker, ChunkingResult, TextTooShortError
from .stats import BookStats, get_book_stats

__all__ = [
    "BookChunk",
    "BookChunker",
    "BookStats",
    "Chapter",
    "ChunkFragment",
    "ChunkOptions",
    "ChunkingResult",
    "TextTooShortError",
    "chunk_book",
    "chunk_chapter",
    "chunk_chapters",
    "detect_chapters",
    "get_book_stats",
    "roman_to_int",
]
