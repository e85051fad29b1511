"""Ingestion pipeline shared by the CLI and library callers.

Mirrors what an ingestion job does with a cleaned book before persisting it:
reject text that is too short to be a book, compute statistics, detect
chapters and chunk them. Storage is left to the caller, which receives
everything it needs in a :class:`ChunkingResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
import logging
import time

from .chapters import Chapter, detect_chapters
from .chunker import BookChunk, ChunkOptions, chunk_chapters
from .stats import BookStats, get_book_stats

__all__ = [
    "BookChunker",
    "ChunkingResult",
    "TextTooShortError",
    "load_text",
]

logger = logging.getLogger(__name__)

DEFAULT_MIN_TEXT_LENGTH = 1000


class TextTooShortError(ValueError):
    """Raised when cleaned text is too short to ingest as a book."""

    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"Text too short ({length} chars, need at least {minimum})")
        self.length = length
        self.minimum = minimum


@dataclass
class ChunkingResult:
    """Outcome returned after chunking one book."""

    chunks: List[BookChunk]
    chapters: List[Chapter]
    stats: BookStats
    elapsed_seconds: float

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    def to_dict(self, include_chunks: bool = True) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "stats": self.stats.to_dict(),
            "chunkCount": self.total_chunks,
            "chapters": [
                {
                    "title": chapter.title,
                    "number": chapter.number,
                    "startPosition": chapter.start,
                    "endPosition": chapter.end,
                }
                for chapter in self.chapters
            ],
        }
        if include_chunks:
            payload["chunks"] = [chunk.to_dict() for chunk in self.chunks]
        return payload


def load_text(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Input file does not exist: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.warning("Failed to decode %s as UTF-8; attempting latin-1", path)
        return path.read_text(encoding="latin-1")


class BookChunker:
    """Turn a cleaned book into statistics, chapters and numbered chunks."""

    def __init__(
        self,
        options: Optional[ChunkOptions] = None,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
    ) -> None:
        if min_text_length < 1:
            raise ValueError("min_text_length must be at least 1")
        self.options = options or ChunkOptions()
        self.min_text_length = min_text_length

    def process(self, text: str) -> ChunkingResult:
        start_time = time.perf_counter()
        logger.debug("Chunking with options: %s", self.options)

        length = len(text.strip())
        if length < self.min_text_length:
            raise TextTooShortError(length, self.min_text_length)

        stats = get_book_stats(text)
        logger.info("Stats: %d words, %d pages", stats.word_count, stats.page_count)

        chapters = detect_chapters(text)
        logger.info("Detected %d chapters", len(chapters))

        chunks = chunk_chapters(chapters, self.options)
        logger.info("Created %d chunks", len(chunks))

        elapsed = time.perf_counter() - start_time
        logger.debug("Finished chunking in %.2fs", elapsed)
        return ChunkingResult(
            chunks=chunks,
            chapters=chapters,
            stats=stats,
            elapsed_seconds=elapsed,
        )

    def process_file(self, path: Path) -> ChunkingResult:
        text = load_text(path)
        logger.debug("Loaded %d characters from %s", len(text), path)
        return self.process(text)
