"""Split detected chapters into token-budgeted chunks.

Chapters are chunked independently into fragments; numbering across the
whole book and the ``total_chunks`` backfill happen in one final pass in
:func:`chunk_book`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from typing import Dict, Iterable, List, Mapping, Optional

from .chapters import Chapter, detect_chapters
from .text.measure import count_words, estimate_tokens, paragraph_spans, sentence_spans

__all__ = [
    "BookChunk",
    "ChunkFragment",
    "ChunkOptions",
    "chunk_book",
    "chunk_chapter",
    "chunk_chapters",
]

logger = logging.getLogger(__name__)

ENV_PREFIX = "BOOK_CHUNKER_"
PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "


@dataclass
class ChunkOptions:
    """Size policy in estimated tokens, converted to characters on use."""

    target_tokens: int = 3000
    max_tokens: int = 4000
    min_tokens: int = 500
    chars_per_token: float = 4

    def __post_init__(self) -> None:
        for name in ("target_tokens", "max_tokens", "min_tokens", "chars_per_token"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not self.min_tokens <= self.target_tokens <= self.max_tokens:
            raise ValueError("Expected min_tokens <= target_tokens <= max_tokens")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ChunkOptions":
        """Build options from ``BOOK_CHUNKER_*`` variables, then apply *overrides*."""

        environ = os.environ if environ is None else environ
        values: Dict[str, float] = {}
        for name, cast in (
            ("target_tokens", int),
            ("max_tokens", int),
            ("min_tokens", int),
            ("chars_per_token", float),
        ):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw:
                try:
                    values[name] = cast(raw)
                except ValueError as exc:
                    raise ValueError(f"Invalid {ENV_PREFIX + name.upper()}: {raw!r}") from exc
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def target_chars(self) -> int:
        return int(self.target_tokens * self.chars_per_token)

    @property
    def max_chars(self) -> int:
        return int(self.max_tokens * self.chars_per_token)

    @property
    def min_chars(self) -> int:
        return int(self.min_tokens * self.chars_per_token)


@dataclass
class ChunkFragment:
    """Chunk text plus its ``[start, end)`` offsets in the source text."""

    text: str
    start: int
    end: int


@dataclass
class BookChunk:
    """A numbered chunk, ready to hand to a persistence layer."""

    chunk_number: int
    total_chunks: int
    text: str
    token_count: int
    word_count: int
    chapter_title: Optional[str]
    chapter_number: Optional[int]
    is_chapter_start: bool
    start: int
    end: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "chunkNumber": self.chunk_number,
            "totalChunks": self.total_chunks,
            "text": self.text,
            "tokenCount": self.token_count,
            "wordCount": self.word_count,
            "chapterTitle": self.chapter_title,
            "chapterNumber": self.chapter_number,
            "isChapterStart": self.is_chapter_start,
            "startPosition": self.start,
            "endPosition": self.end,
        }


@dataclass
class _ChunkBuffer:
    """Accumulates chapter pieces and emits trimmed fragments on flush."""

    text: str
    offset: int
    fragments: List[ChunkFragment] = field(default_factory=list)
    parts: List[str] = field(default_factory=list)
    start: int = 0
    end: int = 0
    length: int = 0

    def joined_length(self, piece_length: int, separator: str) -> int:
        if not self.parts:
            return piece_length
        return self.length + len(separator) + piece_length

    def append(self, start: int, end: int, separator: str) -> None:
        if self.parts:
            self.parts.append(separator)
            self.length += len(separator)
        else:
            self.start = start
        self.parts.append(self.text[start:end])
        self.length += end - start
        self.end = end

    def flush(self) -> None:
        text = "".join(self.parts).strip()
        if text:
            self.fragments.append(
                ChunkFragment(text=text, start=self.offset + self.start, end=self.offset + self.end)
            )
        self.parts = []
        self.length = 0


def chunk_chapter(chapter: Chapter, options: Optional[ChunkOptions] = None) -> List[ChunkFragment]:
    """Split one chapter into fragments bounded by *options*.

    Paragraphs are accumulated until the target size is reached or the next
    paragraph would overflow the hard maximum. Paragraphs longer than the
    maximum are split at sentence boundaries instead. Fragment offsets are
    positions in the book text, i.e. shifted by ``chapter.start``.
    """

    options = options or ChunkOptions()
    max_chars = options.max_chars
    min_chars = options.min_chars
    target_chars = options.target_chars

    buffer = _ChunkBuffer(chapter.text, chapter.start)
    if len(chapter.text) <= max_chars:
        stripped = chapter.text.lstrip()
        lead = len(chapter.text) - len(stripped)
        buffer.append(lead, lead + len(stripped.rstrip()), PARAGRAPH_SEPARATOR)
        buffer.flush()
        return buffer.fragments

    for start, end in paragraph_spans(chapter.text):
        length = end - start
        if length > max_chars:
            if buffer.length >= min_chars:
                buffer.flush()
            separator = PARAGRAPH_SEPARATOR
            for sentence_start, sentence_end in sentence_spans(chapter.text[start:end], start):
                if (
                    buffer.joined_length(sentence_end - sentence_start, separator) > target_chars
                    and buffer.length >= min_chars
                ):
                    buffer.flush()
                buffer.append(sentence_start, sentence_end, separator)
                separator = SENTENCE_SEPARATOR
        elif buffer.joined_length(length, PARAGRAPH_SEPARATOR) > max_chars and buffer.length >= min_chars:
            buffer.flush()
            buffer.append(start, end, PARAGRAPH_SEPARATOR)
        elif buffer.length >= target_chars:
            buffer.flush()
            buffer.append(start, end, PARAGRAPH_SEPARATOR)
        else:
            buffer.append(start, end, PARAGRAPH_SEPARATOR)
    buffer.flush()

    logger.debug(
        "Chapter %r (%d chars) split into %d chunks",
        chapter.title,
        len(chapter.text),
        len(buffer.fragments),
    )
    return buffer.fragments


def chunk_chapters(chapters: Iterable[Chapter], options: Optional[ChunkOptions] = None) -> List[BookChunk]:
    """Chunk *chapters* in order, numbering from 1 and backfilling the total."""

    options = options or ChunkOptions()
    chunks: List[BookChunk] = []
    for chapter in chapters:
        for index, fragment in enumerate(chunk_chapter(chapter, options)):
            chunks.append(
                BookChunk(
                    chunk_number=len(chunks) + 1,
                    total_chunks=0,
                    text=fragment.text,
                    token_count=estimate_tokens(fragment.text, options.chars_per_token),
                    word_count=count_words(fragment.text),
                    chapter_title=chapter.title,
                    chapter_number=chapter.number,
                    is_chapter_start=index == 0,
                    start=fragment.start,
                    end=fragment.end,
                )
            )

    for chunk in chunks:
        chunk.total_chunks = len(chunks)
    return chunks


def chunk_book(text: str, options: Optional[ChunkOptions] = None) -> List[BookChunk]:
    """Detect chapters in *text* and return globally numbered chunks."""

    if not text or not text.strip():
        raise ValueError("Cannot chunk empty text")
    chunks = chunk_chapters(detect_chapters(text), options)
    logger.debug("Chunked %d characters into %d chunks", len(text), len(chunks))
    return chunks
