"""Heading heuristics that partition plain book text into chapters."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Ordered heading matchers. Order only decides which match survives when two
# fire at the same position; every match is pooled and sorted afterwards.
HEADING_PATTERNS: List[Tuple[str, re.Pattern[str]]] = [
    (
        "chapter",
        re.compile(
            r"^(?P<keyword>CHAPTER|Chapter)[ \t]+(?P<number>[IVXLCDM]+|\d+|[A-Za-z]+)\b"
            r"[ \t.:]*(?P<remainder>.*)$",
            re.MULTILINE,
        ),
    ),
    (
        "book",
        re.compile(
            r"^(?P<keyword>BOOK|Book)[ \t]+(?P<number>[IVXLCDM]+|\d+)\b[ \t.:]*(?P<remainder>.*)$",
            re.MULTILINE,
        ),
    ),
    (
        "part",
        re.compile(
            r"^(?P<keyword>PART|Part)[ \t]+(?P<number>[IVXLCDM]+|\d+)\b[ \t.:]*(?P<remainder>.*)$",
            re.MULTILINE,
        ),
    ),
    ("roman", re.compile(r"^(?P<number>[IVXLCDM]+)\.[ \t]*(?P<remainder>.*)$", re.MULTILINE)),
    ("caps", re.compile(r"^[A-Z][A-Z \t'-]{5,49}$", re.MULTILINE)),
]

PROXIMITY_WINDOW = 100

ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}


@dataclass
class Chapter:
    """A contiguous slice of the source text headed by a detected heading."""

    title: Optional[str]
    number: Optional[int]
    start: int
    end: int
    text: str

    @property
    def span(self) -> Tuple[int, int]:
        return self.start, self.end


@dataclass
class HeadingMatch:
    position: int
    line: str
    keyword: Optional[str] = None
    token: Optional[str] = None
    remainder: str = ""

    @property
    def title(self) -> str:
        if self.remainder:
            prefix = " ".join(part for part in (self.keyword, self.token) if part)
            return f"{prefix}: {self.remainder}"
        return self.line

    @property
    def number(self) -> Optional[int]:
        if self.token is None:
            return None
        try:
            return int(self.token)
        except ValueError:
            return roman_to_int(self.token)


def roman_to_int(token: str) -> Optional[int]:
    """Convert a roman numeral to an integer, or ``None`` if it is not one."""

    result = 0
    previous = 0
    for char in reversed(token.upper()):
        value = ROMAN_VALUES.get(char)
        if value is None:
            return None
        if value < previous:
            result -= value
        else:
            result += value
        previous = value
    return result if result > 0 else None


def find_headings(text: str) -> List[HeadingMatch]:
    """Run every heading pattern over *text* and pool the matches by position."""

    matches: List[HeadingMatch] = []
    for name, pattern in HEADING_PATTERNS:
        found = len(matches)
        for match in pattern.finditer(text):
            groups = match.groupdict()
            matches.append(
                HeadingMatch(
                    position=match.start(),
                    line=match.group(0).strip(),
                    keyword=groups.get("keyword"),
                    token=groups.get("number"),
                    remainder=(groups.get("remainder") or "").strip(),
                )
            )
        logger.debug("Pattern %s matched %d headings", name, len(matches) - found)
    # sorted() is stable, so ties keep pattern order
    return sorted(matches, key=lambda heading: heading.position)


def deduplicate_headings(headings: Iterable[HeadingMatch]) -> List[HeadingMatch]:
    """Collapse headings that fall within the proximity window of the last kept one.

    Consecutive headings sharing a keyword (``CHAPTER I`` then ``CHAPTER II``)
    on different lines are both kept however close they are. Anything else
    inside the window, such as ``BOOK I`` directly above ``CHAPTER I``, is
    treated as a second match of the same heading.
    """

    kept: List[HeadingMatch] = []
    for heading in headings:
        if kept:
            previous = kept[-1]
            distinct = (
                previous.keyword is not None
                and previous.keyword.upper() == (heading.keyword or "").upper()
                and heading.position != previous.position
            )
            if heading.position - previous.position <= PROXIMITY_WINDOW and not distinct:
                continue
        kept.append(heading)
    return kept


def detect_chapters(text: str) -> List[Chapter]:
    """Partition *text* into chapters covering ``[0, len(text))`` without gaps."""

    headings = deduplicate_headings(find_headings(text))
    if not headings:
        logger.debug("No chapter headings found; using the whole text")
        return [Chapter(title=None, number=None, start=0, end=len(text), text=text)]

    chapters: List[Chapter] = []
    first = headings[0].position
    if first > 0 and text[:first].strip():
        chapters.append(Chapter(title=None, number=None, start=0, end=first, text=text[:first]))

    for index, heading in enumerate(headings):
        start = heading.position if chapters or index > 0 else 0
        end = headings[index + 1].position if index + 1 < len(headings) else len(text)
        chapters.append(
            Chapter(
                title=heading.title,
                number=heading.number,
                start=start,
                end=end,
                text=text[start:end],
            )
        )
    logger.debug("Detected %d chapters", len(chapters))
    return chapters


__all__ = ["Chapter", "HeadingMatch", "detect_chapters", "find_headings", "roman_to_int"]
