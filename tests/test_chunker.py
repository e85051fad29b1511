from __future__ import annotations

import math

import pytest

from book_chunker.chapters import Chapter
from book_chunker.chunker import ChunkOptions, chunk_book, chunk_chapter

# 400 target, 600 max and 100 min characters
SMALL = ChunkOptions(target_tokens=100, max_tokens=150, min_tokens=25, chars_per_token=4)

TWO_CHAPTERS = "CHAPTER I\n\nFirst paragraph.\n\nCHAPTER II\n\nSecond paragraph."


def _paragraphs(count):
    return [f"the paragraph number {i} carries a few plain words along." for i in range(count)]


def _sentences(count):
    return [f"the sentence number {i} talks about nothing in particular." for i in range(count)]


def _assert_numbering(chunks):
    assert [chunk.chunk_number for chunk in chunks] == list(range(1, len(chunks) + 1))
    assert {chunk.total_chunks for chunk in chunks} == {len(chunks)}


def test_default_options():
    options = ChunkOptions()

    assert (options.target_tokens, options.max_tokens, options.min_tokens) == (3000, 4000, 500)
    assert options.chars_per_token == 4
    assert (options.target_chars, options.max_chars, options.min_chars) == (12000, 16000, 2000)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_tokens": 5000},
        {"target_tokens": 5000},
        {"chars_per_token": 0},
        {"max_tokens": -1},
    ],
)
def test_invalid_options_are_rejected(kwargs):
    with pytest.raises(ValueError):
        ChunkOptions(**kwargs)


def test_options_from_environment_with_overrides():
    environ = {
        "BOOK_CHUNKER_TARGET_TOKENS": "100",
        "BOOK_CHUNKER_MAX_TOKENS": "200",
        "BOOK_CHUNKER_MIN_TOKENS": "10",
    }

    options = ChunkOptions.from_env(environ, max_tokens=300, min_tokens=None)

    assert options.target_tokens == 100
    assert options.max_tokens == 300
    assert options.min_tokens == 10
    assert options.chars_per_token == 4


def test_options_from_environment_rejects_garbage():
    with pytest.raises(ValueError, match="BOOK_CHUNKER_MAX_TOKENS"):
        ChunkOptions.from_env({"BOOK_CHUNKER_MAX_TOKENS": "lots"})


def test_two_short_chapters_give_two_chunks():
    chunks = chunk_book(TWO_CHAPTERS)

    assert len(chunks) == 2
    _assert_numbering(chunks)
    assert [chunk.chapter_number for chunk in chunks] == [1, 2]
    assert all(chunk.is_chapter_start for chunk in chunks)
    assert chunks[0].text == "CHAPTER I\n\nFirst paragraph."
    assert chunks[1].text == "CHAPTER II\n\nSecond paragraph."
    for chunk in chunks:
        assert chunk.text == TWO_CHAPTERS[chunk.start:chunk.end]


def test_unstructured_text_is_one_chunk():
    text = "a single unbroken paragraph of lowercase prose with no headings at all."

    chunks = chunk_book(text)

    assert len(chunks) == 1
    assert chunks[0].chapter_title is None
    assert chunks[0].chapter_number is None
    assert chunks[0].is_chapter_start
    assert chunks[0].total_chunks == 1


def test_chunk_measurements():
    chunks = chunk_book("\n\n".join(_paragraphs(40)), SMALL)

    for chunk in chunks:
        assert chunk.word_count == len(chunk.text.split()) >= 1
        assert chunk.token_count == math.ceil(len(chunk.text) / 4)


def test_long_chapter_splits_only_at_paragraph_boundaries():
    paragraphs = _paragraphs(40)
    text = "\n\n".join(paragraphs)

    chunks = chunk_book(text, SMALL)

    assert len(chunks) > 1
    _assert_numbering(chunks)
    assert all(len(chunk.text) <= SMALL.max_chars for chunk in chunks[:-1])
    pieces = [piece for chunk in chunks for piece in chunk.text.split("\n\n")]
    assert pieces == paragraphs
    for chunk in chunks:
        assert chunk.text == text[chunk.start:chunk.end]


def test_oversized_paragraph_falls_back_to_sentences():
    sentences = _sentences(40)
    paragraph = " ".join(sentences)
    assert len(paragraph) > SMALL.max_chars

    chunks = chunk_book(paragraph, SMALL)

    assert len(chunks) > 1
    assert all(len(chunk.text) <= SMALL.max_chars for chunk in chunks)
    assert all(chunk.text.endswith(".") for chunk in chunks)
    assert " ".join(chunk.text for chunk in chunks) == paragraph
    for chunk in chunks:
        assert chunk.text == paragraph[chunk.start:chunk.end]


def test_small_buffer_is_carried_into_sentence_split():
    intro = "short intro line."
    text = intro + "\n\n" + " ".join(_sentences(40))

    chunks = chunk_book(text, SMALL)

    assert chunks[0].text.startswith(intro + "\n\nthe sentence number 0 ")
    assert chunks[0].start == 0


def test_chapter_start_flag_marks_first_chunk_of_each_chapter():
    body = "\n\n".join(_paragraphs(30))
    text = f"CHAPTER I\n\n{body}\n\nCHAPTER II\n\n{body}"

    chunks = chunk_book(text, SMALL)

    _assert_numbering(chunks)
    for number in (1, 2):
        owned = [chunk for chunk in chunks if chunk.chapter_number == number]
        assert len(owned) > 1
        assert [chunk.is_chapter_start for chunk in owned] == [True] + [False] * (len(owned) - 1)
    assert chunks[0].text.startswith("CHAPTER I\n\n")


def test_chunk_chapter_fitting_chapter_is_trimmed_with_offsets():
    chapter = Chapter(title=None, number=None, start=10, end=25, text="  hello world  ")

    fragments = chunk_chapter(chapter)

    assert len(fragments) == 1
    assert fragments[0].text == "hello world"
    assert (fragments[0].start, fragments[0].end) == (12, 23)


def test_blank_text_is_rejected():
    with pytest.raises(ValueError):
        chunk_book("   \n\n ")


def test_to_dict_uses_persisted_field_names():
    record = chunk_book(TWO_CHAPTERS)[1].to_dict()

    assert record["chunkNumber"] == 2
    assert record["totalChunks"] == 2
    assert record["chapterTitle"] == "CHAPTER II"
    assert record["isChapterStart"] is True
    assert record["startPosition"] == 29
    assert record["endPosition"] == len(TWO_CHAPTERS)


def test_oversized_paragraph_after_full_buffer_is_split_into_sentences():
    intro = "\n\n".join(_paragraphs(2))
    long_paragraph = " ".join(_sentences(30))
    assert len(intro) >= SMALL.min_chars
    text = f"{intro}\n\n{long_paragraph}\n\n{long_paragraph}"

    chunks = chunk_book(text, SMALL)

    assert chunks[0].text == intro
    assert len(chunks) > 4
    assert all(len(chunk.text) <= SMALL.max_chars for chunk in chunks)
    for chunk in chunks:
        assert chunk.text == text[chunk.start:chunk.end]
