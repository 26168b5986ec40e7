"""Unit tests for core/search.py"""

import pytest

from docblocks.core.models import HeadingBlock, ImageBlock, MarkdownBlock, PageBreakBlock, TableBlock
from docblocks.core.search import extract_snippet, search
from docblocks.crud.blocks import add_block
from docblocks.crud.documents import get_document
from docblocks.crud.errors import NotFoundError


# --- extract_snippet ---

def test_snippet_clips_both_sides():
    content = "a" * 100 + "Needle" + "b" * 100
    assert extract_snippet(content, "needle", context=10) == "..." + "a" * 10 + "Needle" + "b" * 10 + "..."


def test_snippet_without_clipping():
    assert extract_snippet("find the needle here", "needle") == "find the needle here"


def test_snippet_at_start_only_clips_end():
    snippet = extract_snippet("needle" + "z" * 100, "needle", context=5)
    assert snippet == "needlezzzzz..."


def test_snippet_without_match_uses_head():
    assert extract_snippet("x" * 200, "nope", context=50) == "x" * 150 + "..."


# --- search ---

def test_search_finds_all_matches_in_order(store, flat_doc):
    add_block(store, flat_doc, MarkdownBlock(content="A guide to butterflies and their lifecycle."))
    add_block(store, flat_doc, MarkdownBlock(content="Butterflies are beautiful."))
    results = search(store, flat_doc, "butterflies")
    assert [(r.block_id, r.position) for r in results] == [("md-001", 0), ("md-002", 1)]
    assert all("butterflies" in r.snippet.lower() for r in results)
    assert results[1].snippet.startswith("Butterflies")


def test_search_is_case_insensitive(store, flat_doc):
    add_block(store, flat_doc, HeadingBlock(text="Getting Started"))
    assert len(search(store, flat_doc, "GETTING")) == 1


def test_search_covers_images_and_tables(store, flat_doc):
    add_block(store, flat_doc, ImageBlock(path="a.png", caption="Orbit diagram"))
    add_block(store, flat_doc, TableBlock(headers=["Planet"], rows=[["Mars"], ["Venus"]]))
    assert [r.block_type for r in search(store, flat_doc, "orbit")] == ["image"]
    assert [r.block_type for r in search(store, flat_doc, "venus")] == ["table"]


def test_page_breaks_never_match(store, flat_doc):
    add_block(store, flat_doc, PageBreakBlock())
    assert search(store, flat_doc, "page") == []


def test_empty_query_matches_nothing(store, flat_doc):
    add_block(store, flat_doc, MarkdownBlock(content="anything"))
    assert search(store, flat_doc, "") == []


def test_search_spans_document_level_and_chapters(store, book_ch):
    book, ch = book_ch
    add_block(store, book, MarkdownBlock(content="moon at the top"))
    add_block(store, book, HeadingBlock(text="Intro"), chapter_id=ch)
    add_block(store, book, MarkdownBlock(content="a moon inside"), chapter_id=ch)
    results = search(store, book, "moon")
    assert [(r.chapter_id, r.block_id, r.position) for r in results] == [
        ("", "md-001", 0),
        (ch, "md-001", 1),
    ]


def test_search_single_chapter(store, book_ch):
    book, ch = book_ch
    add_block(store, book, MarkdownBlock(content="moon at the top"))
    add_block(store, book, MarkdownBlock(content="a moon inside"), chapter_id=ch)
    results = search(store, book, "moon", chapter_id=ch)
    assert [r.chapter_id for r in results] == [ch]


def test_search_unknown_chapter(store, book):
    with pytest.raises(NotFoundError):
        search(store, book, "x", chapter_id="ch-404")


def test_search_skips_undecodable_block(store, flat_doc):
    add_block(store, flat_doc, HeadingBlock(text="ok here"))
    add_block(store, flat_doc, HeadingBlock(text="ok there"))
    ref = get_document(store, flat_doc).blocks[0]
    store.resolve(flat_doc, ref.file).write_bytes(b"text: \xff\n")
    assert [r.block_id for r in search(store, flat_doc, "ok")] == ["hd-002"]
