"""Unit tests for core/models.py block variants"""

import pytest

from docblocks.core.models import (
    HeadingBlock, ImageBlock, MarkdownBlock, PageBreakBlock, TableBlock, block_from_dict,
)
from docblocks.crud.errors import InvalidArgumentError


# --- to_markdown ---

def test_heading_to_markdown():
    assert HeadingBlock(level=3, text="Setup").to_markdown() == "### Setup"


def test_markdown_to_markdown_is_verbatim():
    content = "Some *text*\n\n- a\n- b"
    assert MarkdownBlock(content=content).to_markdown() == content


def test_image_to_markdown_prefers_alt_text():
    """Alt text wins over caption inside the brackets; caption follows in italics."""
    md = ImageBlock(path="assets/cat-001.png", caption="A cat", alt_text="cat photo").to_markdown()
    assert md == "![cat photo](assets/cat-001.png)\n\n*A cat*"


def test_image_to_markdown_without_caption():
    assert ImageBlock(path="assets/x.png").to_markdown() == "![](assets/x.png)"


def test_table_to_markdown_pads_and_clips_rows():
    """Short rows get empty cells; cells beyond the header count are dropped."""
    table = TableBlock(headers=["A", "B"], rows=[["1"], ["2", "3", "4"]])
    assert table.to_markdown().splitlines() == [
        "| A | B |",
        "| --- | --- |",
        "| 1 |  |",
        "| 2 | 3 |",
    ]


def test_table_without_headers_renders_empty():
    assert TableBlock(rows=[["x"]]).to_markdown() == ""


def test_page_break_to_markdown():
    assert PageBreakBlock().to_markdown() == "\\newpage"


# --- preview ---

def test_heading_preview_truncates_long_text():
    """Text beyond the limit keeps limit-3 chars plus '...'."""
    preview = HeadingBlock(level=2, text="x" * 150).preview(100)
    assert preview == "H2: " + "x" * 97 + "..."


def test_markdown_preview_trims_whitespace():
    assert MarkdownBlock(content="  Body text.\n").preview() == "Body text."


def test_markdown_preview_at_limit_is_unchanged():
    assert MarkdownBlock(content="y" * 100).preview(100) == "y" * 100


@pytest.mark.parametrize("caption,expected", [
    ("", "Image"),
    ("Sunset", "Image: Sunset"),
    ("c" * 90, "Image: " + "c" * 77 + "..."),
])
def test_image_preview(caption, expected):
    assert ImageBlock(path="assets/p.png", caption=caption).preview(80) == expected


def test_table_preview_counts():
    table = TableBlock(headers=["a", "b", "c"], rows=[["1", "2", "3"], ["4", "5", "6"]])
    assert table.preview() == "Table: 3 columns, 2 rows"


def test_page_break_preview():
    assert PageBreakBlock().preview() == "Page Break"


# --- search_text ---

def test_image_search_text_joins_caption_and_alt():
    assert ImageBlock(path="p", caption="Red", alt_text="fox").search_text() == "Red fox"


def test_table_search_text_includes_headers_and_cells():
    text = TableBlock(headers=["Name", "Age"], rows=[["Ann", "31"], ["Bob", "42"]]).search_text()
    assert text == "Name Age Ann 31 Bob 42"


def test_page_break_has_no_search_text():
    assert PageBreakBlock().search_text() == ""


# --- block_from_dict ---

def test_block_from_dict_dispatches_on_type():
    block = block_from_dict({"type": "heading", "level": 2, "text": "Hi"})
    assert isinstance(block, HeadingBlock)
    assert block.level == 2


def test_block_from_dict_rejects_bad_level():
    """Heading levels outside 1-6 are an InvalidArgumentError."""
    with pytest.raises(InvalidArgumentError):
        block_from_dict({"type": "heading", "level": 7, "text": "Too deep"})


def test_block_from_dict_rejects_unknown_type():
    with pytest.raises(InvalidArgumentError):
        block_from_dict({"type": "video", "url": "x"})
