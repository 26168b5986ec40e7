"""Unit tests for core/export.py"""

import re

import pytest

from docblocks.core.export import (
    build_chapter_markdown, build_front_matter, build_markdown, image_link, write_markdown,
)
from docblocks.core.models import Document, HeadingBlock, ImageBlock, MarkdownBlock, PageBreakBlock
from docblocks.crud.assets import add_image
from docblocks.crud.blocks import add_block
from docblocks.crud.chapters import add_chapter
from docblocks.crud.documents import get_document
from docblocks.crud.errors import StorageError


def test_front_matter_omits_empty_author():
    assert build_front_matter(Document(title="Plain")) == "---\ntitle: Plain\n---\n\n"


def test_flat_markdown(store, flat_doc):
    add_block(store, flat_doc, HeadingBlock(level=1, text="Intro"))
    add_block(store, flat_doc, MarkdownBlock(content="Body text."))
    add_block(store, flat_doc, PageBreakBlock())
    add_block(store, flat_doc, ImageBlock(path="assets/a-001.png", caption="Fig"))
    image = store.resolve(flat_doc, "assets/a-001.png").absolute().as_posix()
    assert build_markdown(store, flat_doc) == (
        "---\ntitle: Test Document\nauthor: A. Author\n---\n\n"
        "# Intro\n\n"
        "Body text.\n\n"
        "\\newpage\n\n"
        f"![Fig]({image})\n\n*Fig*\n\n"
    )


def test_chaptered_markdown(store, book_ch):
    """Document-level blocks come first, then each chapter under its title."""
    book, ch1 = book_ch
    ch2 = add_chapter(store, book, "Ch Two")
    add_block(store, book, MarkdownBlock(content="Preface"))
    add_block(store, book, MarkdownBlock(content="First"), chapter_id=ch1)
    add_block(store, book, HeadingBlock(level=2, text="Second"), chapter_id=ch2)
    assert build_markdown(store, book) == (
        "---\ntitle: Test Book\n---\n\n"
        "Preface\n\n"
        "# Ch One\n\nFirst\n\n"
        "# Ch Two\n\n## Second\n\n"
    )
    assert build_chapter_markdown(store, book, ch2) == "# Ch Two\n\n## Second\n\n"


def test_build_fails_on_missing_block_file(store, flat_doc):
    add_block(store, flat_doc, MarkdownBlock(content="gone"))
    store.resolve(flat_doc, get_document(store, flat_doc).blocks[0].file).unlink()
    with pytest.raises(StorageError):
        build_markdown(store, flat_doc)


def test_write_markdown(store, flat_doc, tmp_path):
    add_block(store, flat_doc, MarkdownBlock(content="Body"))
    out = write_markdown(store, flat_doc, tmp_path / "dist")
    assert out == tmp_path / "dist" / "test-document.md"
    assert out.read_text() == build_markdown(store, flat_doc, tmp_path / "dist")


# --- image links ---

def test_exported_image_links_resolve(store, book_ch, tmp_path):
    """Image links in the written file point at the copied assets from the output folder."""
    book, ch = book_ch
    source = tmp_path / "pic.png"
    source.write_bytes(b"png")
    add_image(store, book, source, caption="Top")
    add_image(store, book, source, caption="Inner", chapter_id=ch)

    out = write_markdown(store, book, tmp_path / "dist")
    links = re.findall(r"!\[[^\]]*\]\(([^)]+)\)", out.read_text())
    assert len(links) == 2
    for link in links:
        assert not link.startswith("/")
        assert (out.parent / link).is_file()


@pytest.mark.parametrize("path", ["https://example.com/a.png", "/abs/a.png", ""])
def test_image_link_leaves_urls_and_absolute_paths(store, flat_doc, path):
    assert image_link(store, flat_doc, path) == path


def test_image_link_relative_to_base_dir(store, flat_doc, tmp_path):
    link = image_link(store, flat_doc, "assets/x-001.png", tmp_path)
    assert link == store.resolve(flat_doc, "assets/x-001.png").relative_to(tmp_path).as_posix()
