"""Root test configuration: shared store fixture and session-level cleanup of runtime artifacts"""

import shutil
from pathlib import Path

import pytest

from docblocks.crud.chapters import add_chapter
from docblocks.crud.documents import create_document
from docblocks.crud.store import Store


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_DIRS = ["docgen_data", "dist"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove document roots and export folders created during the test session."""
    yield
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


@pytest.fixture(name="store")
def store_fixture(tmp_path):
    """A Store rooted in a fresh temporary documents folder."""
    s = Store(tmp_path / "documents")
    s.ensure_root()
    return s


@pytest.fixture(name="flat_doc")
def flat_doc_fixture(store):
    """ID of an empty document without chapters."""
    return create_document(store, "Test Document", has_chapters=False, author="A. Author")


@pytest.fixture(name="book")
def book_fixture(store):
    """ID of an empty chaptered document."""
    return create_document(store, "Test Book", has_chapters=True)


@pytest.fixture(name="book_ch")
def book_ch_fixture(store, book):
    """(doc_id, chapter_id) for a chaptered document holding one chapter."""
    return book, add_chapter(store, book, "Ch One")
