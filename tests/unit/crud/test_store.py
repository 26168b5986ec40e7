"""Unit tests for crud/store.py"""

import threading

import pytest

from docblocks.config import Settings
from docblocks.core.models import MarkdownBlock
from docblocks.crud.blocks import add_block
from docblocks.crud.documents import create_document, get_document
from docblocks.crud.errors import InvalidArgumentError, StorageError
from docblocks.crud.store import NullGuard, Store, ThreadLockGuard


# --- layout ---

@pytest.mark.parametrize("doc_id", ["", ".", "..", "a/b", "a\\b"])
def test_document_dir_rejects_unsafe_ids(store, doc_id):
    with pytest.raises(InvalidArgumentError):
        store.document_dir(doc_id)


def test_from_settings_creates_root(tmp_path):
    settings = Settings(root_folder=str(tmp_path / "data"), locking="thread")
    store = Store.from_settings(settings)
    assert store.root == tmp_path / "data" / "documents"
    assert store.root.is_dir()
    assert isinstance(store.guard, ThreadLockGuard)


def test_default_guard_is_null(tmp_path):
    assert isinstance(Store(tmp_path).guard, NullGuard)


# --- file I/O ---

def test_read_yaml_rejects_non_mapping(store, tmp_path):
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n")
    with pytest.raises(StorageError, match="expected a mapping"):
        store.read_yaml(p, "manifest")


def test_read_yaml_wraps_parse_errors(store, tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("key: [unclosed\n")
    with pytest.raises(StorageError):
        store.read_yaml(p, "manifest")


def test_read_yaml_missing_propagates(store, tmp_path):
    with pytest.raises(FileNotFoundError):
        store.read_yaml(tmp_path / "nope.yaml", "manifest")


def test_write_yaml_keeps_key_order(store, tmp_path):
    p = tmp_path / "out.yaml"
    store.write_yaml(p, {"title": "T", "author": "A"}, "manifest")
    assert p.read_text().splitlines() == ["title: T", "author: A"]


def test_remove_is_idempotent(store, tmp_path):
    f = tmp_path / "f.txt"
    f.write_text("x")
    store.remove_file(f, "file")
    store.remove_file(f, "file")
    store.remove_tree(tmp_path / "missing", "folder")
    assert not f.exists()


# --- guards ---

def test_thread_guard_is_reentrant():
    guard = ThreadLockGuard()
    with guard.hold("doc"):
        with guard.hold("doc"):
            pass


def test_thread_guard_serializes_concurrent_adds(tmp_path):
    """Concurrent writers on one document lose no blocks under the thread guard."""
    store = Store(tmp_path, ThreadLockGuard())
    doc_id = create_document(store, "Busy")

    def worker(n: int) -> None:
        for i in range(5):
            add_block(store, doc_id, MarkdownBlock(content=f"w{n}-{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = [r.id for r in get_document(store, doc_id).blocks]
    assert len(ids) == 20
    assert len(set(ids)) == 20


def test_read_text_wraps_decode_errors(store, tmp_path):
    p = tmp_path / "bad.md"
    p.write_bytes(b"\xff\xfe bad")
    with pytest.raises(StorageError, match="Failed to read"):
        store.read_text(p, "markdown block")


def test_text_round_trip_keeps_newlines(store, tmp_path):
    p = tmp_path / "crlf.md"
    store.write_text(p, "a\r\nb\rc", "markdown block")
    assert store.read_text(p, "markdown block") == "a\r\nb\rc"
