"""Chapter lifecycle: create, load/save, rename, delete, reorder"""

import logging
import re
from pathlib import Path

from pydantic import ValidationError

from docblocks.core.models import Chapter, ChapterReference, Document
from docblocks.core.position import Position, insert_at_position
from docblocks.core.utils.slug import chapter_slug
from docblocks.crud.documents import get_document, save_document
from docblocks.crud.errors import DocStoreError, NotFoundError, StorageError, UnsupportedOperationError
from docblocks.crud.store import BLOCKS_DIR, CHAPTER_FILE, CHAPTERS_DIR, Store


logger = logging.getLogger(__name__)

CHAPTER_PREFIX = "ch"
_CHAPTER_ID_RE = re.compile(rf'^{CHAPTER_PREFIX}-(\d+)$')


def _chapter_number(chapter_id: str) -> int:
    m = _CHAPTER_ID_RE.match(chapter_id)
    return int(m.group(1)) if m else 0


def next_chapter_id(doc: Document) -> str:
    """ch-NNN one past the highest number ever issued in doc, so deleted IDs are never reused.

    The manifest's id_counters keeps the high-water mark; existing references are
    scanned too so manifests written without counters still advance.
    """
    highest = doc.id_counters.get(CHAPTER_PREFIX, 0)
    for ref in doc.chapters:
        highest = max(highest, _chapter_number(ref.id))
    return f"{CHAPTER_PREFIX}-{highest + 1:03d}"


def chapter_ref(doc: Document, chapter_id: str) -> ChapterReference:
    """Return the document's reference to chapter_id, or raise NotFoundError."""
    if not doc.has_chapters:
        raise NotFoundError(f"document {doc.id} does not have chapters")
    ref = doc.chapter_ref(chapter_id)
    if ref is None:
        raise NotFoundError(f"chapter {chapter_id} not found in document {doc.id}")
    return ref


def chapter_dir(store: Store, doc: Document, ref: ChapterReference) -> Path:
    return store.resolve(doc.id, ref.folder)


def load_chapter(store: Store, doc: Document, ref: ChapterReference) -> Chapter:
    """Read a chapter file through its reference."""
    path = chapter_dir(store, doc, ref) / CHAPTER_FILE
    try:
        data = store.read_yaml(path, "chapter file")
    except FileNotFoundError:
        raise StorageError(f"Failed to read chapter file {path}: file is missing") from None
    try:
        return Chapter.model_validate(data)
    except ValidationError as e:
        raise StorageError(f"Failed to parse chapter file {path}: {e}") from e


def write_chapter(store: Store, doc: Document, ref: ChapterReference, chapter: Chapter) -> None:
    path = chapter_dir(store, doc, ref) / CHAPTER_FILE
    store.write_yaml(path, chapter.model_dump(mode="json"), "chapter file")


def get_chapter(store: Store, doc_id: str, chapter_id: str) -> Chapter:
    """Load a chapter. Raises NotFoundError if the document is not chaptered or lacks the chapter."""
    doc = get_document(store, doc_id)
    return load_chapter(store, doc, chapter_ref(doc, chapter_id))


def save_chapter(store: Store, doc_id: str, chapter_id: str, chapter: Chapter) -> None:
    """Overwrite a chapter's file."""
    doc = get_document(store, doc_id)
    write_chapter(store, doc, chapter_ref(doc, chapter_id), chapter)


def add_chapter(store: Store, doc_id: str, title: str, position: Position = Position.end()) -> str:
    """Create a chapter folder + file and insert its reference at position. Returns the chapter ID."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        if not doc.has_chapters:
            raise UnsupportedOperationError(f"document {doc_id} does not support chapters")

        chapter_id = next_chapter_id(doc)
        doc.id_counters[CHAPTER_PREFIX] = _chapter_number(chapter_id)
        slug = chapter_slug(title)
        name = f"{chapter_id}-{slug}" if slug else chapter_id
        ref = ChapterReference(id=chapter_id, title=title, folder=f"{CHAPTERS_DIR}/{name}")
        folder = chapter_dir(store, doc, ref)

        store.make_dirs(folder / BLOCKS_DIR)
        try:
            write_chapter(store, doc, ref, Chapter(id=chapter_id, title=title))
            doc.chapters = insert_at_position(doc.chapters, ref, position)
            save_document(store, doc)
        except DocStoreError:
            store.remove_tree(folder, "chapter folder")
            raise
    logger.info("Added chapter %s to %s at %s", chapter_id, doc_id, position)
    return chapter_id


def update_chapter_title(store: Store, doc_id: str, chapter_id: str, new_title: str) -> None:
    """Rename a chapter in both the manifest reference and its own file. The folder keeps its name."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        ref = chapter_ref(doc, chapter_id)
        chapter = load_chapter(store, doc, ref)
        ref.title = new_title
        chapter.title = new_title
        write_chapter(store, doc, ref, chapter)
        save_document(store, doc)
    logger.info("Renamed chapter %s in %s", chapter_id, doc_id)


def delete_chapter(store: Store, doc_id: str, chapter_id: str) -> None:
    """Remove the chapter reference and its folder, including every block in it."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        ref = chapter_ref(doc, chapter_id)
        doc.chapters = [c for c in doc.chapters if c.id != chapter_id]
        store.remove_tree(chapter_dir(store, doc, ref), "chapter folder")
        save_document(store, doc)
    logger.info("Deleted chapter %s from %s", chapter_id, doc_id)


def move_chapter(store: Store, doc_id: str, chapter_id: str, position: Position) -> None:
    """Reinsert a chapter reference at position; blocks and folders are untouched."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        ref = chapter_ref(doc, chapter_id)
        remaining = [c for c in doc.chapters if c.id != chapter_id]
        doc.chapters = insert_at_position(remaining, ref, position)
        save_document(store, doc)
    logger.info("Moved chapter %s in %s to %s", chapter_id, doc_id, position)
