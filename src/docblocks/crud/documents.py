"""Document lifecycle: create, load/save manifest, list, delete"""

import logging
from datetime import datetime

from pydantic import ValidationError

from docblocks.core.models import Document, DocumentSummary
from docblocks.core.utils.slug import document_slug
from docblocks.crud.errors import DocStoreError, NotFoundError, StorageError
from docblocks.crud.store import ASSETS_DIR, BLOCKS_DIR, CHAPTERS_DIR, Store


logger = logging.getLogger(__name__)


def _unique_id(store: Store, title: str) -> str:
    """Slugify title and append -1, -2, ... until no folder of that name exists."""
    base = document_slug(title)
    doc_id, n = base, 1
    while store.document_dir(doc_id).exists():
        doc_id = f"{base}-{n}"
        n += 1
    return doc_id


def create_document(store: Store, title: str, has_chapters: bool = False, author: str = "") -> str:
    """Create the folder tree and an empty manifest. Returns the new document ID.

    The folder is removed again if anything fails after it was created.
    """
    doc_id = _unique_id(store, title)
    doc_dir = store.document_dir(doc_id)
    content_dir = CHAPTERS_DIR if has_chapters else BLOCKS_DIR
    store.make_dirs(doc_dir)
    try:
        store.make_dirs(doc_dir / ASSETS_DIR, doc_dir / content_dir)
        now = datetime.now()
        doc = Document(id=doc_id, title=title, author=author or "",
                       created_at=now, updated_at=now, has_chapters=has_chapters)
        save_document(store, doc)
    except DocStoreError:
        store.remove_tree(doc_dir, "document folder")
        raise
    logger.info("Created document %s (chapters=%s)", doc_id, has_chapters)
    return doc_id


def get_document(store: Store, doc_id: str) -> Document:
    """Read and parse the manifest. Raises NotFoundError if it does not exist."""
    path = store.manifest_path(doc_id)
    try:
        data = store.read_yaml(path, "manifest")
    except FileNotFoundError:
        raise NotFoundError(f"document not found: {doc_id}") from None
    try:
        doc = Document.model_validate(data)
    except ValidationError as e:
        raise StorageError(f"Failed to parse manifest {path}: {e}") from e
    doc.id = doc_id
    return doc


def save_document(store: Store, doc: Document) -> None:
    """Stamp updated_at and overwrite the manifest."""
    doc.updated_at = datetime.now()
    store.write_yaml(store.manifest_path(doc.id), doc.model_dump(mode="json"), "manifest")


def touch_document(store: Store, doc_id: str) -> None:
    """Refresh a document's updated_at without other changes."""
    save_document(store, get_document(store, doc_id))


def list_documents(store: Store) -> list[str]:
    """Return sorted IDs of subfolders that hold a manifest; other folders are not documents."""
    if not store.root.exists():
        return []
    try:
        entries = list(store.root.iterdir())
    except OSError as e:
        raise StorageError(f"Failed to read documents folder {store.root}: {e}") from e
    return sorted(p.name for p in entries if p.is_dir() and store.manifest_path(p.name).is_file())


def list_document_summaries(store: Store) -> list[DocumentSummary]:
    """Return metadata for every listed document, skipping manifests that fail to load."""
    summaries = []
    for doc_id in list_documents(store):
        try:
            doc = get_document(store, doc_id)
        except DocStoreError as e:
            logger.warning("Skipping unreadable document %s: %s", doc_id, e)
            continue
        summaries.append(DocumentSummary(
            id=doc_id,
            title=doc.title,
            author=doc.author,
            has_chapters=doc.has_chapters,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        ))
    return summaries


def delete_document(store: Store, doc_id: str) -> None:
    """Recursively remove the document folder. Irreversible."""
    doc_dir = store.document_dir(doc_id)
    if not doc_dir.is_dir():
        raise NotFoundError(f"document not found: {doc_id}")
    with store.guard.hold(doc_id):
        store.remove_tree(doc_dir, "document folder")
    logger.info("Deleted document %s", doc_id)
