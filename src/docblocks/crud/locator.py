"""Find which scope (document level or a chapter) holds a block, and where"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from docblocks.core.models import BlockReference, Chapter, ChapterReference, Document
from docblocks.crud.chapters import chapter_ref, load_chapter
from docblocks.crud.documents import get_document
from docblocks.crud.errors import AmbiguousBlockError, DocStoreError, NotFoundError
from docblocks.crud.store import BLOCKS_DIR, Store


logger = logging.getLogger(__name__)


@dataclass
class Scope:
    """One ordered block list: the document's own, or a single chapter's."""
    chapter_id: str                              # "" for document level
    blocks: list[BlockReference]
    chapter: Optional[Chapter] = None
    ref: Optional[ChapterReference] = None
    counters: dict[str, int] = field(default_factory=dict)   # owner's id_counters, shared not copied

    @property
    def blocks_dir(self) -> str:
        """Folder for this scope's block files, relative to the document folder."""
        return f"{self.ref.folder}/{BLOCKS_DIR}" if self.ref else BLOCKS_DIR

    def index_of(self, block_id: str) -> int:
        return next((i for i, r in enumerate(self.blocks) if r.id == block_id), -1)


@dataclass
class BlockLocation:
    scope: Scope
    index: int

    @property
    def chapter_id(self) -> str:
        return self.scope.chapter_id

    @property
    def ref(self) -> BlockReference:
        return self.scope.blocks[self.index]


def document_scope(doc: Document) -> Scope:
    return Scope(chapter_id="", blocks=doc.blocks, counters=doc.id_counters)


def chapter_scope(store: Store, doc: Document, ref: ChapterReference) -> Scope:
    chapter = load_chapter(store, doc, ref)
    return Scope(chapter_id=ref.id, blocks=chapter.blocks, chapter=chapter, ref=ref,
                 counters=chapter.id_counters)


def scope_for(store: Store, doc: Document, chapter_id: str = "") -> Scope:
    """The scope named by chapter_id ('' means document level)."""
    if not chapter_id:
        return document_scope(doc)
    return chapter_scope(store, doc, chapter_ref(doc, chapter_id))


def iter_scopes(store: Store, doc: Document, skip_unreadable: bool = False) -> Iterator[Scope]:
    """Yield the document-level scope, then each chapter in manifest order.

    Chapters are visited whenever present, regardless of has_chapters.
    With skip_unreadable, chapters whose file fails to load are logged and skipped.
    """
    yield document_scope(doc)
    for ref in doc.chapters:
        try:
            yield chapter_scope(store, doc, ref)
        except DocStoreError as e:
            if not skip_unreadable:
                raise
            logger.warning("Skipping unreadable chapter %s in %s: %s", ref.id, doc.id, e)


def locate(store: Store, doc: Document, block_id: str, chapter_id: Optional[str] = None) -> BlockLocation:
    """Locate block_id in an already-loaded document.

    chapter_id=None scans every scope and requires a unique match;
    '' or a chapter ID restricts the lookup to that one scope.
    """
    if chapter_id is not None:
        scope = scope_for(store, doc, chapter_id)
        index = scope.index_of(block_id)
        if index < 0:
            where = f"chapter {chapter_id}" if chapter_id else "document level"
            raise NotFoundError(f"block not found: {block_id} ({where} of {doc.id})")
        return BlockLocation(scope, index)

    matches = []
    for scope in iter_scopes(store, doc):
        index = scope.index_of(block_id)
        if index >= 0:
            matches.append(BlockLocation(scope, index))
    if not matches:
        raise NotFoundError(f"block not found: {block_id}")
    if len(matches) > 1:
        raise AmbiguousBlockError(block_id, [m.chapter_id for m in matches])
    return matches[0]


def find_block(store: Store, doc_id: str, block_id: str, chapter_id: Optional[str] = None) -> tuple[str, int]:
    """Return (chapter_id or '', index) of block_id within its owning list."""
    loc = locate(store, get_document(store, doc_id), block_id, chapter_id)
    return loc.chapter_id, loc.index
