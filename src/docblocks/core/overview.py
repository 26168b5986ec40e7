"""Document overview: a tree of block previews across document-level blocks and chapters"""

import logging

from docblocks.core.models import (
    Block, BlockOverview, BlockReference, ChapterOverview, DocumentOverview, ImageBlock,
)
from docblocks.crud.blocks import load_block
from docblocks.crud.documents import get_document
from docblocks.crud.errors import DocStoreError
from docblocks.crud.locator import iter_scopes
from docblocks.crud.store import Store


logger = logging.getLogger(__name__)


def block_preview(block: Block, preview_length: int = 100, caption_length: int = 80) -> str:
    """Short one-line summary of a block."""
    if isinstance(block, ImageBlock):
        return block.preview(caption_length)
    return block.preview(preview_length)


def block_overviews(
    store: Store,
    doc_id: str,
    refs: list[BlockReference],
    preview_length: int = 100,
    caption_length: int = 80,
    ) -> list[BlockOverview]:
    """Preview each referenced block; blocks whose files fail to load are logged and left out."""
    out = []
    for ref in refs:
        try:
            block = load_block(store, doc_id, ref)
        except DocStoreError as e:
            logger.warning("Skipping %s in overview of %s: %s", ref.id, doc_id, e)
            continue
        out.append(BlockOverview(
            id=ref.id,
            type=ref.type.value,
            preview=block_preview(block, preview_length, caption_length),
        ))
    return out


def build_overview(
    store: Store,
    doc_id: str,
    preview_length: int = 100,
    caption_length: int = 80,
    ) -> DocumentOverview:
    """Walk the document and return its overview tree.

    Document-level blocks and chapters are both included whenever present,
    independent of has_chapters.
    """
    doc = get_document(store, doc_id)
    overview = DocumentOverview(
        id=doc_id,
        title=doc.title,
        author=doc.author,
        has_chapters=doc.has_chapters,
    )
    for scope in iter_scopes(store, doc, skip_unreadable=True):
        previews = block_overviews(store, doc_id, scope.blocks, preview_length, caption_length)
        if scope.chapter is None:
            overview.blocks = previews
        else:
            overview.chapters.append(ChapterOverview(
                id=scope.chapter_id,
                title=scope.chapter.title,
                blocks=previews,
            ))
    return overview
