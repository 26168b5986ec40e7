"""Linear, case-insensitive text search across a document's blocks"""

import logging
from typing import Optional

from docblocks.core.models import BlockReference, SearchResult
from docblocks.crud.blocks import load_block
from docblocks.crud.chapters import chapter_ref
from docblocks.crud.documents import get_document
from docblocks.crud.errors import DocStoreError
from docblocks.crud.locator import Scope, chapter_scope, iter_scopes
from docblocks.crud.store import Store


logger = logging.getLogger(__name__)


def extract_snippet(content: str, query: str, context: int = 50) -> str:
    """Excerpt around the first case-insensitive match of query.

    Keeps up to context chars on each side; '...' marks a side that was clipped.
    """
    index = content.lower().find(query.lower())
    if index < 0:
        return content[:context * 3] + ("..." if len(content) > context * 3 else "")
    start = max(0, index - context)
    end = min(len(content), index + len(query) + context)
    snippet = content[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet += "..."
    return snippet


def search_blocks(
    store: Store,
    doc_id: str,
    refs: list[BlockReference],
    query: str,
    chapter_id: str = "",
    context: int = 50,
    ) -> list[SearchResult]:
    """Match query against each block's searchable text; position is the index within refs."""
    needle = query.lower()
    results = []
    for i, ref in enumerate(refs):
        try:
            block = load_block(store, doc_id, ref)
        except DocStoreError as e:
            logger.warning("Skipping %s while searching %s: %s", ref.id, doc_id, e)
            continue
        text = block.search_text()
        if needle in text.lower():
            results.append(SearchResult(
                block_id=ref.id,
                block_type=ref.type.value,
                chapter_id=chapter_id,
                snippet=extract_snippet(text, query, context),
                position=i,
            ))
    return results


def search(
    store: Store,
    doc_id: str,
    query: str,
    chapter_id: Optional[str] = None,
    context: int = 50,
    ) -> list[SearchResult]:
    """Search document-level blocks then every chapter, or only chapter_id when given.

    Page breaks carry no text and never match; an empty query matches nothing.
    """
    doc = get_document(store, doc_id)
    if not query:
        return []
    if chapter_id:
        scopes: list[Scope] = [chapter_scope(store, doc, chapter_ref(doc, chapter_id))]
    else:
        scopes = list(iter_scopes(store, doc, skip_unreadable=True))

    results = []
    for scope in scopes:
        results.extend(search_blocks(store, doc_id, scope.blocks, query, scope.chapter_id, context))
    return results
