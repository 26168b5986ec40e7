"""Block persistence: ID generation, per-block files, add/load/update/delete/move within a scope"""

import logging
import re
from typing import Iterable, Optional

from docblocks.core.models import (
    ID_PREFIXES, Block, BlockReference, BlockType, Document, MarkdownBlock, block_from_dict,
)
from docblocks.core.position import Position, PositionKind, insert_at_position
from docblocks.crud.chapters import write_chapter
from docblocks.crud.documents import get_document, save_document
from docblocks.crud.errors import (
    NotFoundError, StorageError, TypeMismatchError, UnsupportedOperationError,
)
from docblocks.crud.locator import Scope, iter_scopes, locate, scope_for
from docblocks.crud.store import Store


logger = logging.getLogger(__name__)

FILE_SUFFIXES: dict[BlockType, str] = {
    BlockType.heading:    "-heading.yaml",
    BlockType.markdown:   ".md",
    BlockType.image:      "-image.yaml",
    BlockType.table:      "-table.yaml",
    BlockType.page_break: "-pagebreak.yaml",
}


def next_block_id(refs: Iterable[BlockReference], block_type: BlockType, issued: int = 0) -> str:
    """<prefix>-NNN one past both issued and the highest number used by this type in refs."""
    prefix = ID_PREFIXES[block_type]
    pattern = re.compile(rf'^{prefix}-(\d+)$')
    highest = issued
    for ref in refs:
        if ref.type == block_type and (m := pattern.match(ref.id)):
            highest = max(highest, int(m.group(1)))
    return f"{prefix}-{highest + 1:03d}"


def _issue_id(scope: Scope, block_type: BlockType) -> str:
    """Next ID for block_type in scope, recorded as the scope's new high-water mark."""
    prefix = ID_PREFIXES[block_type]
    block_id = next_block_id(scope.blocks, block_type, scope.counters.get(prefix, 0))
    scope.counters[prefix] = int(block_id.rsplit("-", 1)[1])
    return block_id


def generate_id(store: Store, doc_id: str, chapter_id: str, block_type: BlockType) -> str:
    """Next free ID for block_type in the scope named by chapter_id ('' = document level).

    IDs of deleted blocks are never handed out again.
    """
    doc = get_document(store, doc_id)
    scope = scope_for(store, doc, chapter_id)
    prefix = ID_PREFIXES[BlockType(block_type)]
    return next_block_id(scope.blocks, BlockType(block_type), scope.counters.get(prefix, 0))


def _save_scope(store: Store, doc: Document, scope: Scope) -> None:
    """Persist the scope's list into its owner, then refresh the manifest."""
    if scope.chapter is not None:
        scope.chapter.blocks = scope.blocks
        write_chapter(store, doc, scope.ref, scope.chapter)
    else:
        doc.blocks = scope.blocks
    save_document(store, doc)


def _write_block_file(store: Store, doc_id: str, relative: str, block: Block) -> None:
    path = store.resolve(doc_id, relative)
    if isinstance(block, MarkdownBlock):
        store.write_text(path, block.content, "markdown block")
    else:
        store.write_yaml(path, block.model_dump(mode="json"), f"{block.type} block")


def load_block(store: Store, doc_id: str, ref: BlockReference) -> Block:
    """Read the file behind ref and rebuild the block. Missing or malformed files raise StorageError."""
    path = store.resolve(doc_id, ref.file)
    what = f"{ref.type.value} block {ref.id}"
    try:
        if ref.type == BlockType.markdown:
            return MarkdownBlock(id=ref.id, content=store.read_text(path, what))
        data = store.read_yaml(path, what)
    except FileNotFoundError:
        raise StorageError(f"Failed to read {what}: {path} is missing") from None
    data["id"] = ref.id
    data.setdefault("type", ref.type.value)
    if data["type"] != ref.type.value:
        raise StorageError(f"Failed to parse {what}: file holds a {data['type']} block")
    try:
        return block_from_dict(data)
    except ValueError as e:
        raise StorageError(f"Failed to parse {what}: {e}") from e


def add_block(
    store: Store,
    doc_id: str,
    block: Block,
    position: Position = Position.end(),
    chapter_id: str = "",
    ) -> str:
    """Assign an ID, write the block file, and insert its reference at position. Returns the ID."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        scope = scope_for(store, doc, chapter_id)
        block_type = BlockType(block.type)
        block.id = _issue_id(scope, block_type)

        store.make_dirs(store.resolve(doc_id, scope.blocks_dir))
        relative = f"{scope.blocks_dir}/{block.id}{FILE_SUFFIXES[block_type]}"
        _write_block_file(store, doc_id, relative, block)

        ref = BlockReference(id=block.id, type=block_type, file=relative)
        scope.blocks = insert_at_position(scope.blocks, ref, position)
        _save_scope(store, doc, scope)
    logger.info("Added %s to %s/%s at %s", block.id, doc_id, chapter_id or "-", position)
    return block.id


def add_blocks(
    store: Store,
    doc_id: str,
    blocks: list[Block],
    position: Position = Position.end(),
    chapter_id: str = "",
    ) -> list[str]:
    """Add blocks in order: the first at position, each next one right after its predecessor."""
    ids: list[str] = []
    with store.guard.hold(doc_id):
        for block in blocks:
            pos = Position.after(ids[-1]) if ids else position
            ids.append(add_block(store, doc_id, block, pos, chapter_id))
    return ids


def get_block(store: Store, doc_id: str, block_id: str, chapter_id: Optional[str] = None) -> Block:
    """Locate and load one block."""
    doc = get_document(store, doc_id)
    return load_block(store, doc_id, locate(store, doc, block_id, chapter_id).ref)


def get_blocks(
    store: Store,
    doc_id: str,
    block_ids: list[str],
    chapter_id: Optional[str] = None,
    ) -> tuple[list[Block], list[str]]:
    """Load several blocks in the requested order. Returns (found, missing_ids).

    Each ID is resolved like get_block; an ID matching more than one scope
    raises AmbiguousBlockError unless chapter_id narrows the lookup.
    """
    doc = get_document(store, doc_id)
    found, missing = [], []
    for block_id in block_ids:
        try:
            loc = locate(store, doc, block_id, chapter_id)
        except NotFoundError:
            missing.append(block_id)
            continue
        found.append(load_block(store, doc_id, loc.ref))
    return found, missing


def update_block(
    store: Store,
    doc_id: str,
    block_id: str,
    new_block: Block,
    chapter_id: Optional[str] = None,
    ) -> None:
    """Overwrite a block's content in place. Its ID, type and file path never change."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        ref = locate(store, doc, block_id, chapter_id).ref
        if BlockType(new_block.type) != ref.type:
            raise TypeMismatchError(
                f"cannot change block {block_id} from {ref.type.value} to {new_block.type}"
            )
        new_block.id = block_id
        _write_block_file(store, doc_id, ref.file, new_block)
        save_document(store, doc)
    logger.info("Updated %s in %s", block_id, doc_id)


def delete_block(store: Store, doc_id: str, block_id: str, chapter_id: Optional[str] = None) -> None:
    """Drop a block's reference and delete its file; an already-missing file is fine."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        loc = locate(store, doc, block_id, chapter_id)
        ref = loc.ref
        scope = loc.scope
        scope.blocks = scope.blocks[:loc.index] + scope.blocks[loc.index + 1:]
        store.remove_file(store.resolve(doc_id, ref.file), "block file")
        _save_scope(store, doc, scope)
    logger.info("Deleted %s from %s", block_id, doc_id)


def _check_same_scope(store: Store, doc: Document, scope: Scope, position: Position) -> None:
    """Reject an after:<id> anchor that lives in a different scope than the moving block."""
    if position.kind is not PositionKind.after or scope.index_of(position.anchor) >= 0:
        return
    for other in iter_scopes(store, doc, skip_unreadable=True):
        if other.chapter_id != scope.chapter_id and other.index_of(position.anchor) >= 0:
            raise UnsupportedOperationError(
                f"cannot move across scopes: anchor {position.anchor} is in "
                f"{other.chapter_id or 'the document level'}"
            )


def move_block(
    store: Store,
    doc_id: str,
    block_id: str,
    position: Position,
    chapter_id: Optional[str] = None,
    target_chapter_id: Optional[str] = None,
    ) -> None:
    """Reorder a block within its own scope. Moves between scopes are not supported."""
    with store.guard.hold(doc_id):
        doc = get_document(store, doc_id)
        loc = locate(store, doc, block_id, chapter_id)
        scope = loc.scope
        if target_chapter_id is not None and target_chapter_id != scope.chapter_id:
            raise UnsupportedOperationError(
                f"cannot move {block_id} from {scope.chapter_id or 'the document level'} "
                f"to {target_chapter_id or 'the document level'}"
            )
        ref = loc.ref
        remaining = scope.blocks[:loc.index] + scope.blocks[loc.index + 1:]
        _check_same_scope(store, doc, Scope(scope.chapter_id, remaining, scope.chapter, scope.ref), position)
        scope.blocks = insert_at_position(remaining, ref, position)
        _save_scope(store, doc, scope)
    logger.info("Moved %s in %s to %s", block_id, doc_id, position)
