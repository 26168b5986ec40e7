"""Markdown assembly: front matter, document-level blocks, then each chapter"""

import os
from pathlib import Path
from typing import Optional

import yaml

from docblocks.core.models import Block, BlockReference, Document, ImageBlock
from docblocks.crud.blocks import load_block
from docblocks.crud.chapters import chapter_ref, load_chapter
from docblocks.crud.documents import get_document
from docblocks.crud.store import Store


def build_front_matter(doc: Document) -> str:
    """YAML header with title and, when set, author."""
    fm = {"title": doc.title}
    if doc.author:
        fm["author"] = doc.author
    header = yaml.safe_dump(fm, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{header}---\n\n"


def image_link(store: Store, doc_id: str, path: str, base_dir: Optional[Path] = None) -> str:
    """Point a document-relative image path at the stored file.

    Relative to base_dir when given, absolute otherwise. URLs and absolute
    paths are returned unchanged.
    """
    if not path or "://" in path or Path(path).is_absolute():
        return path
    target = store.resolve(doc_id, path).absolute()
    if base_dir is None:
        return target.as_posix()
    return Path(os.path.relpath(target, base_dir.absolute())).as_posix()


def render_block(store: Store, doc_id: str, block: Block, base_dir: Optional[Path] = None) -> str:
    if isinstance(block, ImageBlock):
        block = block.model_copy(update={"path": image_link(store, doc_id, block.path, base_dir)})
    return block.to_markdown()


def render_blocks(
    store: Store,
    doc_id: str,
    refs: list[BlockReference],
    base_dir: Optional[Path] = None,
    ) -> str:
    """Concatenate each block's markdown, one blank line after every block."""
    return "".join(
        f"{render_block(store, doc_id, load_block(store, doc_id, ref), base_dir)}\n\n" for ref in refs
    )


def build_chapter_markdown(store: Store, doc_id: str, chapter_id: str, base_dir: Optional[Path] = None) -> str:
    """A single chapter: '# <title>' followed by its blocks."""
    doc = get_document(store, doc_id)
    chapter = load_chapter(store, doc, chapter_ref(doc, chapter_id))
    return f"# {chapter.title}\n\n" + render_blocks(store, doc_id, chapter.blocks, base_dir)


def build_markdown(store: Store, doc_id: str, base_dir: Optional[Path] = None) -> str:
    """The full document as one markdown string.

    Image links are rewritten relative to base_dir, the folder the markdown
    will be written to; without it they become absolute paths.
    Any block that fails to load aborts the build; nothing is skipped silently.
    """
    doc = get_document(store, doc_id)
    parts = [build_front_matter(doc), render_blocks(store, doc_id, doc.blocks, base_dir)]
    for ref in doc.chapters:
        chapter = load_chapter(store, doc, ref)
        parts.append(f"# {chapter.title}\n\n")
        parts.append(render_blocks(store, doc_id, chapter.blocks, base_dir))
    return "".join(parts)


def write_markdown(store: Store, doc_id: str, output_dir: Path) -> Path:
    """Write <doc-id>.md into output_dir and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    out = output_dir / f"{doc_id}.md"
    store.write_text(out, build_markdown(store, doc_id, output_dir), "markdown export")
    return out
