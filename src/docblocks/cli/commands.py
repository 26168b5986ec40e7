"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Callable, Optional

import typer
from pydantic import BaseModel

from docblocks.config import Settings, load_config
from docblocks.core.export import write_markdown
from docblocks.core.models import block_from_dict
from docblocks.core.overview import build_overview
from docblocks.core.position import Position
from docblocks.core.search import search
from docblocks.crud.assets import add_image
from docblocks.crud.blocks import (
    add_block, add_blocks, delete_block, get_block, get_blocks, move_block, update_block,
)
from docblocks.crud.chapters import add_chapter, delete_chapter, move_chapter, update_chapter_title
from docblocks.crud.documents import create_document, delete_document, list_document_summaries
from docblocks.crud.errors import DocStoreError
from docblocks.crud.locator import find_block
from docblocks.crud.store import Store


ChapterOpt = Annotated[str, typer.Option("--chapter", "-c", help="Chapter ID; omit for document level")]
PositionOpt = Annotated[str, typer.Option("--position", "-p", help="start, end, or after:<id>")]
ScopeOpt = Annotated[Optional[str], typer.Option("--chapter", "-c", help="Chapter ID to disambiguate the block")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(**overrides) -> Settings:
    """Load config; keyword overrides are the command's own options, None meaning unset."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _store(settings: Settings = None) -> Store:
    """Build the Store from settings and configure logging once."""
    settings = settings or _settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return Store.from_settings(settings)
    except DocStoreError as e:
        _fail("Cannot open document store", e)


def _call(fn: Callable, *args, **kwargs) -> Any:
    """Run a store operation, turning store errors into a clean exit 1."""
    try:
        return fn(*args, **kwargs)
    except DocStoreError as e:
        _fail(str(e))


def _echo_json(data: Any) -> None:
    if isinstance(data, BaseModel):
        typer.echo(data.model_dump_json(indent=2))
    elif isinstance(data, list) and data and isinstance(data[0], BaseModel):
        typer.echo(json.dumps([d.model_dump(mode="json") for d in data], indent=2))
    else:
        typer.echo(json.dumps(data, indent=2, default=str))


# --- documents ---

def create_cmd(
    title: Annotated[str, typer.Argument(help="Document title")],
    chapters: Annotated[bool, typer.Option("--chapters", help="Organize blocks into chapters")] = False,
    author: Annotated[str, typer.Option("--author", help="Author name")] = "",
    ):
    """Create a new document and print its ID."""
    store = _store()
    typer.echo(_call(create_document, store, title, chapters, author))


def list_cmd():
    """List documents with their metadata."""
    store = _store()
    docs = _call(list_document_summaries, store)
    if not docs:
        typer.echo("No documents found.")
        raise typer.Exit(0)
    _echo_json(docs)


def delete_cmd(doc_id: Annotated[str, typer.Argument(help="Document ID")]):
    """Delete a document and every file in it."""
    store = _store()
    _call(delete_document, store, doc_id)
    typer.echo(f"Deleted {doc_id}")


def overview_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    preview_length: Annotated[Optional[int], typer.Option("--preview-length", help="Max preview chars")] = None,
    ):
    """Print the document tree with block previews."""
    settings = _settings(preview_length=preview_length)
    store = _store(settings)
    _echo_json(_call(build_overview, store, doc_id,
                     settings.preview_length, settings.caption_preview_length))


def search_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    query: Annotated[str, typer.Argument(help="Case-insensitive text to look for")],
    chapter: Annotated[Optional[str], typer.Option("--chapter", "-c", help="Only search this chapter")] = None,
    context: Annotated[Optional[int], typer.Option("--context", help="Snippet chars on each side of a match")] = None,
    ):
    """Search block text and print matches with snippets."""
    settings = _settings(snippet_context=context)
    store = _store(settings)
    results = _call(search, store, doc_id, query, chapter, settings.snippet_context)
    _echo_json([r.model_dump(mode="json") for r in results])


def export_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    out: Annotated[str, typer.Option("--out-dir", help="Output directory")] = "dist",
    ):
    """Assemble the document into a single markdown file."""
    store = _store()
    path = _call(write_markdown, store, doc_id, Path(out))
    typer.echo(f"{doc_id} -> {path}")


# --- blocks ---

def _add(store: Store, doc_id: str, data: dict, position: str, chapter: str) -> None:
    block = _call(block_from_dict, data)
    typer.echo(_call(add_block, store, doc_id, block, Position.parse(position), chapter))


def add_heading_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    text: Annotated[str, typer.Argument(help="Heading text")],
    level: Annotated[int, typer.Option("--level", "-l", help="Heading level 1-6")] = 1,
    chapter: ChapterOpt = "",
    position: PositionOpt = "end",
    ):
    """Add a heading block and print its ID."""
    _add(_store(), doc_id, {"type": "heading", "level": level, "text": text}, position, chapter)


def add_markdown_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    content: Annotated[str, typer.Argument(help="Markdown text, or @file to read it from a file")],
    chapter: ChapterOpt = "",
    position: PositionOpt = "end",
    ):
    """Add a markdown block and print its ID."""
    if content.startswith("@"):
        try:
            content = Path(content[1:]).read_text(encoding="utf-8")
        except OSError as e:
            _fail("Cannot read markdown file", e)
    _add(_store(), doc_id, {"type": "markdown", "content": content}, position, chapter)


def add_image_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    image: Annotated[str, typer.Argument(help="Image file to copy into the document's assets")],
    caption: Annotated[str, typer.Option("--caption", help="Caption")] = "",
    alt_text: Annotated[str, typer.Option("--alt", help="Alternative text")] = "",
    chapter: ChapterOpt = "",
    position: PositionOpt = "end",
    ):
    """Copy an image into assets, add an image block, and print its ID."""
    store = _store()
    typer.echo(_call(add_image, store, doc_id, image, caption, alt_text, Position.parse(position), chapter))


def add_table_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    headers: Annotated[str, typer.Option("--headers", help="Comma-separated column headers")],
    rows: Annotated[Optional[list[str]], typer.Option("--row", help="Comma-separated cells; repeat per row")] = None,
    chapter: ChapterOpt = "",
    position: PositionOpt = "end",
    ):
    """Add a table block and print its ID."""
    data = {
        "type": "table",
        "headers": [h.strip() for h in headers.split(",")],
        "rows": [[c.strip() for c in r.split(",")] for r in rows or []],
    }
    _add(_store(), doc_id, data, position, chapter)


def add_page_break_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    chapter: ChapterOpt = "",
    position: PositionOpt = "end",
    ):
    """Add a page break and print its ID."""
    _add(_store(), doc_id, {"type": "page_break"}, position, chapter)


def add_blocks_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    path: Annotated[Path, typer.Argument(help="JSON file holding a list of {type, ...} blocks")],
    chapter: ChapterOpt = "",
    position: PositionOpt = "end",
    ):
    """Add several blocks in order; the first goes to --position, the rest follow it."""
    try:
        items = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Cannot read {path}", e)
    if not isinstance(items, list):
        _fail(f"{path} must contain a JSON list of blocks")
    blocks = [_call(block_from_dict, item) for item in items]
    store = _store()
    for block_id in _call(add_blocks, store, doc_id, blocks, Position.parse(position), chapter):
        typer.echo(block_id)


def get_block_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    block_id: Annotated[str, typer.Argument(help="Block ID")],
    chapter: ScopeOpt = None,
    ):
    """Print one block's full content."""
    _echo_json(_call(get_block, _store(), doc_id, block_id, chapter))


def get_blocks_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    block_ids: Annotated[list[str], typer.Argument(help="Block IDs, in the order to print them")],
    chapter: ScopeOpt = None,
    ):
    """Print several blocks; IDs that do not exist are listed under 'missing'."""
    found, missing = _call(get_blocks, _store(), doc_id, block_ids, chapter)
    _echo_json({"blocks": [b.model_dump(mode="json") for b in found], "missing": missing})


def find_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    block_id: Annotated[str, typer.Argument(help="Block ID")],
    chapter: ScopeOpt = None,
    ):
    """Print which chapter holds a block ('' for document level) and its index there."""
    chapter_id, index = _call(find_block, _store(), doc_id, block_id, chapter)
    _echo_json({"chapter_id": chapter_id, "index": index})


def update_block_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    block_id: Annotated[str, typer.Argument(help="Block ID")],
    data: Annotated[str, typer.Argument(help="JSON object with the block's new fields")],
    chapter: ScopeOpt = None,
    ):
    """Replace a block's content; its type must stay the same."""
    try:
        fields = json.loads(data)
    except json.JSONDecodeError as e:
        _fail("Invalid JSON", e)
    if not isinstance(fields, dict):
        _fail("Block data must be a JSON object")
    store = _store()
    if "type" not in fields:
        fields["type"] = _call(get_block, store, doc_id, block_id, chapter).type
    _call(update_block, store, doc_id, block_id, _call(block_from_dict, fields), chapter)
    typer.echo(f"Updated {block_id}")


def delete_block_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    block_id: Annotated[str, typer.Argument(help="Block ID")],
    chapter: ScopeOpt = None,
    ):
    """Delete a block and its file."""
    _call(delete_block, _store(), doc_id, block_id, chapter)
    typer.echo(f"Deleted {block_id}")


def move_block_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    block_id: Annotated[str, typer.Argument(help="Block ID")],
    position: Annotated[str, typer.Argument(help="start, end, or after:<id>")],
    chapter: ScopeOpt = None,
    ):
    """Move a block within its own document level or chapter."""
    _call(move_block, _store(), doc_id, block_id, Position.parse(position), chapter)
    typer.echo(f"Moved {block_id} to {position}")


# --- chapters ---

def add_chapter_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    title: Annotated[str, typer.Argument(help="Chapter title")],
    position: PositionOpt = "end",
    ):
    """Add a chapter and print its ID."""
    typer.echo(_call(add_chapter, _store(), doc_id, title, Position.parse(position)))


def rename_chapter_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    chapter_id: Annotated[str, typer.Argument(help="Chapter ID")],
    title: Annotated[str, typer.Argument(help="New title")],
    ):
    """Change a chapter's title."""
    _call(update_chapter_title, _store(), doc_id, chapter_id, title)
    typer.echo(f"Renamed {chapter_id}")


def delete_chapter_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    chapter_id: Annotated[str, typer.Argument(help="Chapter ID")],
    ):
    """Delete a chapter together with all of its blocks."""
    _call(delete_chapter, _store(), doc_id, chapter_id)
    typer.echo(f"Deleted {chapter_id}")


def move_chapter_cmd(
    doc_id: Annotated[str, typer.Argument(help="Document ID")],
    chapter_id: Annotated[str, typer.Argument(help="Chapter ID")],
    position: Annotated[str, typer.Argument(help="start, end, or after:<chapter-id>")],
    ):
    """Reorder a chapter."""
    _call(move_chapter, _store(), doc_id, chapter_id, Position.parse(position))
    typer.echo(f"Moved {chapter_id} to {position}")
