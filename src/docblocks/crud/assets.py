"""Copy image files into a document's assets folder"""

import logging
import shutil
from pathlib import Path

from docblocks.core.models import ImageBlock
from docblocks.core.position import Position
from docblocks.crud.blocks import add_block
from docblocks.crud.documents import get_document
from docblocks.crud.errors import NotFoundError, StorageError
from docblocks.crud.store import ASSETS_DIR, Store


logger = logging.getLogger(__name__)


def copy_image_to_assets(store: Store, doc_id: str, source: Path | str) -> str:
    """Copy source into assets/<stem>-NNN<ext> using the first free NNN. Returns the relative path."""
    source = Path(source)
    if not source.is_file():
        raise NotFoundError(f"image not found: {source}")
    get_document(store, doc_id)

    assets = store.resolve(doc_id, ASSETS_DIR)
    store.make_dirs(assets)
    n = 1
    while (assets / f"{source.stem}-{n:03d}{source.suffix}").exists():
        n += 1
    name = f"{source.stem}-{n:03d}{source.suffix}"
    try:
        shutil.copyfile(source, assets / name)
    except OSError as e:
        raise StorageError(f"Failed to copy image {source}: {e}") from e
    logger.info("Copied %s into %s/%s", source, doc_id, ASSETS_DIR)
    return f"{ASSETS_DIR}/{name}"


def add_image(
    store: Store,
    doc_id: str,
    source: Path | str,
    caption: str = "",
    alt_text: str = "",
    position: Position = Position.end(),
    chapter_id: str = "",
    ) -> str:
    """Copy an image into assets and add an image block pointing at the copy. Returns the block ID."""
    asset = copy_image_to_assets(store, doc_id, source)
    return add_block(store, doc_id, ImageBlock(path=asset, caption=caption, alt_text=alt_text),
                     position, chapter_id)
