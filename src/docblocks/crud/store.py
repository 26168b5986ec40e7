"""Store: root path, on-disk layout, YAML file I/O, and the per-document write guard"""

from __future__ import annotations

import logging
import shutil
import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Any, ContextManager, Iterator, Protocol

import yaml

from docblocks.config import Settings
from docblocks.crud.errors import InvalidArgumentError, StorageError


logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.yaml"
CHAPTER_FILE = "chapter.yaml"
ASSETS_DIR = "assets"
BLOCKS_DIR = "blocks"
CHAPTERS_DIR = "chapters"


class WriteGuard(Protocol):
    def hold(self, doc_id: str) -> ContextManager: ...


class NullGuard:
    """No locking: concurrent writers to one document race, last manifest write wins."""

    def hold(self, doc_id: str) -> ContextManager:
        return nullcontext()


class ThreadLockGuard:
    """Serializes mutations per document within one process via re-entrant locks."""

    def __init__(self):
        self._locks: dict[str, threading.RLock] = {}
        self._registry = threading.Lock()

    def _lock_for(self, doc_id: str) -> threading.RLock:
        with self._registry:
            return self._locks.setdefault(doc_id, threading.RLock())

    @contextmanager
    def hold(self, doc_id: str) -> Iterator[None]:
        with self._lock_for(doc_id):
            yield


class Store:
    """Owns the documents root and every file read/write beneath it."""

    def __init__(self, root: Path | str, guard: WriteGuard | None = None):
        self.root = Path(root)
        self.guard = guard or NullGuard()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        guard = ThreadLockGuard() if settings.locking == "thread" else NullGuard()
        store = cls(settings.documents_folder, guard)
        store.ensure_root()
        return store

    def ensure_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create documents folder {self.root}: {e}") from e

    # --- layout ---

    def document_dir(self, doc_id: str) -> Path:
        if not doc_id or doc_id in (".", "..") or "/" in doc_id or "\\" in doc_id:
            raise InvalidArgumentError(f"invalid document id: {doc_id!r}")
        return self.root / doc_id

    def manifest_path(self, doc_id: str) -> Path:
        return self.document_dir(doc_id) / MANIFEST_FILE

    def resolve(self, doc_id: str, relative: str) -> Path:
        """Absolute path of a file stored relative to the document folder."""
        return self.document_dir(doc_id) / relative

    # --- file I/O ---

    def read_yaml(self, path: Path, what: str) -> dict[str, Any]:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise StorageError(f"Failed to read {what} {path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Failed to parse {what} {path}: expected a mapping, got {type(data).__name__}")
        return data

    def write_yaml(self, path: Path, data: dict[str, Any], what: str) -> None:
        try:
            text = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
            path.write_text(text, encoding="utf-8")
        except (OSError, yaml.YAMLError) as e:
            raise StorageError(f"Failed to write {what} {path}: {e}") from e
        logger.debug("Wrote %s %s", what, path)

    def read_text(self, path: Path, what: str) -> str:
        """Read UTF-8 text exactly as stored; line endings are not translated."""
        try:
            with path.open(encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {what} {path}: {e}") from e

    def write_text(self, path: Path, text: str, what: str) -> None:
        try:
            path.write_text(text, encoding="utf-8", newline="")
        except OSError as e:
            raise StorageError(f"Failed to write {what} {path}: {e}") from e
        logger.debug("Wrote %s %s", what, path)

    def make_dirs(self, *paths: Path) -> None:
        try:
            for p in paths:
                p.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create folder: {e}") from e

    def remove_tree(self, path: Path, what: str) -> None:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            logger.debug("%s %s already gone", what, path)
        except OSError as e:
            raise StorageError(f"Failed to delete {what} {path}: {e}") from e

    def remove_file(self, path: Path, what: str) -> None:
        """Delete a file; a file that is already gone is not an error."""
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("%s %s already gone", what, path)
        except OSError as e:
            raise StorageError(f"Failed to delete {what} {path}: {e}") from e
