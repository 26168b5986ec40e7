"""Error kinds raised by the document store"""


class DocStoreError(Exception):
    """Base class for every error the store raises to its callers."""


class NotFoundError(DocStoreError, LookupError):
    """A document, chapter or block is absent."""


class TypeMismatchError(DocStoreError, ValueError):
    """An update tried to change the type of a stored block."""


class InvalidArgumentError(DocStoreError, ValueError):
    """A caller-supplied value cannot be turned into a valid block or lookup."""


class AmbiguousBlockError(InvalidArgumentError):
    """An unscoped block ID matches blocks in more than one scope."""

    def __init__(self, block_id: str, scopes: list[str]):
        self.block_id = block_id
        self.scopes = scopes
        names = ", ".join(s or "<document>" for s in scopes)
        super().__init__(f"block {block_id} exists in several scopes ({names}); pass chapter_id")


class UnsupportedOperationError(DocStoreError):
    """The request is well-formed but the store does not support it."""


class StorageError(DocStoreError):
    """A filesystem read/write or (de)serialization failure, wrapped with context."""
