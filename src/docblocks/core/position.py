"""Symbolic insertion points and their resolution into list mutations"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

AFTER_PREFIX = "after:"


class PositionKind(str, Enum):
    start = "start"
    end = "end"
    after = "after"


@dataclass(frozen=True)
class Position:
    """Where to insert a block or chapter: start, end, or after an anchor ID."""
    kind: PositionKind = PositionKind.end
    anchor: Optional[str] = None

    @classmethod
    def start(cls) -> "Position":
        return cls(PositionKind.start)

    @classmethod
    def end(cls) -> "Position":
        return cls(PositionKind.end)

    @classmethod
    def after(cls, anchor: str) -> "Position":
        return cls(PositionKind.after, anchor)

    @classmethod
    def parse(cls, text: Optional[str]) -> "Position":
        """Parse the boundary string form: '', 'end', 'start', 'after:<id>'; anything else is End."""
        if not text or text == "end":
            return cls.end()
        if text == "start":
            return cls.start()
        if text.startswith(AFTER_PREFIX) and len(text) > len(AFTER_PREFIX):
            return cls.after(text[len(AFTER_PREFIX):])
        logger.warning("Unrecognized position %r; defaulting to end", text)
        return cls.end()

    def __str__(self) -> str:
        if self.kind is PositionKind.after:
            return f"{AFTER_PREFIX}{self.anchor}"
        return self.kind.value


def _ref_id(item) -> str:
    return item.id


def insert_at_position(
    items: list[T],
    new_item: T,
    position: Position,
    key: Callable[[T], str] = _ref_id,
    ) -> list[T]:
    """Return a new list with new_item placed at position.

    After(anchor) inserts right behind the first item whose key equals anchor.
    A missing anchor appends to the end and logs a warning.
    """
    if position.kind is PositionKind.start:
        return [new_item, *items]
    if position.kind is PositionKind.after:
        for i, item in enumerate(items):
            if key(item) == position.anchor:
                return [*items[:i + 1], new_item, *items[i + 1:]]
        logger.warning("Anchor %s not found; appending %s to the end", position.anchor, key(new_item))
    return [*items, new_item]
