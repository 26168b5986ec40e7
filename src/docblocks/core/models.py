"""Block variants, manifest records, and the read-side overview/search models"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from docblocks.core.utils.text import truncate
from docblocks.crud.errors import InvalidArgumentError


class BlockType(str, Enum):
    """Restrict content blocks to the supported set of elements"""
    heading = "heading"
    markdown = "markdown"
    image = "image"
    table = "table"
    page_break = "page_break"


ID_PREFIXES: dict[BlockType, str] = {
    BlockType.heading:    "hd",
    BlockType.markdown:   "md",
    BlockType.image:      "img",
    BlockType.table:      "tbl",
    BlockType.page_break: "pb",
}


class HeadingBlock(BaseModel):
    id: str = ""
    type: Literal["heading"] = "heading"
    level: int = Field(default=1, ge=1, le=6)
    text: str

    def to_markdown(self) -> str:
        return f"{'#' * self.level} {self.text}"

    def preview(self, limit: int = 100) -> str:
        return f"H{self.level}: {truncate(self.text, limit)}"

    def search_text(self) -> str:
        return self.text


class MarkdownBlock(BaseModel):
    """Free-form markdown; persisted as a raw .md file rather than YAML."""
    id: str = ""
    type: Literal["markdown"] = "markdown"
    content: str

    def to_markdown(self) -> str:
        return self.content

    def preview(self, limit: int = 100) -> str:
        return truncate(self.content, limit)

    def search_text(self) -> str:
        return self.content


class ImageBlock(BaseModel):
    id: str = ""
    type: Literal["image"] = "image"
    path: str
    caption: str = ""
    alt_text: str = ""

    def to_markdown(self) -> str:
        md = f"![{self.alt_text or self.caption}]({self.path})"
        if self.caption:
            md += f"\n\n*{self.caption}*"
        return md

    def preview(self, limit: int = 80) -> str:
        return f"Image: {truncate(self.caption, limit)}" if self.caption else "Image"

    def search_text(self) -> str:
        return f"{self.caption} {self.alt_text}"


class TableBlock(BaseModel):
    id: str = ""
    type: Literal["table"] = "table"
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)

    def to_markdown(self) -> str:
        """GitHub pipe table; short rows are padded and surplus cells dropped."""
        if not self.headers:
            return ""
        width = len(self.headers)
        lines = [
            "| " + " | ".join(self.headers) + " |",
            "|" + " --- |" * width,
        ]
        for row in self.rows:
            cells = (list(row) + [""] * width)[:width]
            lines.append("| " + " | ".join(cells) + " |")
        return "\n".join(lines)

    def preview(self, limit: int = 0) -> str:
        return f"Table: {len(self.headers)} columns, {len(self.rows)} rows"

    def search_text(self) -> str:
        parts = [" ".join(self.headers)]
        parts.extend(" ".join(row) for row in self.rows)
        return " ".join(parts)


class PageBreakBlock(BaseModel):
    id: str = ""
    type: Literal["page_break"] = "page_break"

    def to_markdown(self) -> str:
        return "\\newpage"

    def preview(self, limit: int = 0) -> str:
        return "Page Break"

    def search_text(self) -> str:
        return ""


Block = Annotated[
    Union[HeadingBlock, MarkdownBlock, ImageBlock, TableBlock, PageBreakBlock],
    Field(discriminator="type"),
]

_block_adapter: TypeAdapter = TypeAdapter(Block)


def block_from_dict(data: dict[str, Any]) -> Block:
    """Validate a {'type': ..., <fields>} mapping into the matching block variant."""
    try:
        return _block_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid block: {e}") from e


class BlockReference(BaseModel):
    """Manifest-level pointer to a persisted block; ordering lives in the owning list."""
    id: str
    type: BlockType
    file: str


class ChapterReference(BaseModel):
    id: str
    title: str
    folder: str


class Chapter(BaseModel):
    id: str
    title: str
    blocks: list[BlockReference] = Field(default_factory=list)
    id_counters: dict[str, int] = Field(default_factory=dict, description="Highest number issued per ID prefix")


class Document(BaseModel):
    """A document manifest. The folder name is the ID, so it is not stored in the file."""
    id: str = Field(default="", exclude=True)
    title: str
    author: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    has_chapters: bool = False
    blocks: list[BlockReference] = Field(default_factory=list)
    chapters: list[ChapterReference] = Field(default_factory=list)
    id_counters: dict[str, int] = Field(default_factory=dict, description="Highest number issued per ID prefix, ch included")

    def chapter_ref(self, chapter_id: str) -> Optional[ChapterReference]:
        return next((c for c in self.chapters if c.id == chapter_id), None)


class DocumentSummary(BaseModel):
    id: str
    title: str
    author: str = ""
    has_chapters: bool
    created_at: datetime
    updated_at: datetime


class BlockOverview(BaseModel):
    id: str
    type: str
    preview: str


class ChapterOverview(BaseModel):
    id: str
    title: str
    blocks: list[BlockOverview] = Field(default_factory=list)


class DocumentOverview(BaseModel):
    id: str
    title: str
    author: str = ""
    has_chapters: bool
    blocks: list[BlockOverview] = Field(default_factory=list)
    chapters: list[ChapterOverview] = Field(default_factory=list)


class SearchResult(BaseModel):
    block_id: str
    block_type: str
    chapter_id: str = ""          # empty for document-level blocks
    snippet: str
    position: int                 # index within the owning list, not document-wide
