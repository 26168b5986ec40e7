"""Slug generation for document IDs and chapter folder names"""

import re


_UNSAFE_RE = re.compile(r'[^a-z0-9_-]+')
_CHAPTER_DROP_RE = re.compile(r'[^a-z0-9-]')


def slugify(text: str, max_length: int = 0) -> str:
    """Lowercase text, collapse runs of unsafe chars to '-', trim '-', cap at max_length (0 = no cap)."""
    text = _UNSAFE_RE.sub('-', text.lower()).strip('-')
    if max_length:
        text = text[:max_length].rstrip('-')
    return text


def document_slug(title: str) -> str:
    """Folder-safe base ID for a document title; 'document' when nothing survives."""
    return slugify(title, max_length=50) or "document"


def chapter_slug(title: str) -> str:
    """Short slug appended to a chapter folder name; may be empty.

    Spaces become '-', every other char outside [a-z0-9-] is dropped ("It's" -> "its").
    """
    text = _CHAPTER_DROP_RE.sub('', title.lower().replace(' ', '-'))
    return text[:30].strip('-')
