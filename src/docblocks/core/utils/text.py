"""Whitespace-trimmed truncation used by block previews"""


def truncate(text: str, limit: int) -> str:
    """Strip text; if longer than limit keep limit-3 chars and append '...'."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."
