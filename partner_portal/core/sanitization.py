"""
Input sanitization for user-written text.

Prospect notes, article titles and excerpts are stored as plain text; article
bodies keep a small formatting subset so the public blog can render them.
"""
from typing import Optional

import bleach

SHORT_MAX = 256
LONG_MAX = 4096

ARTICLE_TAGS = frozenset({
    "a", "b", "blockquote", "br", "code", "em", "h1", "h2", "h3", "h4",
    "i", "img", "li", "ol", "p", "pre", "strong", "u", "ul",
})
ARTICLE_ATTRIBUTES = {"a": ["href", "title"], "img": ["src", "alt"]}
ARTICLE_PROTOCOLS = frozenset({"http", "https", "mailto"})


def sanitize_text(value: Optional[str], max_length: int = 1024) -> Optional[str]:
    """
    Drop every tag, trim, and cut to ``max_length``.

    ``None`` passes through; a value that is empty after cleaning becomes ``None``.
    """
    if value is None:
        return None
    cleaned = bleach.clean(value, tags=set(), strip=True)
    return cleaned.strip()[:max_length] or None


def sanitize_short(value: Optional[str]) -> Optional[str]:
    return sanitize_text(value, max_length=SHORT_MAX)


def sanitize_long(value: Optional[str]) -> Optional[str]:
    return sanitize_text(value, max_length=LONG_MAX)


def sanitize_html(value: Optional[str]) -> Optional[str]:
    """Article body: formatting tags survive, scripts and javascript: links do not."""
    if value is None:
        return None
    return bleach.clean(
        value,
        tags=ARTICLE_TAGS,
        attributes=ARTICLE_ATTRIBUTES,
        protocols=ARTICLE_PROTOCOLS,
        strip=True,
    ).strip()
