"""Small helpers shared by the extraction modules."""

from __future__ import annotations

import re
from uuid import uuid4

from bs4 import BeautifulSoup, Tag

from ..url import resolve_url


PARSER_FEATURES = "lxml"

_WHITESPACE_RE = re.compile(r"\s+")


def as_soup(html: str | bytes | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html, PARSER_FEATURES)


def collapse_whitespace(text: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def element_text(element: Tag | None) -> str | None:
    """Return whitespace-collapsed text of `element`, or None when empty."""

    if element is None:
        return None
    text = collapse_whitespace(element.get_text(" ", strip=True))
    return text or None


def class_string(element: Tag) -> str:
    """Return the element's class attribute as one lowercased string."""

    classes = element.get("class") or []
    if isinstance(classes, str):
        return classes.lower()
    return " ".join(classes).lower()


def attr_text(element: Tag, name: str) -> str | None:
    value = element.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    if value is None:
        return None
    value = value.strip()
    return value or None


def image_source(element: Tag) -> str | None:
    """Return `src`, falling back to lazy-loading `data-src`."""

    src = attr_text(element, "src")
    if src and not src.lower().startswith("data:"):
        return src
    return attr_text(element, "data-src")


def absolute_url(base_url: str, href: str | None) -> str | None:
    """Resolve an asset reference without canonicalizing it."""

    return resolve_url(base_url, href, normalize=False)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


__all__ = [
    "PARSER_FEATURES",
    "absolute_url",
    "as_soup",
    "attr_text",
    "class_string",
    "collapse_whitespace",
    "element_text",
    "image_source",
    "new_id",
]
