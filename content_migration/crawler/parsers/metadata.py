"""Head metadata and breadcrumb extraction."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from ..types import PageMetadata
from .common import as_soup, attr_text, class_string, collapse_whitespace, element_text


DEFAULT_TITLE = "Untitled"


def _meta_content(soup: BeautifulSoup, attribute: str, key: str) -> str | None:
    pattern = re.compile(rf"^{re.escape(key)}$", re.IGNORECASE)
    for tag in soup.find_all("meta", attrs={attribute: pattern}):
        content = attr_text(tag, "content")
        if content:
            return content
    return None


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title is not None:
        title = collapse_whitespace(soup.title.get_text(" ", strip=True))
        if title:
            return title
    return DEFAULT_TITLE


def extract_canonical(soup: BeautifulSoup) -> str | None:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if any(value.lower() == "canonical" for value in rel):
            return attr_text(link, "href")
    return None


def extract_breadcrumb(soup: BeautifulSoup) -> list[str]:
    """Return anchor labels of the first breadcrumb `nav`/`ol`/`ul`."""

    container: Tag | None = None
    for candidate in soup.find_all(["nav", "ol", "ul"]):
        if "breadcrumb" in class_string(candidate):
            container = candidate
            break
    if container is None:
        return []

    labels: list[str] = []
    for anchor in container.find_all("a"):
        label = element_text(anchor)
        if label:
            labels.append(label)
    return labels


def extract_metadata(html: str | BeautifulSoup, *, url: str, slug: str) -> PageMetadata:
    soup = as_soup(html)

    keywords_raw = _meta_content(soup, "name", "keywords") or ""
    keywords = [keyword.strip() for keyword in keywords_raw.split(",") if keyword.strip()]

    return PageMetadata(
        url=url,
        slug=slug,
        title=extract_title(soup),
        meta_description=_meta_content(soup, "name", "description"),
        meta_keywords=keywords,
        og_title=_meta_content(soup, "property", "og:title"),
        og_description=_meta_content(soup, "property", "og:description"),
        og_image=_meta_content(soup, "property", "og:image"),
        canonical_url=extract_canonical(soup),
        published_date=_meta_content(soup, "property", "article:published_time"),
        last_modified=_meta_content(soup, "property", "article:modified_time"),
        breadcrumb=extract_breadcrumb(soup),
    )


__all__ = [
    "DEFAULT_TITLE",
    "extract_breadcrumb",
    "extract_canonical",
    "extract_metadata",
    "extract_title",
]
