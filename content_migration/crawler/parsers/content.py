"""Hero block and ordered content-section extraction."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from ..types import CallToAction, ContentSection, HeroBlock, PageContent
from .classify import section_type_for
from .common import (
    absolute_url,
    as_soup,
    attr_text,
    class_string,
    collapse_whitespace,
    element_text,
    image_source,
)
from .media import video_urls_in


HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
SECTION_TAGS = ("section", "article")
CTA_CLASS_KEYWORDS = ("btn", "button", "cta")


def _first_heading(element: Tag) -> str | None:
    return element_text(element.find(HEADING_TAGS))


def _first_paragraph(element: Tag) -> str | None:
    for paragraph in element.find_all("p"):
        text = element_text(paragraph)
        if text:
            return text
    return None


def _image_urls(element: Tag, base_url: str) -> list[str]:
    urls: list[str] = []
    for image in element.find_all("img"):
        url = absolute_url(base_url, image_source(image))
        if url:
            urls.append(url)
    return urls


def _first_cta(element: Tag, base_url: str) -> CallToAction | None:
    for anchor in element.find_all("a", href=True):
        classes = class_string(anchor)
        if not any(keyword in classes for keyword in CTA_CLASS_KEYWORDS):
            continue
        text = element_text(anchor)
        link = absolute_url(base_url, attr_text(anchor, "href"))
        if text and link:
            return CallToAction(text=text, link=link)
    return None


def extract_hero(soup: BeautifulSoup, base_url: str) -> HeroBlock | None:
    """First `<section>`/`<div>` whose class mentions "hero"."""

    region = None
    for candidate in soup.find_all(["section", "div"]):
        if "hero" in class_string(candidate):
            region = candidate
            break
    if region is None:
        return None

    images = _image_urls(region, base_url)
    return HeroBlock(
        heading=_first_heading(region),
        subheading=_first_paragraph(region),
        image=images[0] if images else None,
        cta=_first_cta(region, base_url),
    )


def extract_sections(soup: BeautifulSoup, base_url: str) -> list[ContentSection]:
    # Nested section/article blocks are part of their outermost ancestor.
    blocks = [
        element
        for element in soup.find_all(SECTION_TAGS)
        if element.find_parent(SECTION_TAGS) is None
    ]

    sections: list[ContentSection] = []
    for order, block in enumerate(blocks):
        markup = block.decode_contents()
        sections.append(
            ContentSection(
                type=section_type_for(markup),
                heading=_first_heading(block),
                content=collapse_whitespace(block.get_text(" ", strip=True)),
                images=_image_urls(block, base_url),
                videos=video_urls_in(markup),
                order=order,
            )
        )
    return sections


def extract_content(html: str | BeautifulSoup, *, base_url: str) -> PageContent:
    soup = as_soup(html)
    return PageContent(
        hero=extract_hero(soup, base_url),
        sections=extract_sections(soup, base_url),
    )


__all__ = [
    "extract_content",
    "extract_hero",
    "extract_sections",
]
