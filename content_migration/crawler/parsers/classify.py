"""Ordered first-match heuristics for page, section, image and form types.

Each classifier walks a fixed list of keyword checks and returns the first hit.
Reordering the checks changes results on ambiguous input.
"""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlsplit

from ..types import FormPurpose, ImageContext, PageType, SectionType


_INDEX_PATH_RE = re.compile(r"/index(\.\w+)?")
_IMG_TAG_RE = re.compile(r"<img", re.IGNORECASE)


def page_type_for(url: str, title: str | None) -> PageType:
    path = urlsplit(url).path.lower()
    title_lower = (title or "").lower()

    if path in {"", "/"} or _INDEX_PATH_RE.fullmatch(path):
        return PageType.HOME
    if "/about" in path or "about" in title_lower:
        return PageType.ABOUT
    if "/team" in path or "team" in title_lower:
        return PageType.TEAM
    if "/service" in path or "service" in title_lower:
        return PageType.SERVICES
    if "/blog" in path or "/news" in path or "/article" in path:
        return PageType.BLOG
    if "/contact" in path or "contact" in title_lower:
        return PageType.CONTACT
    if "/case-stud" in path or "case study" in title_lower:
        return PageType.CASE_STUDY
    if "/resource" in path or "/download" in path:
        return PageType.RESOURCES
    if "/privacy" in path or "/terms" in path or "/legal" in path:
        return PageType.LEGAL
    return PageType.OTHER


def section_type_for(html: str) -> SectionType:
    """Classify one `<section>`/`<article>` block from its inner markup.

    Matching is case-sensitive, so attributes of the block element itself and
    capitalised visible text do not count.
    """

    if "<form" in html:
        return SectionType.FORM
    if "youtube" in html or "vimeo" in html or "<video" in html:
        return SectionType.VIDEO
    if "gallery" in html or len(_IMG_TAG_RE.findall(html)) > 3:
        return SectionType.GALLERY
    if "testimonial" in html or "quote" in html:
        return SectionType.TESTIMONIAL
    if "<img" in html and "<p" in html:
        return SectionType.IMAGE_TEXT
    if "<table" in html:
        return SectionType.TABLE
    if "<ul" in html or "<ol" in html:
        return SectionType.LIST
    return SectionType.TEXT


def image_context_for(classes: str, src: str) -> ImageContext:
    """Classify an image by CSS class first, then by keywords in its src."""

    classes = classes.lower()
    src = src.lower()

    if "hero" in classes or "banner" in classes:
        return ImageContext.HERO
    if "logo" in classes:
        return ImageContext.LOGO
    if "team" in classes or "avatar" in classes or "profile" in classes:
        return ImageContext.TEAM
    if "thumb" in classes:
        return ImageContext.THUMBNAIL
    if "icon" in classes:
        return ImageContext.ICON
    if "logo" in src:
        return ImageContext.LOGO
    if "team" in src or "staff" in src:
        return ImageContext.TEAM
    if "hero" in src or "banner" in src:
        return ImageContext.HERO
    return ImageContext.CONTENT


def form_purpose_for(form_html: str, field_names: Iterable[str]) -> FormPurpose:
    html = form_html.lower()
    names = {name.lower() for name in field_names}

    if "contact" in html or "message" in names:
        return FormPurpose.CONTACT
    if "newsletter" in html or "subscribe" in html:
        return FormPurpose.NEWSLETTER
    if "quote" in html or "request" in html:
        return FormPurpose.QUOTE_REQUEST
    if "search" in html:
        return FormPurpose.SEARCH
    if "login" in html or "sign" in html:
        return FormPurpose.LOGIN
    return FormPurpose.GENERAL


__all__ = [
    "form_purpose_for",
    "image_context_for",
    "page_type_for",
    "section_type_for",
]
