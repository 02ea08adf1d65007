"""Image, video and document reference extraction."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from ..types import (
    DocumentAsset,
    DocumentType,
    ImageAsset,
    VideoAsset,
    VideoContext,
    VideoPlatform,
)
from ..url import normalize_url, path_basename, path_extension
from .classify import image_context_for
from .common import (
    absolute_url,
    as_soup,
    attr_text,
    class_string,
    element_text,
    image_source,
    new_id,
)


YOUTUBE_RE = re.compile(
    r"(?:youtube\.com/embed/|youtube\.com/watch\?v=|youtu\.be/)([a-zA-Z0-9_-]{11})",
    re.IGNORECASE,
)
VIMEO_RE = re.compile(r"vimeo\.com/(?:video/)?(\d+)", re.IGNORECASE)

SELF_HOSTED_VIDEO_EXTENSIONS = ("mp4", "webm", "ogg", "mov")
DOCUMENT_EXTENSIONS = tuple(doc_type.value for doc_type in DocumentType if doc_type != DocumentType.OTHER)

MODAL_KEYWORDS = ("modal", "lightbox", "fancybox", "popup")
MODAL_SEARCH_DEPTH = 4


def _parse_dimension(value: str | None) -> int | None:
    if not value:
        return None
    match = re.match(r"\s*(\d+)", value)
    if not match:
        return None
    return int(match.group(1)) or None


def _figure_caption(element: Tag) -> str | None:
    figure = element.find_parent("figure")
    if figure is None:
        return None
    return element_text(figure.find("figcaption"))


def extract_images(
    html: str | BeautifulSoup,
    *,
    page_url: str,
    base_url: str | None = None,
) -> list[ImageAsset]:
    """Return one `ImageAsset` per `<img>` with a usable source, in order."""

    soup = as_soup(html)
    base = base_url or page_url

    images: list[ImageAsset] = []
    for element in soup.find_all("img"):
        src = image_source(element)
        source_url = absolute_url(base, src)
        if not src or not source_url:
            continue

        images.append(
            ImageAsset(
                id=new_id("img"),
                src=src,
                source_url=source_url,
                parent_page_url=page_url,
                context=image_context_for(class_string(element), src),
                alt=attr_text(element, "alt"),
                title=attr_text(element, "title"),
                width=_parse_dimension(attr_text(element, "width")),
                height=_parse_dimension(attr_text(element, "height")),
                format=path_extension(source_url) or "unknown",
                caption=_figure_caption(element),
            )
        )
    return images


def _is_modal(element: Tag) -> bool:
    node: Tag | None = element
    for _ in range(MODAL_SEARCH_DEPTH):
        if node is None or node.name in {"body", "html", "[document]"}:
            return False
        classes = class_string(node)
        if any(keyword in classes for keyword in MODAL_KEYWORDS):
            return True
        for toggle in ("data-toggle", "data-bs-toggle"):
            if (attr_text(node, toggle) or "").lower() == "modal":
                return True
        if node.has_attr("data-fancybox") or node.has_attr("data-lightbox"):
            return True
        node = node.parent
    return False


def match_platform_video(reference: str) -> tuple[VideoPlatform, str] | None:
    """Return (platform, video id) for YouTube/Vimeo references."""

    match = YOUTUBE_RE.search(reference)
    if match:
        return VideoPlatform.YOUTUBE, match.group(1)
    match = VIMEO_RE.search(reference)
    if match:
        return VideoPlatform.VIMEO, match.group(1)
    return None


def video_urls_in(html: str) -> list[str]:
    """Canonical watch URLs for every YouTube/Vimeo reference in `html`."""

    urls: list[str] = []
    for match in YOUTUBE_RE.finditer(html):
        url = f"https://www.youtube.com/watch?v={match.group(1)}"
        if url not in urls:
            urls.append(url)
    for match in VIMEO_RE.finditer(html):
        url = f"https://vimeo.com/{match.group(1)}"
        if url not in urls:
            urls.append(url)
    return urls


def _platform_video(
    platform: VideoPlatform,
    video_id: str,
    *,
    page_url: str,
    context: VideoContext,
    source_url: str | None,
    title: str | None,
) -> VideoAsset:
    if platform == VideoPlatform.YOUTUBE:
        return VideoAsset(
            id=new_id("vid"),
            platform=platform,
            url=f"https://www.youtube.com/watch?v={video_id}",
            parent_page_url=page_url,
            context=context,
            source_url=source_url,
            video_id=video_id,
            embed_code=(
                f'<iframe src="https://www.youtube.com/embed/{video_id}" '
                'frameborder="0" allowfullscreen></iframe>'
            ),
            thumbnail_url=f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg",
            title=title,
        )
    return VideoAsset(
        id=new_id("vid"),
        platform=platform,
        url=f"https://vimeo.com/{video_id}",
        parent_page_url=page_url,
        context=context,
        source_url=source_url,
        video_id=video_id,
        embed_code=(
            f'<iframe src="https://player.vimeo.com/video/{video_id}" '
            'frameborder="0" allowfullscreen></iframe>'
        ),
        title=title,
    )


def extract_videos(
    html: str | BeautifulSoup,
    *,
    page_url: str,
    base_url: str | None = None,
) -> list[VideoAsset]:
    """Return YouTube, Vimeo and self-hosted videos, deduplicated per page.

    Anchors yield `linked` videos, players inside a modal or lightbox yield
    `modal`, everything else is `embedded`.
    """

    soup = as_soup(html)
    base = base_url or page_url

    videos: list[VideoAsset] = []
    seen: set[tuple[str, str]] = set()

    def add(video: VideoAsset) -> None:
        key = (video.platform.value, video.video_id or video.url)
        if key in seen:
            return
        seen.add(key)
        videos.append(video)

    for element in soup.find_all(["iframe", "embed", "object", "video", "source", "a"]):
        if element.name == "a":
            reference = attr_text(element, "href")
            context = VideoContext.MODAL if _is_modal(element) else VideoContext.LINKED
            title = attr_text(element, "title") or element_text(element)
        elif element.name == "object":
            reference = attr_text(element, "data")
            context = VideoContext.MODAL if _is_modal(element) else VideoContext.EMBEDDED
            title = attr_text(element, "title")
        else:
            reference = attr_text(element, "src") or attr_text(element, "data-src")
            context = VideoContext.MODAL if _is_modal(element) else VideoContext.EMBEDDED
            title = attr_text(element, "title")

        if not reference:
            continue

        source_url = absolute_url(base, reference)
        platform_match = match_platform_video(reference)
        if platform_match is not None:
            platform, video_id = platform_match
            add(
                _platform_video(
                    platform,
                    video_id,
                    page_url=page_url,
                    context=context,
                    source_url=source_url,
                    title=title,
                )
            )
            continue

        if source_url and path_extension(source_url) in SELF_HOSTED_VIDEO_EXTENSIONS:
            add(
                VideoAsset(
                    id=new_id("vid"),
                    platform=VideoPlatform.SELF_HOSTED,
                    url=source_url,
                    parent_page_url=page_url,
                    context=context,
                    source_url=source_url,
                    title=title,
                )
            )

    # References outside the usual tags (data attributes, inline scripts).
    markup = str(soup)
    for pattern, platform in ((YOUTUBE_RE, VideoPlatform.YOUTUBE), (VIMEO_RE, VideoPlatform.VIMEO)):
        for match in pattern.finditer(markup):
            add(
                _platform_video(
                    platform,
                    match.group(1),
                    page_url=page_url,
                    context=VideoContext.EMBEDDED,
                    source_url=None,
                    title=None,
                )
            )

    return videos


def extract_documents(
    html: str | BeautifulSoup,
    *,
    page_url: str,
    base_url: str | None = None,
) -> list[DocumentAsset]:
    """Return linked PDF/Office documents, deduplicated per page."""

    soup = as_soup(html)
    base = base_url or page_url

    documents: list[DocumentAsset] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = attr_text(anchor, "href")
        url = absolute_url(base, href)
        if not href or not url:
            continue

        extension = path_extension(url)
        if extension not in DOCUMENT_EXTENSIONS:
            continue

        key = normalize_url(url) or url
        if key in seen:
            continue
        seen.add(key)

        file_name = path_basename(url) or f"document.{extension}"
        documents.append(
            DocumentAsset(
                id=new_id("doc"),
                href=href,
                url=url,
                file_name=file_name,
                file_type=DocumentType(extension),
                link_text=element_text(anchor) or file_name,
                parent_page_url=page_url,
            )
        )

    return documents


__all__ = [
    "DOCUMENT_EXTENSIONS",
    "SELF_HOSTED_VIDEO_EXTENSIONS",
    "extract_documents",
    "extract_images",
    "extract_videos",
    "match_platform_video",
    "video_urls_in",
]
