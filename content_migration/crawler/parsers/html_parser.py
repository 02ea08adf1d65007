"""HTML page parser: composes the extractors into one `CrawledPage`."""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import json
import logging
import re
from typing import Any

from bs4 import BeautifulSoup

from ..errors import ParseError
from ..types import CrawledPage
from ..url import extract_links_from_html, slug_for_url
from .classify import page_type_for
from .common import PARSER_FEATURES, collapse_whitespace
from .content import extract_content
from .forms import extract_forms
from .media import extract_documents, extract_images, extract_videos
from .metadata import extract_metadata


LOGGER = logging.getLogger(__name__)

_LD_JSON_TYPE = re.compile(r"^\s*application/ld\+json\s*$", re.IGNORECASE)


@dataclass(slots=True)
class HTMLParserConfig:
    """Config for HTML extraction."""

    features: str = PARSER_FEATURES
    non_content_tags: tuple[str, ...] = ("script", "style", "noscript", "template")


@dataclass(frozen=True, slots=True)
class ParsedPage:
    """A parsed page record plus the in-scope links discovered on it."""

    page: CrawledPage
    out_links: list[str] = field(default_factory=list)


def extract_structured_data(soup: BeautifulSoup) -> list[Any] | None:
    """Parse every JSON-LD block; invalid blocks are skipped."""

    blocks: list[Any] = []
    for script in soup.find_all("script", attrs={"type": _LD_JSON_TYPE}):
        raw = script.string if script.string is not None else script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            blocks.append(json.loads(raw))
        except json.JSONDecodeError as exc:
            LOGGER.debug("Skipping invalid JSON-LD block: %s", exc)
    return blocks or None


class HTMLParser:
    """Turn one fetched HTML document into a `CrawledPage`.

    Records carry the requested `url`; relative references resolve against
    `final_url` when the fetch was redirected.
    """

    def __init__(self, config: HTMLParserConfig | None = None) -> None:
        self.config = config or HTMLParserConfig()

    def parse(
        self,
        *,
        url: str,
        html: str | bytes,
        final_url: str | None = None,
        scope_url: str | None = None,
        slug: str | None = None,
        http_status: int = 200,
    ) -> ParsedPage:
        try:
            return self._parse(
                url=url,
                html=html,
                final_url=final_url,
                scope_url=scope_url,
                slug=slug,
                http_status=http_status,
            )
        except ParseError:
            raise
        except Exception as exc:
            raise ParseError(f"{exc.__class__.__name__}: {exc}", url=url) from exc

    def _parse(
        self,
        *,
        url: str,
        html: str | bytes,
        final_url: str | None,
        scope_url: str | None,
        slug: str | None,
        http_status: int,
    ) -> ParsedPage:
        base_url = final_url or url
        soup = BeautifulSoup(self._coerce_html_text(html), self.config.features)

        page_slug = slug or slug_for_url(url)
        metadata = extract_metadata(soup, url=url, slug=page_slug)
        structured_data = extract_structured_data(soup)

        content = extract_content(soup, base_url=base_url)
        images = extract_images(soup, page_url=url, base_url=base_url)
        videos = extract_videos(soup, page_url=url, base_url=base_url)
        documents = extract_documents(soup, page_url=url, base_url=base_url)
        forms = extract_forms(soup, page_url=url)
        out_links = extract_links_from_html(soup, base_url=base_url, scope_url=scope_url)

        text = self._visible_text(soup)

        page = CrawledPage(
            url=url,
            slug=page_slug,
            title=metadata.title,
            page_type=page_type_for(url, metadata.title),
            metadata=metadata,
            content=content,
            images=images,
            videos=videos,
            documents=documents,
            forms=forms,
            structured_data=structured_data,
            word_count=len(text.split()),
            content_hash=hashlib.sha256(text.encode("utf-8")).hexdigest() if text else None,
            http_status=http_status,
            final_url=final_url if final_url and final_url != url else None,
        )
        return ParsedPage(page=page, out_links=out_links)

    def _visible_text(self, soup: BeautifulSoup) -> str:
        # Runs last: it removes non-content tags from the tree.
        for element in soup.find_all(list(self.config.non_content_tags)):
            element.decompose()
        return collapse_whitespace(soup.get_text(" ", strip=True))

    @staticmethod
    def _coerce_html_text(html: str | bytes) -> str:
        if isinstance(html, bytes):
            return html.decode("utf-8", errors="replace")
        return html


__all__ = [
    "HTMLParser",
    "HTMLParserConfig",
    "ParsedPage",
    "extract_structured_data",
]
