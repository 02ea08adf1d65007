"""Core type definitions for the content crawler.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles. JSON payloads use camelCase keys to
match the content-migration schema consumed by the portal importer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for records and reports."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class PageType(str, Enum):
    """Coarse page classification used for routing and migration priority."""

    HOME = "home"
    ABOUT = "about"
    SERVICES = "services"
    BLOG = "blog"
    CONTACT = "contact"
    CASE_STUDY = "case-study"
    TEAM = "team"
    RESOURCES = "resources"
    LEGAL = "legal"
    OTHER = "other"


class SectionType(str, Enum):
    TEXT = "text"
    IMAGE_TEXT = "image-text"
    GALLERY = "gallery"
    VIDEO = "video"
    FORM = "form"
    TESTIMONIAL = "testimonial"
    CTA = "cta"
    LIST = "list"
    TABLE = "table"


class ImageContext(str, Enum):
    HERO = "hero"
    CONTENT = "content"
    GALLERY = "gallery"
    THUMBNAIL = "thumbnail"
    LOGO = "logo"
    TEAM = "team"
    BACKGROUND = "background"
    ICON = "icon"


class VideoPlatform(str, Enum):
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    SELF_HOSTED = "self-hosted"
    OTHER = "other"


class VideoContext(str, Enum):
    EMBEDDED = "embedded"
    LINKED = "linked"
    MODAL = "modal"


class DocumentType(str, Enum):
    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    XLS = "xls"
    XLSX = "xlsx"
    PPT = "ppt"
    PPTX = "pptx"
    OTHER = "other"


class FormPurpose(str, Enum):
    CONTACT = "contact"
    NEWSLETTER = "newsletter"
    QUOTE_REQUEST = "quote-request"
    SEARCH = "search"
    LOGIN = "login"
    GENERAL = "general"


class CrawlStatus(str, Enum):
    """Run state. `paused` is reserved; no transition into it exists yet."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorType(str, Enum):
    """Error categories recorded in the crawl error log."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    PARSE = "parse"
    NOT_FOUND = "404"
    SERVER_ERROR = "500"
    OTHER = "other"


class RedirectType(str, Enum):
    PERMANENT = "301"
    TEMPORARY = "302"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class FrontierItem:
    """A crawl candidate tracked by the frontier."""

    url: str
    depth: int
    referrer: str | None = None
    discovered_at: str = field(default_factory=utc_now_iso)


@dataclass(slots=True)
class FetchResult:
    """Result of successfully downloading one page."""

    requested_url: str
    final_url: str
    status_code: int
    content_type: str | None
    body: bytes
    encoding: str | None = None
    redirects: int = 0
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or "utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class CallToAction:
    text: str
    link: str

    def to_json(self) -> JSONDict:
        return {"text": self.text, "link": self.link}


@dataclass(frozen=True, slots=True)
class HeroBlock:
    heading: str | None
    subheading: str | None
    image: str | None
    cta: CallToAction | None = None

    def to_json(self) -> JSONDict:
        payload: JSONDict = {
            "heading": self.heading,
            "subheading": self.subheading,
            "image": self.image,
        }
        if self.cta is not None:
            payload["cta"] = self.cta.to_json()
        return payload


@dataclass(frozen=True, slots=True)
class ContentSection:
    type: SectionType
    heading: str | None
    content: str
    images: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)
    order: int = 0

    def to_json(self) -> JSONDict:
        return {
            "type": self.type.value,
            "heading": self.heading,
            "content": self.content,
            "images": list(self.images),
            "videos": list(self.videos),
            "order": self.order,
        }


@dataclass(frozen=True, slots=True)
class PageContent:
    hero: HeroBlock | None = None
    sections: list[ContentSection] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        payload: JSONDict = {"sections": [section.to_json() for section in self.sections]}
        if self.hero is not None:
            payload["hero"] = self.hero.to_json()
        return payload


@dataclass(frozen=True, slots=True)
class PageMetadata:
    url: str
    slug: str
    title: str
    meta_description: str | None = None
    meta_keywords: list[str] = field(default_factory=list)
    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    canonical_url: str | None = None
    published_date: str | None = None
    last_modified: str | None = None
    breadcrumb: list[str] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "slug": self.slug,
            "title": self.title,
            "metaDescription": self.meta_description,
            "metaKeywords": list(self.meta_keywords),
            "ogTitle": self.og_title,
            "ogDescription": self.og_description,
            "ogImage": self.og_image,
            "canonicalUrl": self.canonical_url,
            "publishedDate": self.published_date,
            "lastModified": self.last_modified,
            "breadcrumb": list(self.breadcrumb),
        }


@dataclass(slots=True)
class ImageAsset:
    """An `<img>` reference. Download fields are set once by the downloader."""

    id: str
    src: str
    source_url: str
    parent_page_url: str
    context: ImageContext = ImageContext.CONTENT
    alt: str | None = None
    title: str | None = None
    width: int | None = None
    height: int | None = None
    format: str = "unknown"
    caption: str | None = None
    local_path: str | None = None
    file_size: int | None = None
    downloaded: bool = False
    download_error: str | None = None

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "src": self.src,
            "sourceUrl": self.source_url,
            "localPath": self.local_path,
            "alt": self.alt,
            "title": self.title,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "context": self.context.value,
            "caption": self.caption,
            "parentPageUrl": self.parent_page_url,
            "fileSize": self.file_size,
            "downloaded": self.downloaded,
            "downloadError": self.download_error,
        }


@dataclass(frozen=True, slots=True)
class VideoAsset:
    """A video reference. Videos are inventoried, never downloaded."""

    id: str
    platform: VideoPlatform
    url: str
    parent_page_url: str
    context: VideoContext = VideoContext.EMBEDDED
    source_url: str | None = None
    video_id: str | None = None
    embed_code: str | None = None
    thumbnail_url: str | None = None
    title: str | None = None
    description: str | None = None
    duration: str | None = None

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "platform": self.platform.value,
            "url": self.url,
            "sourceUrl": self.source_url,
            "embedCode": self.embed_code,
            "videoId": self.video_id,
            "thumbnailUrl": self.thumbnail_url,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "parentPageUrl": self.parent_page_url,
            "context": self.context.value,
        }


@dataclass(slots=True)
class DocumentAsset:
    """A linked office/PDF document. Download fields are set by the downloader."""

    id: str
    href: str
    url: str
    file_name: str
    file_type: DocumentType
    link_text: str
    parent_page_url: str
    local_path: str | None = None
    file_size: int | None = None
    downloaded: bool = False
    download_error: str | None = None

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "href": self.href,
            "url": self.url,
            "localPath": self.local_path,
            "fileName": self.file_name,
            "fileType": self.file_type.value,
            "fileSize": self.file_size,
            "linkText": self.link_text,
            "parentPageUrl": self.parent_page_url,
            "downloaded": self.downloaded,
            "downloadError": self.download_error,
        }


@dataclass(frozen=True, slots=True)
class FormField:
    name: str
    type: str = "text"
    label: str | None = None
    placeholder: str | None = None
    required: bool = False
    options: list[str] | None = None

    def to_json(self) -> JSONDict:
        payload: JSONDict = {
            "name": self.name,
            "type": self.type,
            "label": self.label,
            "placeholder": self.placeholder,
            "required": self.required,
        }
        if self.options is not None:
            payload["options"] = list(self.options)
        return payload


@dataclass(frozen=True, slots=True)
class FormData:
    id: str
    purpose: FormPurpose
    action: str | None
    method: str
    fields: list[FormField]
    submit_button_text: str
    parent_page_url: str

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "purpose": self.purpose.value,
            "action": self.action,
            "method": self.method,
            "fields": [form_field.to_json() for form_field in self.fields],
            "submitButtonText": self.submit_button_text,
            "parentPageUrl": self.parent_page_url,
        }


@dataclass(frozen=True, slots=True)
class CrawledPage:
    """One successfully parsed page. `url` is always the requested URL."""

    url: str
    slug: str
    title: str
    page_type: PageType
    metadata: PageMetadata
    content: PageContent
    images: list[ImageAsset] = field(default_factory=list)
    videos: list[VideoAsset] = field(default_factory=list)
    documents: list[DocumentAsset] = field(default_factory=list)
    forms: list[FormData] = field(default_factory=list)
    structured_data: list[Any] | None = None
    word_count: int = 0
    content_hash: str | None = None
    http_status: int = 200
    final_url: str | None = None
    crawled_at: str = field(default_factory=utc_now_iso)

    @property
    def published_date(self) -> str | None:
        return self.metadata.published_date

    @property
    def last_modified(self) -> str | None:
        return self.metadata.last_modified

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "finalUrl": self.final_url,
            "slug": self.slug,
            "title": self.title,
            "pageType": self.page_type.value,
            "publishedDate": self.published_date,
            "lastModified": self.last_modified,
            "metadata": self.metadata.to_json(),
            "content": self.content.to_json(),
            "seo": {
                "keywords": list(self.metadata.meta_keywords),
                "ogImage": self.metadata.og_image,
                "structuredData": self.structured_data,
            },
            "navigation": {
                "breadcrumb": list(self.metadata.breadcrumb),
                "relatedPages": [],
            },
            "media": {
                "images": [image.to_json() for image in self.images],
                "videos": [video.to_json() for video in self.videos],
                "documents": [document.to_json() for document in self.documents],
            },
            "forms": [form.to_json() for form in self.forms],
            "wordCount": self.word_count,
            "contentHash": self.content_hash,
            "httpStatus": self.http_status,
            "crawledAt": self.crawled_at,
        }


@dataclass(frozen=True, slots=True)
class CrawlError:
    """One entry of the append-only crawl error log."""

    url: str
    error_type: ErrorType
    message: str
    status_code: int | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "errorType": self.error_type.value,
            "message": self.message,
            "statusCode": self.status_code,
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class CrawlProgress:
    """Mutable run counters, periodically flushed as the crash checkpoint."""

    total_pages_discovered: int = 0
    pages_crawled: int = 0
    pages_attempted: int = 0
    pages_remaining: int = 0
    images_found: int = 0
    images_downloaded: int = 0
    videos_found: int = 0
    documents_found: int = 0
    documents_downloaded: int = 0
    errors: list[CrawlError] = field(default_factory=list)
    status: CrawlStatus = CrawlStatus.IDLE
    started_at: str = field(default_factory=utc_now_iso)
    last_updated_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def touch(self) -> None:
        self.last_updated_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "totalPagesDiscovered": self.total_pages_discovered,
            "pagesCrawled": self.pages_crawled,
            "pagesAttempted": self.pages_attempted,
            "pagesRemaining": self.pages_remaining,
            "imagesFound": self.images_found,
            "imagesDownloaded": self.images_downloaded,
            "videosFound": self.videos_found,
            "documentsFound": self.documents_found,
            "documentsDownloaded": self.documents_downloaded,
            "errors": [error.to_json() for error in self.errors],
            "status": self.status.value,
            "startedAt": self.started_at,
            "lastUpdatedAt": self.last_updated_at,
            "finishedAt": self.finished_at,
        }


@dataclass(slots=True)
class NavigationItem:
    label: str
    url: str
    children: list["NavigationItem"] = field(default_factory=list)
    order: int = 0

    def to_json(self) -> JSONDict:
        return {
            "label": self.label,
            "url": self.url,
            "children": [child.to_json() for child in self.children],
            "order": self.order,
        }


@dataclass(slots=True)
class SiteStructure:
    primary_navigation: list[NavigationItem] = field(default_factory=list)
    secondary_navigation: list[NavigationItem] = field(default_factory=list)
    footer_navigation: list[NavigationItem] = field(default_factory=list)
    sitemap_urls: list[str] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        return {
            "primaryNavigation": [item.to_json() for item in self.primary_navigation],
            "secondaryNavigation": [item.to_json() for item in self.secondary_navigation],
            "footerNavigation": [item.to_json() for item in self.footer_navigation],
            "sitemapUrls": list(self.sitemap_urls),
        }


@dataclass(frozen=True, slots=True)
class UrlMapping:
    old_url: str
    new_url: str
    redirect_type: RedirectType = RedirectType.PERMANENT
    notes: str = "Auto-generated"

    def to_json(self) -> JSONDict:
        return {
            "oldUrl": self.old_url,
            "newUrl": self.new_url,
            "redirectType": self.redirect_type.value,
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class ReportSummary:
    total_pages: int
    pages_by_type: dict[str, int]
    total_images: int
    total_videos: int
    total_documents: int
    total_word_count: int
    total_errors: int = 0

    def to_json(self) -> JSONDict:
        return {
            "totalPages": self.total_pages,
            "pagesByType": dict(self.pages_by_type),
            "totalImages": self.total_images,
            "totalVideos": self.total_videos,
            "totalDocuments": self.total_documents,
            "totalWordCount": self.total_word_count,
            "totalErrors": self.total_errors,
        }


@dataclass(frozen=True, slots=True)
class ContentAudit:
    high_value_pages: list[str] = field(default_factory=list)
    outdated_content: list[str] = field(default_factory=list)
    duplicate_content: list[str] = field(default_factory=list)
    missing_metadata: list[str] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        return {
            "highValuePages": list(self.high_value_pages),
            "outdatedContent": list(self.outdated_content),
            "duplicateContent": list(self.duplicate_content),
            "missingMetadata": list(self.missing_metadata),
        }


@dataclass(frozen=True, slots=True)
class MigrationPriority:
    priority1: list[str] = field(default_factory=list)
    priority2: list[str] = field(default_factory=list)
    priority3: list[str] = field(default_factory=list)
    archive: list[str] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        return {
            "priority1": list(self.priority1),
            "priority2": list(self.priority2),
            "priority3": list(self.priority3),
            "archive": list(self.archive),
        }


@dataclass(frozen=True, slots=True)
class MediaOptimization:
    images_needing_compression: list[str] = field(default_factory=list)
    images_needing_alt_text: list[str] = field(default_factory=list)
    broken_media_links: list[str] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        return {
            "imagesNeedingCompression": list(self.images_needing_compression),
            "imagesNeedingAltText": list(self.images_needing_alt_text),
            "brokenMediaLinks": list(self.broken_media_links),
        }


@dataclass(frozen=True, slots=True)
class MigrationReport:
    """Final derived artifact; built once at the end of a run."""

    site_url: str
    crawl_date: str
    summary: ReportSummary
    content_audit: ContentAudit
    migration_priority: MigrationPriority
    url_mapping: list[UrlMapping]
    media_optimization: MediaOptimization
    content_gaps: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_json(self) -> JSONDict:
        return {
            "siteUrl": self.site_url,
            "crawlDate": self.crawl_date,
            "summary": self.summary.to_json(),
            "contentAudit": self.content_audit.to_json(),
            "migrationPriority": self.migration_priority.to_json(),
            "urlMapping": [mapping.to_json() for mapping in self.url_mapping],
            "mediaOptimization": self.media_optimization.to_json(),
            "contentGaps": list(self.content_gaps),
            "recommendations": list(self.recommendations),
        }


__all__ = [
    "CallToAction",
    "ContentAudit",
    "ContentSection",
    "CrawlError",
    "CrawlProgress",
    "CrawlStatus",
    "CrawledPage",
    "DocumentAsset",
    "DocumentType",
    "ErrorType",
    "FetchResult",
    "FormData",
    "FormField",
    "FormPurpose",
    "FrontierItem",
    "HeroBlock",
    "ImageAsset",
    "ImageContext",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "MediaOptimization",
    "MigrationPriority",
    "MigrationReport",
    "NavigationItem",
    "PageContent",
    "PageMetadata",
    "PageType",
    "RedirectType",
    "ReportSummary",
    "SectionType",
    "SiteStructure",
    "UrlMapping",
    "VideoAsset",
    "VideoContext",
    "VideoPlatform",
    "utc_now_iso",
]
