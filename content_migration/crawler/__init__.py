"""Crawler package: config, shared types, and pipeline components."""

from .config import CrawlConfig, default_include_pattern, load_config, save_config
from .downloader import AssetDownloader
from .errors import (
    CrawlerError,
    FetchTimeoutError,
    HTTPStatusError,
    NetworkError,
    ParseError,
    RobotsDisallowedError,
    TooManyRedirectsError,
    UnsupportedContentError,
    classify_error,
)
from .fetcher import Fetcher
from .frontier import EnqueueResult, EnqueueStatus, Frontier
from .parsers import HTMLParser, HTMLParserConfig, ParsedPage
from .pipeline import CrawlPipeline, CrawlState
from .progress import ProgressTracker
from .report import (
    ReportRules,
    build_migration_report,
    build_site_structure,
    build_url_mappings,
    format_markdown,
)
from .storage import Storage
from .types import (
    CrawlError,
    CrawledPage,
    CrawlProgress,
    CrawlStatus,
    DocumentAsset,
    ErrorType,
    FetchResult,
    FormData,
    FrontierItem,
    ImageAsset,
    MigrationReport,
    PageType,
    VideoAsset,
    utc_now_iso,
)
from .url import extract_links_from_html, normalize_url, resolve_url, slug_for_url

__all__ = [
    "AssetDownloader",
    "CrawlConfig",
    "CrawlError",
    "CrawlPipeline",
    "CrawlProgress",
    "CrawlState",
    "CrawlStatus",
    "CrawledPage",
    "CrawlerError",
    "DocumentAsset",
    "EnqueueResult",
    "EnqueueStatus",
    "ErrorType",
    "FetchResult",
    "FetchTimeoutError",
    "Fetcher",
    "FormData",
    "Frontier",
    "FrontierItem",
    "HTMLParser",
    "HTMLParserConfig",
    "HTTPStatusError",
    "ImageAsset",
    "MigrationReport",
    "NetworkError",
    "PageType",
    "ParseError",
    "ParsedPage",
    "ProgressTracker",
    "ReportRules",
    "RobotsDisallowedError",
    "Storage",
    "TooManyRedirectsError",
    "UnsupportedContentError",
    "VideoAsset",
    "build_migration_report",
    "build_site_structure",
    "build_url_mappings",
    "classify_error",
    "default_include_pattern",
    "extract_links_from_html",
    "format_markdown",
    "load_config",
    "normalize_url",
    "resolve_url",
    "save_config",
    "slug_for_url",
    "utc_now_iso",
]
