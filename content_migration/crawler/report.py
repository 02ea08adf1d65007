"""Derived end-of-run artifacts: site structure, URL mapping, migration report.

Everything here is computed from in-memory crawl results; nothing re-reads the
per-page files.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence
from urllib.parse import urlsplit

from .storage import PAGE_SUBDIR_BY_TYPE
from .types import (
    ContentAudit,
    CrawlError,
    CrawledPage,
    DocumentAsset,
    ImageAsset,
    MediaOptimization,
    MigrationPriority,
    MigrationReport,
    NavigationItem,
    PageType,
    RedirectType,
    ReportSummary,
    SiteStructure,
    UrlMapping,
    VideoAsset,
    utc_now_iso,
)


@dataclass(frozen=True, slots=True)
class ReportRules:
    """Thresholds and priority buckets used to derive the migration report."""

    high_value_limit: int = 10
    priority1: tuple[PageType, ...] = (PageType.HOME, PageType.CONTACT, PageType.SERVICES)
    priority2: tuple[PageType, ...] = (PageType.ABOUT, PageType.TEAM, PageType.CASE_STUDY)
    priority3: tuple[PageType, ...] = (PageType.BLOG, PageType.RESOURCES)
    outdated_after_days: int = 730
    compression_threshold_bytes: int = 500 * 1024
    expected_page_types: tuple[PageType, ...] = (
        PageType.HOME,
        PageType.ABOUT,
        PageType.SERVICES,
        PageType.CONTACT,
    )


DEFAULT_RULES = ReportRules()


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


def _parse_iso_utc(value: str | None) -> datetime | None:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_site_structure(pages: Sequence[CrawledPage]) -> SiteStructure:
    """Group pages into navigation sections by page type.

    Only page types that own a `pages/` subdirectory form a group; the rest
    sit at the site root and appear in `sitemap_urls` only.
    """

    grouped: dict[PageType, list[CrawledPage]] = {}
    for page in pages:
        if page.page_type in PAGE_SUBDIR_BY_TYPE:
            grouped.setdefault(page.page_type, []).append(page)

    navigation = [
        NavigationItem(
            label=page_type.value.capitalize(),
            url=f"/{PAGE_SUBDIR_BY_TYPE[page_type]}",
            children=[
                NavigationItem(label=page.title, url=page.url, order=index)
                for index, page in enumerate(group)
            ],
            order=order,
        )
        for order, (page_type, group) in enumerate(grouped.items())
    ]

    return SiteStructure(
        primary_navigation=navigation,
        sitemap_urls=[page.url for page in pages],
    )


def build_url_mappings(pages: Sequence[CrawledPage]) -> list[UrlMapping]:
    mappings: list[UrlMapping] = []
    for page in pages:
        new_url = f"/{page.slug}"
        old_path = urlsplit(page.url).path.rstrip("/") or "/"
        if old_path == new_url:
            mappings.append(
                UrlMapping(
                    old_url=page.url,
                    new_url=new_url,
                    redirect_type=RedirectType.NONE,
                    notes="Path unchanged",
                )
            )
        else:
            mappings.append(UrlMapping(old_url=page.url, new_url=new_url))
    return mappings


def _priority_buckets(pages: Sequence[CrawledPage], rules: ReportRules) -> MigrationPriority:
    buckets: dict[str, list[str]] = {"p1": [], "p2": [], "p3": [], "archive": []}
    for page in pages:
        if page.page_type in rules.priority1:
            buckets["p1"].append(page.url)
        elif page.page_type in rules.priority2:
            buckets["p2"].append(page.url)
        elif page.page_type in rules.priority3:
            buckets["p3"].append(page.url)
        else:
            buckets["archive"].append(page.url)
    return MigrationPriority(
        priority1=buckets["p1"],
        priority2=buckets["p2"],
        priority3=buckets["p3"],
        archive=buckets["archive"],
    )


def _outdated_pages(pages: Sequence[CrawledPage], rules: ReportRules, now: datetime) -> list[str]:
    cutoff = now - timedelta(days=rules.outdated_after_days)
    outdated: list[str] = []
    for page in pages:
        dated = _parse_iso_utc(page.last_modified) or _parse_iso_utc(page.published_date)
        if dated is not None and dated < cutoff:
            outdated.append(page.url)
    return outdated


def _duplicate_pages(pages: Sequence[CrawledPage]) -> list[str]:
    """Pages whose text repeats an earlier page's; the first copy is kept."""

    seen: set[str] = set()
    duplicates: list[str] = []
    for page in pages:
        if not page.content_hash:
            continue
        if page.content_hash in seen:
            duplicates.append(page.url)
        else:
            seen.add(page.content_hash)
    return duplicates


def _content_gaps(pages: Sequence[CrawledPage], rules: ReportRules) -> list[str]:
    found = {page.page_type for page in pages}
    return [
        f"No {page_type.value} page found"
        for page_type in rules.expected_page_types
        if page_type not in found
    ]


def _recommendations(
    *,
    audit: ContentAudit,
    media: MediaOptimization,
    gaps: list[str],
    error_count: int,
    rules: ReportRules,
) -> list[str]:
    recommendations: list[str] = []

    if audit.missing_metadata:
        recommendations.append(
            f"Add meta descriptions to {len(audit.missing_metadata)} page(s) missing them"
        )
    if media.images_needing_alt_text:
        recommendations.append(
            f"Add alt text to {len(media.images_needing_alt_text)} image(s) missing it"
        )
    if media.broken_media_links:
        recommendations.append(
            f"Fix or replace {len(media.broken_media_links)} broken media link(s)"
        )
    if media.images_needing_compression:
        recommendations.append(
            f"Compress {len(media.images_needing_compression)} image(s) larger than "
            f"{rules.compression_threshold_bytes // 1024} KB"
        )
    if audit.duplicate_content:
        recommendations.append(
            f"Consolidate {len(audit.duplicate_content)} page(s) with duplicate content"
        )
    if audit.outdated_content:
        recommendations.append(
            f"Update {len(audit.outdated_content)} page(s) not modified in over "
            f"{rules.outdated_after_days} days before migration"
        )
    if gaps:
        recommendations.append("Plan content for missing page types before launch")
    if error_count:
        recommendations.append(f"Investigate {error_count} crawl error(s) before migration")

    recommendations.append("Verify all redirects are properly configured")
    return recommendations


def build_migration_report(
    *,
    site_url: str,
    pages: Sequence[CrawledPage],
    images: Sequence[ImageAsset],
    videos: Sequence[VideoAsset],
    documents: Sequence[DocumentAsset],
    errors: Sequence[CrawlError] = (),
    rules: ReportRules | None = None,
    now: datetime | None = None,
) -> MigrationReport:
    """Derive the final report from the run's pages and assets."""

    rules = rules or DEFAULT_RULES
    now = now or datetime.now(timezone.utc)

    pages_by_type = Counter(page.page_type.value for page in pages)
    by_word_count = sorted(pages, key=lambda page: page.word_count, reverse=True)

    audit = ContentAudit(
        high_value_pages=[page.url for page in by_word_count[: rules.high_value_limit]],
        outdated_content=_outdated_pages(pages, rules, now),
        duplicate_content=_duplicate_pages(pages),
        missing_metadata=[page.url for page in pages if not page.metadata.meta_description],
    )

    media = MediaOptimization(
        images_needing_compression=_unique(
            image.source_url
            for image in images
            if image.downloaded
            and image.file_size is not None
            and image.file_size > rules.compression_threshold_bytes
        ),
        images_needing_alt_text=_unique(image.source_url for image in images if not image.alt),
        broken_media_links=_unique(
            [image.source_url for image in images if image.download_error is not None]
            + [document.url for document in documents if document.download_error is not None]
        ),
    )

    gaps = _content_gaps(pages, rules)

    return MigrationReport(
        site_url=site_url,
        crawl_date=utc_now_iso(),
        summary=ReportSummary(
            total_pages=len(pages),
            pages_by_type=dict(pages_by_type),
            total_images=len(images),
            total_videos=len(videos),
            total_documents=len(documents),
            total_word_count=sum(page.word_count for page in pages),
            total_errors=len(errors),
        ),
        content_audit=audit,
        migration_priority=_priority_buckets(pages, rules),
        url_mapping=build_url_mappings(pages),
        media_optimization=media,
        content_gaps=gaps,
        recommendations=_recommendations(
            audit=audit,
            media=media,
            gaps=gaps,
            error_count=len(errors),
            rules=rules,
        ),
    )


def _bullets(values: Sequence[str], empty: str = "None") -> str:
    if not values:
        return empty
    return "\n".join(f"- {value}" for value in values)


def format_markdown(report: MigrationReport) -> str:
    """Render the human-readable migration report."""

    summary = report.summary
    audit = report.content_audit
    priority = report.migration_priority
    media = report.media_optimization

    pages_by_type = "\n".join(
        f"- **{page_type}**: {count}" for page_type, count in summary.pages_by_type.items()
    ) or "None"
    alt_text = (
        f"{len(media.images_needing_alt_text)} images need alt text"
        if media.images_needing_alt_text
        else "All images have alt text"
    )
    recommendations = "\n".join(
        f"{index}. {text}" for index, text in enumerate(report.recommendations, start=1)
    )

    return f"""# Website Migration Report

## Summary

- **Site URL**: {report.site_url}
- **Crawl Date**: {report.crawl_date}
- **Total Pages**: {summary.total_pages}
- **Total Images**: {summary.total_images}
- **Total Videos**: {summary.total_videos}
- **Total Documents**: {summary.total_documents}
- **Total Word Count**: {summary.total_word_count:,}
- **Crawl Errors**: {summary.total_errors}

## Pages by Type

{pages_by_type}

## Migration Priority

### Priority 1 (Critical)
{_bullets(priority.priority1)}

### Priority 2 (Important)
{_bullets(priority.priority2)}

### Priority 3 (Supporting)
{_bullets(priority.priority3)}

### Archive
{_bullets(priority.archive)}

## Content Audit

### High-Value Pages (by content volume)
{_bullets(audit.high_value_pages)}

### Pages Missing Meta Description
{_bullets(audit.missing_metadata)}

### Outdated Content
{_bullets(audit.outdated_content)}

### Duplicate Content
{_bullets(audit.duplicate_content)}

## Media Optimization

### Images Needing Alt Text
{alt_text}

### Images Needing Compression
{_bullets(media.images_needing_compression)}

### Broken Media Links
{_bullets(media.broken_media_links, empty="No broken media links")}

## Content Gaps

{_bullets(report.content_gaps)}

## Recommendations

{recommendations}

## Next Steps

1. Review this report and the extracted content
2. Clean up and enhance content as needed
3. Import content into the new platform
4. Configure URL redirects from `url-mapping.csv`
5. Test all pages and media
6. Verify SEO metadata is preserved

---

*Generated by content-crawl*
"""


__all__ = [
    "DEFAULT_RULES",
    "ReportRules",
    "build_migration_report",
    "build_site_structure",
    "build_url_mappings",
    "format_markdown",
]
