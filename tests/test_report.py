"""Tests for site structure, URL mapping and the migration report."""

from datetime import datetime, timezone

import pytest

from content_migration.crawler import (
    ReportRules,
    build_migration_report,
    build_site_structure,
    build_url_mappings,
    format_markdown,
)
from content_migration.crawler.types import (
    CrawlError,
    CrawledPage,
    DocumentAsset,
    DocumentType,
    ErrorType,
    ImageAsset,
    PageContent,
    PageMetadata,
    PageType,
    RedirectType,
)
from content_migration.crawler.url import slug_for_url


NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def make_page(
    url,
    page_type,
    *,
    title=None,
    word_count=100,
    description="A page",
    content_hash=None,
    last_modified=None,
):
    slug = slug_for_url(url)
    title = title or slug.title()
    return CrawledPage(
        url=url,
        slug=slug,
        title=title,
        page_type=page_type,
        metadata=PageMetadata(
            url=url,
            slug=slug,
            title=title,
            meta_description=description,
            last_modified=last_modified,
        ),
        content=PageContent(),
        word_count=word_count,
        content_hash=content_hash or url,
    )


def make_image(url, *, alt="Alt", file_size=None, downloaded=False, error=None):
    return ImageAsset(
        id="img-" + url.rsplit("/", 1)[-1],
        src=url,
        source_url=url,
        parent_page_url="https://example.com/",
        alt=alt,
        file_size=file_size,
        downloaded=downloaded,
        download_error=error,
    )


@pytest.fixture
def pages():
    return [
        make_page("https://example.com/", PageType.HOME, word_count=300),
        make_page("https://example.com/about", PageType.ABOUT, word_count=500),
        make_page("https://example.com/blog/post", PageType.BLOG, word_count=50, description=None),
        make_page(
            "https://example.com/blog/old",
            PageType.BLOG,
            word_count=80,
            last_modified="2019-01-01T00:00:00Z",
        ),
        make_page("https://example.com/careers", PageType.OTHER, word_count=10, content_hash="same"),
        make_page("https://example.com/jobs", PageType.OTHER, word_count=10, content_hash="same"),
    ]


class TestSiteStructure:
    """Navigation grouped by page type."""

    def test_only_directory_types_form_groups(self, pages):
        structure = build_site_structure(pages)

        labels = [item.label for item in structure.primary_navigation]
        assert labels == ["About", "Blog"]
        assert structure.primary_navigation[0].url == "/about"
        assert [child.url for child in structure.primary_navigation[1].children] == [
            "https://example.com/blog/post",
            "https://example.com/blog/old",
        ]
        assert structure.sitemap_urls == [page.url for page in pages]

    def test_json_shape(self, pages):
        payload = build_site_structure(pages).to_json()
        assert set(payload) == {"primaryNavigation", "secondaryNavigation", "footerNavigation", "sitemapUrls"}


class TestUrlMappings:
    """Old URL to new slug redirects."""

    def test_mappings(self, pages):
        mappings = {mapping.old_url: mapping for mapping in build_url_mappings(pages)}

        home = mappings["https://example.com/"]
        assert home.new_url == "/home"
        assert home.redirect_type == RedirectType.PERMANENT

        about = mappings["https://example.com/about"]
        assert about.new_url == "/about"
        assert about.redirect_type == RedirectType.NONE

        post = mappings["https://example.com/blog/post"]
        assert post.new_url == "/blog-post"
        assert post.redirect_type == RedirectType.PERMANENT
        assert len(mappings) == len(pages)


class TestMigrationReport:
    """Report derivation rules."""

    def test_summary_consistency(self, pages):
        report = build_migration_report(
            site_url="https://example.com",
            pages=pages,
            images=[],
            videos=[],
            documents=[],
            now=NOW,
        )

        summary = report.summary
        assert summary.total_pages == len(pages)
        assert sum(summary.pages_by_type.values()) == summary.total_pages
        assert summary.total_word_count == sum(page.word_count for page in pages)

        priority = report.migration_priority
        buckets = priority.priority1 + priority.priority2 + priority.priority3 + priority.archive
        assert sorted(buckets) == sorted(page.url for page in pages)

        assert priority.priority1 == ["https://example.com/"]
        assert priority.priority2 == ["https://example.com/about"]
        assert priority.priority3 == ["https://example.com/blog/post", "https://example.com/blog/old"]
        assert priority.archive == ["https://example.com/careers", "https://example.com/jobs"]

    def test_content_audit(self, pages):
        report = build_migration_report(
            site_url="https://example.com",
            pages=pages,
            images=[],
            videos=[],
            documents=[],
            rules=ReportRules(high_value_limit=2),
            now=NOW,
        )

        audit = report.content_audit
        assert audit.high_value_pages == ["https://example.com/about", "https://example.com/"]
        assert audit.missing_metadata == ["https://example.com/blog/post"]
        assert audit.outdated_content == ["https://example.com/blog/old"]
        assert audit.duplicate_content == ["https://example.com/jobs"]

    def test_media_optimization(self, pages):
        images = [
            make_image("https://example.com/big.jpg", file_size=900 * 1024, downloaded=True),
            make_image("https://example.com/small.jpg", file_size=10, downloaded=True),
            make_image("https://example.com/noalt.jpg", alt=None, downloaded=True, file_size=10),
            make_image("https://example.com/broken.jpg", error="HTTP 404"),
        ]
        documents = [
            DocumentAsset(
                id="doc-1",
                href="/guide.pdf",
                url="https://example.com/guide.pdf",
                file_name="guide.pdf",
                file_type=DocumentType.PDF,
                link_text="Guide",
                parent_page_url="https://example.com/",
                download_error="Request timeout",
            )
        ]

        report = build_migration_report(
            site_url="https://example.com",
            pages=pages,
            images=images,
            videos=[],
            documents=documents,
            now=NOW,
        )

        media = report.media_optimization
        assert media.images_needing_compression == ["https://example.com/big.jpg"]
        assert media.images_needing_alt_text == ["https://example.com/noalt.jpg"]
        assert media.broken_media_links == ["https://example.com/broken.jpg", "https://example.com/guide.pdf"]
        assert report.summary.total_images == 4
        assert report.summary.total_documents == 1

    def test_content_gaps_and_recommendations(self, pages):
        errors = [CrawlError(url="https://example.com/x", error_type=ErrorType.NOT_FOUND, message="HTTP 404")]
        report = build_migration_report(
            site_url="https://example.com",
            pages=pages,
            images=[],
            videos=[],
            documents=[],
            errors=errors,
            now=NOW,
        )

        assert report.content_gaps == ["No services page found", "No contact page found"]
        assert report.summary.total_errors == 1
        assert report.recommendations[-1] == "Verify all redirects are properly configured"
        assert any("meta descriptions" in text for text in report.recommendations)
        assert any("crawl error" in text for text in report.recommendations)

    def test_empty_crawl(self):
        report = build_migration_report(
            site_url="https://example.com",
            pages=[],
            images=[],
            videos=[],
            documents=[],
            now=NOW,
        )
        assert report.summary.total_pages == 0
        assert len(report.content_gaps) == 4
        assert report.recommendations[-1] == "Verify all redirects are properly configured"

    def test_json_and_markdown(self, pages):
        report = build_migration_report(
            site_url="https://example.com",
            pages=pages,
            images=[],
            videos=[],
            documents=[],
            now=NOW,
        )

        payload = report.to_json()
        assert payload["summary"]["totalPages"] == 6
        assert payload["urlMapping"][0] == {
            "oldUrl": "https://example.com/",
            "newUrl": "/home",
            "redirectType": "301",
            "notes": "Auto-generated",
        }

        markdown = format_markdown(report)
        assert markdown.startswith("# Website Migration Report")
        assert "- **Total Pages**: 6" in markdown
        assert "- **blog**: 2" in markdown
        assert "No broken media links" in markdown
