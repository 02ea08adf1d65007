"""End-to-end crawl tests against a scripted in-memory site."""

import csv
import json
from unittest import mock

import pytest

from content_migration.crawler import CrawlPipeline, Fetcher, Storage
from content_migration.crawler.types import ErrorType

from .fakes import FakeResponse, FakeSession, binary_response, html_response, redirect_response


HOME = """
<html><head><title>Example Home</title><meta name="description" content="Home page"></head>
<body>
  <a href="/about">About</a>
  <a href="/contact">Contact</a>
  <a href="/about#team">About again</a>
  <a href="https://other.com/">Elsewhere</a>
  <a href="/files/guide.pdf">Guide</a>
</body></html>
"""

ABOUT = """
<html><head><title>About</title></head>
<body>
  <img src="/logo.png" class="logo">
  <section><h2>History</h2><p>Long story.</p></section>
  <a href="/">Home</a>
</body></html>
"""

CONTACT = """
<html><head><title>Contact</title></head>
<body>
  <form action="/send"><input name="email"><textarea name="message"></textarea></form>
  <a href="/about">About</a>
</body></html>
"""


def fixture_site():
    return {
        "https://example.com/": html_response(HOME),
        "https://example.com/about": html_response(ABOUT),
        "https://example.com/contact": html_response(CONTACT),
        "https://example.com/logo.png": binary_response(b"png-bytes"),
        "https://example.com/files/guide.pdf": binary_response(b"%PDF", content_type="application/pdf"),
    }


def link_hub(count, *, prefix="page"):
    links = "".join(f'<a href="/{prefix}-{index}">{index}</a>' for index in range(count))
    return f"<html><head><title>Hub</title></head><body>{links}</body></html>"


def run_pipeline(config, routes, **kwargs):
    session = FakeSession(routes)
    pipeline = CrawlPipeline(config, fetcher=Fetcher(config, session=session), **kwargs)
    result = pipeline.run()
    return pipeline, session, result


class TestThreePageSite:
    """The `/`, `/about`, `/contact` fixture site."""

    @pytest.fixture
    def crawl(self, make_config):
        config = make_config(max_pages=10)
        pipeline, session, result = run_pipeline(config, fixture_site())
        return pipeline, session, result, pipeline.storage

    def test_page_files(self, crawl):
        _, _, result, storage = crawl

        assert result["progress"]["pagesCrawled"] == 3
        assert (storage.pages_dir / "home.json").exists()
        assert (storage.pages_dir / "about" / "about.json").exists()
        assert (storage.pages_dir / "contact.json").exists()
        assert len(list(storage.pages_dir.rglob("*.json"))) == 3

        about = json.loads((storage.pages_dir / "about" / "about.json").read_text(encoding="utf-8"))
        assert about["url"] == "https://example.com/about"
        assert about["pageType"] == "about"
        assert about["media"]["images"][0]["context"] == "logo"
        assert about["media"]["images"][0]["downloaded"] is True

    def test_each_page_fetched_once(self, crawl):
        _, session, _, _ = crawl
        for url in ("https://example.com/", "https://example.com/about", "https://example.com/contact"):
            assert session.call_count(url) == 1
        assert not any("other.com" in url for url in session.urls_called())

    def test_site_structure_groups(self, crawl):
        _, _, _, storage = crawl

        structure = json.loads(storage.site_structure_path.read_text(encoding="utf-8"))
        assert [item["label"] for item in structure["primaryNavigation"]] == ["About"]
        assert len(structure["sitemapUrls"]) == 3

        navigation = json.loads(storage.navigation_map_path.read_text(encoding="utf-8"))
        assert navigation == structure["primaryNavigation"]

    def test_url_mapping_csv(self, crawl):
        _, _, _, storage = crawl

        with storage.url_mapping_path.open(encoding="utf-8", newline="") as handle:
            rows = list(csv.reader(handle))

        assert rows[0] == ["Old URL", "New URL", "Redirect Type", "Notes"]
        assert len(rows) == 4
        assert rows[1] == ["https://example.com/", "/home", "301", "Auto-generated"]

    def test_reports_and_progress(self, crawl):
        _, _, result, storage = crawl

        progress = json.loads(storage.progress_path.read_text(encoding="utf-8"))
        assert progress["status"] == "completed"
        assert progress["pagesCrawled"] == 3
        assert progress["pagesRemaining"] == 0
        assert progress["imagesDownloaded"] == 1
        assert progress["documentsDownloaded"] == 1
        assert progress["errors"] == []

        report = json.loads(storage.report_json_path.read_text(encoding="utf-8"))
        assert report["summary"]["totalPages"] == 3
        assert report["summary"]["pagesByType"] == {"home": 1, "about": 1, "contact": 1}
        assert report["contentGaps"] == ["No services page found"]
        assert storage.report_markdown_path.read_text(encoding="utf-8").startswith("# Website Migration Report")

        assert json.loads(storage.video_inventory_path.read_text(encoding="utf-8")) == []
        assert list(storage.pdfs_dir.iterdir())
        assert result["report"]["siteUrl"] == "https://example.com"

    def test_contact_form_extracted(self, crawl):
        _, _, _, storage = crawl
        contact = json.loads((storage.pages_dir / "contact.json").read_text(encoding="utf-8"))
        assert contact["forms"][0]["purpose"] == "contact"


class TestBudgets:
    """Page, attempt and depth limits."""

    def test_max_pages(self, make_config):
        config = make_config(max_pages=2)
        routes = {"https://example.com/": html_response(link_hub(5))}
        routes.update({f"https://example.com/page-{i}": html_response("<p>x</p>") for i in range(5)})

        pipeline, session, result = run_pipeline(config, routes)

        assert result["progress"]["pagesCrawled"] == 2
        assert len(pipeline.state.pages) == 2
        assert result["progress"]["pagesRemaining"] == 4

    def test_attempt_budget_stops_error_heavy_crawl(self, make_config):
        config = make_config(max_pages=10, max_attempts=3)
        routes = {"https://example.com/": html_response(link_hub(6, prefix="missing"))}

        pipeline, _, result = run_pipeline(config, routes)

        progress = result["progress"]
        assert progress["pagesAttempted"] == 3
        assert progress["pagesCrawled"] == 1
        assert [error["errorType"] for error in progress["errors"]] == ["404", "404"]

    def test_failed_pages_are_not_retried(self, make_config):
        config = make_config()
        home = '<a href="/gone">Gone</a><a href="/other">Other</a>'
        other = '<a href="/gone">Gone again</a>'
        routes = {
            "https://example.com/": html_response(home),
            "https://example.com/other": html_response(other),
        }

        _, session, result = run_pipeline(config, routes)

        assert session.call_count("https://example.com/gone") == 1
        assert result["progress"]["pagesCrawled"] == 2

    def test_max_depth(self, make_config):
        config = make_config(max_depth=0)
        routes = {"https://example.com/": html_response(link_hub(3))}

        _, session, result = run_pipeline(config, routes)

        assert result["progress"]["pagesCrawled"] == 1
        assert session.call_count("https://example.com/page-0") == 0

    def test_politeness_delay_after_every_attempt(self, make_config):
        sleeps = []
        config = make_config(crawl_delay_ms=250)
        routes = {"https://example.com/": html_response('<a href="/missing">x</a>')}

        run_pipeline(config, routes, sleep=sleeps.append)

        assert sleeps == [0.25, 0.25]


class TestResilience:
    """Per-page and per-asset failures never stop the crawl."""

    def test_asset_failure_keeps_page(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<img src="/broken.png" alt="x"><a href="/next">Next</a>'),
            "https://example.com/next": html_response("<title>Next</title><p>fine</p>"),
        }

        pipeline, _, result = run_pipeline(config, routes)

        home = pipeline.state.pages[0]
        assert home.images[0].downloaded is False
        assert home.images[0].download_error == "HTTP 404"
        assert (pipeline.storage.pages_dir / "home.json").exists()
        assert result["progress"]["pagesCrawled"] == 2

        errors = result["progress"]["errors"]
        assert len(errors) == 1
        assert errors[0]["url"] == "https://example.com/broken.png"
        assert errors[0]["errorType"] == ErrorType.NOT_FOUND.value

    def test_redirect_keeps_original_url(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<a href="/old">Old</a><a href="/new">New</a>'),
            "https://example.com/old": redirect_response("/new"),
            "https://example.com/new": html_response("<title>New Page</title><p>moved</p>"),
        }

        pipeline, session, _ = run_pipeline(config, routes)

        urls = [page.url for page in pipeline.state.pages]
        assert urls == ["https://example.com/", "https://example.com/old"]

        moved = pipeline.state.pages[1]
        assert moved.title == "New Page"
        assert moved.final_url == "https://example.com/new"
        assert session.call_count("https://example.com/new") == 1

    def test_redirect_to_crawled_page_is_not_recorded_twice(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<a href="/about">About</a><a href="/old-about">Old</a>'),
            "https://example.com/about": html_response("<title>About</title>"),
            "https://example.com/old-about": redirect_response("/about"),
        }

        pipeline, _, result = run_pipeline(config, routes)

        assert [page.url for page in pipeline.state.pages] == [
            "https://example.com/",
            "https://example.com/about",
        ]
        assert len(list(pipeline.storage.pages_dir.rglob("*.json"))) == 2
        assert result["progress"]["pagesAttempted"] == 3
        assert result["progress"]["errors"] == []

    def test_unknown_charset_does_not_stop_crawl(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<a href="/bad">Bad</a><a href="/good">Good</a>'),
            "https://example.com/bad": FakeResponse(
                200,
                "<title>Odd</title><p>text</p>",
                headers={"Content-Type": "text/html; charset=x-user-defined-bogus"},
            ),
            "https://example.com/good": html_response("<title>Good</title>"),
        }

        pipeline, session, result = run_pipeline(config, routes)

        assert [page.url for page in pipeline.state.pages] == [
            "https://example.com/",
            "https://example.com/bad",
            "https://example.com/good",
        ]
        assert pipeline.state.pages[1].title == "Odd"
        assert session.call_count("https://example.com/good") == 1
        assert result["progress"]["status"] == "completed"
        assert result["progress"]["pagesCrawled"] == 3

    def test_invalid_page_redirect_is_logged(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<a href="/bad">Bad</a><a href="/good">Good</a>'),
            "https://example.com/bad": redirect_response("http://[broken/x"),
            "https://example.com/good": html_response("<title>Good</title>"),
        }

        pipeline, session, result = run_pipeline(config, routes)

        assert session.call_count("https://example.com/good") == 1
        assert [page.url for page in pipeline.state.pages] == [
            "https://example.com/",
            "https://example.com/good",
        ]

        progress = result["progress"]
        assert progress["status"] == "completed"
        assert len(progress["errors"]) == 1
        assert progress["errors"][0]["url"] == "https://example.com/bad"
        assert progress["errors"][0]["errorType"] == ErrorType.NETWORK.value
        assert "Invalid redirect location" in progress["errors"][0]["message"]

    def test_invalid_image_redirect_is_logged(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<img src="/hop.png" alt="x"><a href="/good">Good</a>'),
            "https://example.com/hop.png": redirect_response("http://[broken/hop.png"),
            "https://example.com/good": html_response("<title>Good</title>"),
        }

        pipeline, session, result = run_pipeline(config, routes)

        assert session.call_count("https://example.com/good") == 1
        assert result["progress"]["pagesCrawled"] == 2

        image = pipeline.state.pages[0].images[0]
        assert image.downloaded is False
        assert "Invalid redirect location" in image.download_error

        errors = result["progress"]["errors"]
        assert [error["url"] for error in errors] == ["https://example.com/hop.png"]
        assert errors[0]["errorType"] == ErrorType.NETWORK.value

    def test_slug_collisions_get_suffix(self, make_config):
        config = make_config()
        routes = {
            "https://example.com/": html_response('<a href="/about">A</a><a href="/about.html">B</a>'),
            "https://example.com/about": html_response("<title>About</title>"),
            "https://example.com/about.html": html_response("<title>About (legacy)</title>"),
        }

        pipeline, _, _ = run_pipeline(config, routes)

        assert [page.slug for page in pipeline.state.pages] == ["home", "about", "about-2"]
        assert (pipeline.storage.pages_dir / "about" / "about-2.json").exists()

    def test_non_html_page_is_logged(self, make_config):
        config = make_config(exclude_patterns=[])
        routes = {
            "https://example.com/": html_response('<a href="/feed">Feed</a>'),
            "https://example.com/feed": binary_response(b"{}", content_type="application/json"),
        }

        _, _, result = run_pipeline(config, routes)

        errors = result["progress"]["errors"]
        assert [error["errorType"] for error in errors] == ["other"]
        assert "Unsupported content type" in errors[0]["message"]


class TestCheckpoints:
    """Progress flushing and run status."""

    def test_checkpoint_cadence(self, make_config):
        config = make_config(checkpoint_every=2)
        storage = Storage(config.output_dir)

        with mock.patch.object(storage, "save_progress", wraps=storage.save_progress) as save:
            run_pipeline(config, fixture_site(), storage=storage)

        # start, after the second page, and at completion
        assert save.call_count == 3

    def test_unexpected_failure_marks_run_failed(self, make_config):
        config = make_config()
        session = FakeSession(fixture_site())
        fetcher = Fetcher(config, session=session)
        pipeline = CrawlPipeline(config, fetcher=fetcher)

        with mock.patch.object(fetcher, "fetch", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError, match="boom"):
                pipeline.run()

        progress = json.loads(pipeline.storage.progress_path.read_text(encoding="utf-8"))
        assert progress["status"] == "failed"
        assert progress["finishedAt"] is not None
