"""End-to-end crawl pipeline orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable

from .config import CrawlConfig
from .downloader import AssetDownloader
from .errors import CrawlerError
from .fetcher import Fetcher
from .frontier import Frontier
from .parsers import HTMLParser
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
    CrawledPage,
    CrawlStatus,
    DocumentAsset,
    FrontierItem,
    ImageAsset,
    MigrationReport,
    VideoAsset,
)
from .url import normalize_url, slug_for_url


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CrawlState:
    """All mutable state of one crawl run, owned by a single pipeline."""

    frontier: Frontier
    progress: ProgressTracker
    pages: list[CrawledPage] = field(default_factory=list)
    images: list[ImageAsset] = field(default_factory=list)
    videos: list[VideoAsset] = field(default_factory=list)
    documents: list[DocumentAsset] = field(default_factory=list)
    slugs: set[str] = field(default_factory=set)

    @property
    def attempts(self) -> int:
        return self.progress.progress.pages_attempted

    def unique_slug(self, base: str) -> str:
        """Return `base`, or `base-N` when an earlier page already took it."""

        if base not in self.slugs:
            return base
        suffix = 2
        while f"{base}-{suffix}" in self.slugs:
            suffix += 1
        return f"{base}-{suffix}"

    def add_page(self, page: CrawledPage) -> None:
        self.pages.append(page)
        self.slugs.add(page.slug)
        self.images.extend(page.images)
        self.videos.extend(page.videos)
        self.documents.extend(page.documents)


class CrawlPipeline:
    """Orchestrates frontier, fetcher, parser, downloader, storage, and reports.

    One fetch is in flight at a time. The loop stops when the frontier is
    empty, `max_pages` pages were crawled, or `attempt_budget` fetches were
    attempted. Per-page and per-asset failures are logged and skipped.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        storage: Storage | None = None,
        fetcher: Fetcher | None = None,
        html_parser: HTMLParser | None = None,
        rules: ReportRules | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config

        self.storage = storage or Storage(config.output_dir)
        self.fetcher = fetcher or Fetcher(config)
        self.html_parser = html_parser or HTMLParser()
        self.rules = rules or ReportRules()
        self._sleep = sleep

        self._owns_fetcher = fetcher is None
        self.state: CrawlState | None = None
        self.report: MigrationReport | None = None

    def new_state(self) -> CrawlState:
        return CrawlState(frontier=Frontier(self.config), progress=ProgressTracker())

    def run(self) -> dict[str, Any]:
        """Crawl the site and write every output artifact."""

        state = self.new_state()
        self.state = state
        downloader = AssetDownloader(
            self.config,
            fetcher=self.fetcher,
            storage=self.storage,
            progress=state.progress,
        )

        state.progress.start()
        state.frontier.seed()
        state.progress.record_frontier(state.frontier)
        self.storage.save_progress(state.progress.progress)

        LOGGER.info(
            "Starting crawl of %s (max_pages=%d, max_depth=%d, attempt_budget=%d)",
            self.config.start_url,
            self.config.max_pages,
            self.config.max_depth,
            self.config.attempt_budget,
        )

        try:
            self._crawl(state, downloader)
            self.report = self._write_outputs(state)
        except (Exception, KeyboardInterrupt):
            state.progress.finish(CrawlStatus.FAILED)
            self.storage.save_progress(state.progress.progress)
            raise
        finally:
            if self._owns_fetcher:
                self.fetcher.close()

        state.progress.finish(CrawlStatus.COMPLETED)
        self.storage.save_progress(state.progress.progress)

        return {
            "paths": self.storage.paths,
            "progress": state.progress.to_json(),
            "frontier": state.frontier.snapshot(),
            "error_counts": state.progress.error_counts(),
            "report": self.report.to_json(),
        }

    def _crawl(self, state: CrawlState, downloader: AssetDownloader) -> None:
        frontier = state.frontier

        while not frontier.empty():
            if len(state.pages) >= self.config.max_pages:
                LOGGER.info("Reached max_pages=%d", self.config.max_pages)
                break
            if state.attempts >= self.config.attempt_budget:
                LOGGER.info("Reached attempt budget of %d fetches", self.config.attempt_budget)
                break

            item = frontier.dequeue_next()
            if item is None:
                break

            self._crawl_one(state, downloader, item)
            state.progress.record_frontier(frontier)

            # Politeness delay after every attempt, success or failure.
            if self.config.crawl_delay_ms > 0:
                self._sleep(self.config.crawl_delay_seconds)

    def _crawl_one(self, state: CrawlState, downloader: AssetDownloader, item: FrontierItem) -> None:
        progress = state.progress
        progress.record_attempt()
        LOGGER.info(
            "Crawling [%d/%d] %s (depth %d)",
            len(state.pages) + 1,
            self.config.max_pages,
            item.url,
            item.depth,
        )

        try:
            fetch_result = self.fetcher.fetch(item.url)
        except CrawlerError as exc:
            progress.record_exception(item.url, exc)
            return

        final_url = normalize_url(fetch_result.final_url) or fetch_result.final_url
        if final_url != item.url:
            if state.frontier.is_visited(final_url):
                LOGGER.info("  Redirect target already visited: %s", final_url)
                return
            state.frontier.mark_visited(final_url)

        try:
            parsed = self.html_parser.parse(
                url=item.url,
                html=fetch_result.text,
                final_url=fetch_result.final_url,
                scope_url=self.config.start_url,
                slug=state.unique_slug(slug_for_url(item.url)),
                http_status=fetch_result.status_code,
            )
        except CrawlerError as exc:
            progress.record_exception(item.url, exc)
            return

        page = parsed.page
        state.frontier.enqueue_many(
            parsed.out_links,
            depth=item.depth + 1,
            referrer=fetch_result.final_url,
        )

        downloader.download_page_assets(page)

        try:
            self.storage.save_page(page)
        except OSError as exc:
            progress.record_exception(item.url, exc, prefix="Failed to save page")
            return

        state.add_page(page)
        progress.record_page(page)

        LOGGER.info(
            "  Title: %s | Type: %s | Images: %d, Videos: %d, Documents: %d",
            page.title,
            page.page_type.value,
            len(page.images),
            len(page.videos),
            len(page.documents),
        )

        if progress.progress.pages_crawled % self.config.checkpoint_every == 0:
            self.storage.save_progress(progress.progress)

    def _write_outputs(self, state: CrawlState) -> MigrationReport:
        LOGGER.info("Generating output files in %s", self.storage.output_dir)

        self.storage.save_video_inventory(state.videos)
        self.storage.save_site_structure(build_site_structure(state.pages))
        self.storage.save_url_mapping(build_url_mappings(state.pages))

        report = build_migration_report(
            site_url=self.config.start_url,
            pages=state.pages,
            images=state.images,
            videos=state.videos,
            documents=state.documents,
            errors=state.progress.errors,
            rules=self.rules,
        )
        self.storage.save_report(report, format_markdown(report))
        return report


__all__ = [
    "CrawlPipeline",
    "CrawlState",
]
