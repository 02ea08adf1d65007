"""Crawl progress counters and the append-only error log."""

from __future__ import annotations

from collections import Counter
import logging
from typing import Any

from .errors import classify_error
from .frontier import Frontier
from .types import (
    CrawlError,
    CrawledPage,
    CrawlProgress,
    CrawlStatus,
    DocumentAsset,
    ErrorType,
    ImageAsset,
    utc_now_iso,
)


LOGGER = logging.getLogger(__name__)


class ProgressTracker:
    """Own one run's `CrawlProgress`.

    The crawl is sequential, so counters are updated in place without
    locking. Status moves `idle -> running -> completed | failed`.
    """

    def __init__(self, base: CrawlProgress | None = None) -> None:
        self._progress = base or CrawlProgress()

    @property
    def progress(self) -> CrawlProgress:
        return self._progress

    @property
    def errors(self) -> list[CrawlError]:
        return list(self._progress.errors)

    @property
    def status(self) -> CrawlStatus:
        return self._progress.status

    def start(self) -> None:
        self._progress.status = CrawlStatus.RUNNING
        self._progress.started_at = utc_now_iso()
        self._progress.finished_at = None
        self._progress.touch()

    def record_attempt(self) -> None:
        self._progress.pages_attempted += 1
        self._progress.touch()

    def record_frontier(self, frontier: Frontier) -> None:
        self._progress.total_pages_discovered = frontier.discovered_count
        self._progress.pages_remaining = frontier.remaining_count
        self._progress.touch()

    def record_page(self, page: CrawledPage) -> None:
        """Count one successfully crawled page and the assets found on it."""

        self._progress.pages_crawled += 1
        self._progress.images_found += len(page.images)
        self._progress.videos_found += len(page.videos)
        self._progress.documents_found += len(page.documents)
        self._progress.touch()

    def record_download(self, asset: ImageAsset | DocumentAsset) -> None:
        if not asset.downloaded:
            return
        if isinstance(asset, ImageAsset):
            self._progress.images_downloaded += 1
        else:
            self._progress.documents_downloaded += 1
        self._progress.touch()

    def record_error(
        self,
        url: str,
        error_type: ErrorType,
        message: str,
        *,
        status_code: int | None = None,
    ) -> CrawlError:
        error = CrawlError(
            url=url,
            error_type=error_type,
            message=message,
            status_code=status_code,
        )
        self._progress.errors.append(error)
        self._progress.touch()
        LOGGER.warning("Error [%s] %s: %s", error_type.value, url, message)
        return error

    def record_exception(self, url: str, exc: BaseException, *, prefix: str = "") -> CrawlError:
        """Classify `exc` and append it to the error log."""

        error_type, status_code = classify_error(exc)
        message = str(exc) or exc.__class__.__name__
        if prefix:
            message = f"{prefix}: {message}"
        return self.record_error(url, error_type, message, status_code=status_code)

    def finish(self, status: CrawlStatus = CrawlStatus.COMPLETED) -> None:
        self._progress.status = status
        self._progress.finished_at = utc_now_iso()
        self._progress.touch()

    def error_counts(self) -> dict[str, int]:
        counts = Counter(error.error_type.value for error in self._progress.errors)
        return dict(sorted(counts.items()))

    def to_json(self) -> dict[str, Any]:
        return self._progress.to_json()


__all__ = ["ProgressTracker"]
