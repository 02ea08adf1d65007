"""FIFO frontier with visited-set dedup and scope enforcement.

The crawl is strictly sequential, so the frontier is a plain deque plus two
sets owned by a single crawl run; no locking is involved.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .config import CrawlConfig
from .types import FrontierItem
from .url import is_same_host, matches_any, normalize_url


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_INVALID_URL = "skipped_invalid_url"
    SKIPPED_VISITED = "skipped_visited"
    SKIPPED_QUEUED = "skipped_queued"
    SKIPPED_OTHER_HOST = "skipped_other_host"
    SKIPPED_NOT_INCLUDED = "skipped_not_included"
    SKIPPED_EXCLUDED = "skipped_excluded"
    SKIPPED_DEPTH = "skipped_depth"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    normalized_url: str | None = None
    item: FrontierItem | None = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class Frontier:
    """Breadth-first crawl queue.

    - A URL enters the visited set at most once, when it is dequeued for a
      fetch attempt (success or failure).
    - A URL is queued at most once while pending.
    - Order is discovery order; nothing is prioritized.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config

        self._queue: deque[FrontierItem] = deque()
        self._queued_urls: set[str] = set()
        self._visited_urls: set[str] = set()

        self._discovered_count = 0
        self._dequeued_count = 0
        self._skip_counts: dict[str, int] = {}

    def seed(self, url: str | None = None) -> EnqueueResult:
        """Queue the start URL at depth 0.

        The start URL defines the crawl scope, so only dedup applies to it.
        """

        normalized = normalize_url(url or self.config.start_url)
        if normalized is None:
            return self._skip(EnqueueStatus.SKIPPED_INVALID_URL)
        if normalized in self._visited_urls:
            return self._skip(EnqueueStatus.SKIPPED_VISITED, normalized)
        if normalized in self._queued_urls:
            return self._skip(EnqueueStatus.SKIPPED_QUEUED, normalized)
        return self._accept(FrontierItem(url=normalized, depth=0))

    def enqueue(
        self,
        url: str,
        *,
        depth: int = 0,
        referrer: str | None = None,
    ) -> EnqueueResult:
        """Attempt to queue one discovered URL with scope rules enforced."""

        normalized = normalize_url(url)
        if normalized is None:
            return self._skip(EnqueueStatus.SKIPPED_INVALID_URL)

        if normalized in self._visited_urls:
            return self._skip(EnqueueStatus.SKIPPED_VISITED, normalized)
        if normalized in self._queued_urls:
            return self._skip(EnqueueStatus.SKIPPED_QUEUED, normalized)

        status = self.scope_status(normalized)
        if status is not None:
            return self._skip(status, normalized)

        if depth > self.config.max_depth:
            return self._skip(EnqueueStatus.SKIPPED_DEPTH, normalized)

        return self._accept(FrontierItem(url=normalized, depth=depth, referrer=referrer))

    def enqueue_many(
        self,
        urls: Iterable[str],
        *,
        depth: int,
        referrer: str | None = None,
    ) -> list[EnqueueResult]:
        """Attempt to queue multiple URLs, preserving input order."""

        return [self.enqueue(url, depth=depth, referrer=referrer) for url in urls]

    def scope_status(self, url: str) -> EnqueueStatus | None:
        """Return the skip reason when `url` is out of scope, else None."""

        if not is_same_host(url, self.config.start_url):
            return EnqueueStatus.SKIPPED_OTHER_HOST
        if not matches_any(url, self.config.include_patterns):
            return EnqueueStatus.SKIPPED_NOT_INCLUDED
        if matches_any(url, self.config.exclude_patterns):
            return EnqueueStatus.SKIPPED_EXCLUDED
        return None

    def dequeue_next(self) -> FrontierItem | None:
        """Pop the oldest pending URL and mark it visited.

        Entries visited since they were queued (e.g. as a redirect target)
        are dropped. Returns None when the queue is exhausted.
        """

        while self._queue:
            item = self._queue.popleft()
            self._queued_urls.discard(item.url)
            if item.url in self._visited_urls:
                continue
            self._visited_urls.add(item.url)
            self._dequeued_count += 1
            return item
        return None

    def mark_visited(self, url: str) -> bool:
        """Record an extra URL (e.g. a redirect target) as visited.

        Returns True when newly added.
        """

        normalized = normalize_url(url)
        if normalized is None or normalized in self._visited_urls:
            return False
        self._visited_urls.add(normalized)
        return True

    def is_visited(self, url: str) -> bool:
        normalized = normalize_url(url)
        return normalized is not None and normalized in self._visited_urls

    def empty(self) -> bool:
        return not self._queue

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def discovered_count(self) -> int:
        return self._discovered_count

    @property
    def remaining_count(self) -> int:
        return len(self._queue)

    def visited_urls(self) -> set[str]:
        """Return snapshot of visited URLs."""

        return set(self._visited_urls)

    def pending_urls(self) -> list[str]:
        """Return queued URLs in crawl order."""

        return [item.url for item in self._queue]

    def snapshot(self) -> dict[str, int]:
        """Return frontier counters for logs/progress reporting."""

        return {
            "queue_size": len(self._queue),
            "visited_urls": len(self._visited_urls),
            "discovered": self._discovered_count,
            "dequeued": self._dequeued_count,
            **{f"skipped_{key}": value for key, value in sorted(self._skip_counts.items())},
        }

    def _accept(self, item: FrontierItem) -> EnqueueResult:
        self._queue.append(item)
        self._queued_urls.add(item.url)
        self._discovered_count += 1
        return EnqueueResult(EnqueueStatus.ENQUEUED, normalized_url=item.url, item=item)

    def _skip(self, status: EnqueueStatus, normalized: str | None = None) -> EnqueueResult:
        key = status.value.removeprefix("skipped_")
        self._skip_counts[key] = self._skip_counts.get(key, 0) + 1
        return EnqueueResult(status, normalized_url=normalized)


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "Frontier",
]
