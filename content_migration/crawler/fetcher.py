"""HTTP fetching for pages and assets with bounded redirects and retries."""

from __future__ import annotations

import codecs
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Callable
from urllib.parse import urljoin, urlsplit
from urllib.robotparser import RobotFileParser

import requests

from .config import CrawlConfig
from .constants import DOWNLOAD_CHUNK_SIZE
from .errors import (
    CrawlerError,
    FetchTimeoutError,
    HTTPStatusError,
    NetworkError,
    RobotsDisallowedError,
    TooManyRedirectsError,
    UnsupportedContentError,
)
from .types import FetchResult


LOGGER = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
_CHARSET_RE = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


def _charset_from_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    match = _CHARSET_RE.search(content_type)
    if not match:
        return None
    charset = match.group(1)
    try:
        codecs.lookup(charset)
    except LookupError:
        LOGGER.debug("Ignoring unknown charset %r", charset)
        return None
    return charset


def _is_transient(exc: CrawlerError) -> bool:
    if isinstance(exc, FetchTimeoutError):
        return True
    if isinstance(exc, TooManyRedirectsError):
        return False
    if isinstance(exc, NetworkError):
        status = exc.status_code
        return status is None or status in {408, 429} or status >= 500
    return False


class Fetcher:
    """Fetch pages and stream assets, one request at a time.

    Redirects are followed manually so the hop count stays bounded by
    `config.max_redirects`. Failures raise `CrawlerError` subclasses.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self._owns_session = session is None
        self._sleep = sleep
        self._robots_cache: dict[str, RobotFileParser | None] = {}

    def fetch(self, url: str) -> FetchResult:
        """Fetch one HTML page, following redirects.

        The returned result keeps `url` as `requested_url`; `final_url` is
        where the redirect chain ended.
        """

        if self.config.respect_robots and not self.is_allowed_by_robots(url):
            raise RobotsDisallowedError("Blocked by robots.txt", url=url)

        result = self._with_retries(url, self._fetch_once)

        content_type = (result.content_type or "").split(";", maxsplit=1)[0].strip().lower()
        if content_type and content_type not in HTML_CONTENT_TYPES:
            raise UnsupportedContentError(result.content_type, url=url)
        return result

    def download(self, url: str, destination: str | Path) -> int:
        """Stream `url` to `destination` and return the number of bytes written.

        The body is written to a temporary sibling file and moved into place
        only when complete; on failure nothing is left at `destination`.
        """

        dest_path = Path(destination)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        return self._with_retries(url, lambda target: self._download_once(target, dest_path))

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _with_retries(self, url: str, attempt_once: Callable[[str], object]):
        attempts = max(1, self.config.retries + 1)

        for attempt in range(1, attempts + 1):
            try:
                return attempt_once(url)
            except CrawlerError as exc:
                if attempt >= attempts or not _is_transient(exc):
                    raise
                backoff = self.config.retry_backoff_seconds * attempt
                LOGGER.debug(
                    "Retrying %s after %s (attempt %d/%d, sleeping %.1fs)",
                    url,
                    exc,
                    attempt,
                    attempts,
                    backoff,
                )
                if backoff > 0:
                    self._sleep(backoff)

        raise AssertionError("unreachable")

    def _open(self, url: str, *, stream: bool) -> tuple[requests.Response, str, int]:
        """Issue GETs until a non-redirect response; return it with its URL."""

        current = url
        redirects = 0

        while True:
            try:
                response = self.session.get(
                    current,
                    headers=self.config.headers(),
                    timeout=self.config.timeout_seconds,
                    allow_redirects=False,
                    stream=stream,
                )
            except requests.Timeout as exc:
                raise FetchTimeoutError(f"Request timeout: {exc}", url=current) from exc
            except requests.RequestException as exc:
                raise NetworkError(f"{exc.__class__.__name__}: {exc}", url=current) from exc

            location = response.headers.get("Location")
            if 300 <= response.status_code < 400 and location:
                response.close()
                if redirects >= self.config.max_redirects:
                    raise TooManyRedirectsError(
                        f"Exceeded {self.config.max_redirects} redirects",
                        url=url,
                        status_code=response.status_code,
                    )
                try:
                    next_url = urljoin(current, location)
                except ValueError as exc:
                    raise NetworkError(
                        f"Invalid redirect location: {location!r}",
                        url=current,
                        status_code=response.status_code,
                    ) from exc
                LOGGER.debug("Redirect %d: %s -> %s", response.status_code, current, next_url)
                current = next_url
                redirects += 1
                continue

            if response.status_code != 200:
                response.close()
                raise HTTPStatusError(response.status_code, url=current)

            return response, current, redirects

    def _fetch_once(self, url: str) -> FetchResult:
        started = time.perf_counter()
        response, final_url, redirects = self._open(url, stream=False)

        try:
            body = response.content or b""
        except requests.RequestException as exc:
            raise NetworkError(f"{exc.__class__.__name__}: {exc}", url=final_url) from exc
        finally:
            response.close()

        content_type = response.headers.get("Content-Type")
        return FetchResult(
            requested_url=url,
            final_url=final_url,
            status_code=response.status_code,
            content_type=content_type,
            body=body,
            encoding=_charset_from_content_type(content_type),
            redirects=redirects,
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )

    def _download_once(self, url: str, dest_path: Path) -> int:
        response, final_url, _ = self._open(url, stream=True)

        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(dest_path.parent),
            prefix=dest_path.name + ".",
            suffix=".part",
        )
        written = 0
        try:
            with os.fdopen(tmp_fd, "wb") as handle:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
                        written += len(chunk)
            os.replace(tmp_path, dest_path)
        except requests.Timeout as exc:
            self._discard(tmp_path)
            raise FetchTimeoutError(f"Download timeout: {exc}", url=final_url) from exc
        except requests.RequestException as exc:
            self._discard(tmp_path)
            raise NetworkError(f"{exc.__class__.__name__}: {exc}", url=final_url) from exc
        except OSError:
            self._discard(tmp_path)
            raise
        finally:
            response.close()

        return written

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass

    def is_allowed_by_robots(self, url: str) -> bool:
        parsed = urlsplit(url)
        host_key = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"

        if host_key not in self._robots_cache:
            self._robots_cache[host_key] = self._load_robots_parser(host_key)
        parser = self._robots_cache[host_key]

        # If robots cannot be loaded, fail open to avoid stalling crawling.
        if parser is None:
            return True
        return parser.can_fetch(self.config.user_agent or "*", url)

    def _load_robots_parser(self, host_root: str) -> RobotFileParser | None:
        robots_url = f"{host_root}/robots.txt"

        try:
            response = self.session.get(
                robots_url,
                headers={"User-Agent": self.config.user_agent},
                timeout=min(10.0, self.config.timeout_seconds),
            )
        except requests.RequestException as exc:
            LOGGER.debug("robots.txt unavailable at %s: %s", robots_url, exc)
            return None

        if response.status_code >= 400:
            return None

        parser = RobotFileParser()
        parser.set_url(robots_url)
        parser.parse(response.text.splitlines())
        return parser


__all__ = ["Fetcher", "HTML_CONTENT_TYPES"]
