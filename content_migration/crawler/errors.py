"""Exception types raised by the fetcher and extractors.

The pipeline never lets these escape a single page or asset: each one is
caught at the page/asset boundary and recorded as a `CrawlError`.
"""

from __future__ import annotations

from .types import ErrorType


class CrawlerError(Exception):
    """Base class for crawler failures tied to one URL."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class NetworkError(CrawlerError):
    """Connection failure or unusable HTTP response."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class HTTPStatusError(NetworkError):
    """Final response status was neither 2xx nor a followable 3xx."""

    def __init__(self, status_code: int, *, url: str | None = None) -> None:
        super().__init__(f"HTTP {status_code}", url=url, status_code=status_code)


class TooManyRedirectsError(NetworkError):
    """Redirect chain exceeded the configured hop limit."""


class FetchTimeoutError(CrawlerError):
    """Request did not complete within the configured timeout."""


class RobotsDisallowedError(CrawlerError):
    """robots.txt forbids fetching the URL for our user agent."""


class UnsupportedContentError(CrawlerError):
    """Response body is not HTML and cannot be parsed as a page."""

    def __init__(self, content_type: str | None, *, url: str | None = None) -> None:
        super().__init__(f"Unsupported content type: {content_type or 'unknown'}", url=url)
        self.content_type = content_type


class ParseError(CrawlerError):
    """Extraction failed for an otherwise successfully fetched page."""


NOT_FOUND_STATUSES = {404, 410}


def classify_error(exc: BaseException) -> tuple[ErrorType, int | None]:
    """Map an exception to its crawl-log category and HTTP status, if any."""

    if isinstance(exc, FetchTimeoutError):
        return ErrorType.TIMEOUT, None
    if isinstance(exc, NetworkError):
        status = exc.status_code
        if isinstance(exc, TooManyRedirectsError):
            return ErrorType.NETWORK, status
        if status in NOT_FOUND_STATUSES:
            return ErrorType.NOT_FOUND, status
        if status is not None and status >= 500:
            return ErrorType.SERVER_ERROR, status
        return ErrorType.NETWORK, status
    if isinstance(exc, ParseError):
        return ErrorType.PARSE, None
    return ErrorType.OTHER, None


__all__ = [
    "CrawlerError",
    "FetchTimeoutError",
    "HTTPStatusError",
    "NetworkError",
    "ParseError",
    "RobotsDisallowedError",
    "TooManyRedirectsError",
    "UnsupportedContentError",
    "NOT_FOUND_STATUSES",
    "classify_error",
]
