"""Tests for page fetching, redirects, retries, robots and downloads."""

import pytest
import requests

from content_migration.crawler import (
    Fetcher,
    FetchTimeoutError,
    HTTPStatusError,
    NetworkError,
    RobotsDisallowedError,
    TooManyRedirectsError,
    UnsupportedContentError,
    classify_error,
)
from content_migration.crawler.types import ErrorType

from .fakes import FakeResponse, FakeSession, binary_response, html_response, redirect_response


def make_fetcher(config, routes, sleeps=None):
    session = FakeSession(routes)
    sleep = sleeps.append if sleeps is not None else (lambda seconds: None)
    return Fetcher(config, session=session, sleep=sleep), session


class TestFetchPages:
    """Successful and failing page fetches."""

    def test_fetch_returns_html(self, make_config):
        fetcher, session = make_fetcher(
            make_config(user_agent="TestBot/1.0"),
            {"https://example.com/": html_response("<html><title>Hi</title></html>")},
        )

        result = fetcher.fetch("https://example.com/")

        assert result.status_code == 200
        assert result.final_url == "https://example.com/"
        assert result.redirects == 0
        assert result.encoding == "utf-8"
        assert "<title>Hi</title>" in result.text

        page_calls = [kwargs for url, kwargs in session.calls if url == "https://example.com/"]
        assert page_calls[0]["headers"]["User-Agent"] == "TestBot/1.0"
        assert page_calls[0]["allow_redirects"] is False

    def test_redirect_keeps_requested_url(self, make_config):
        fetcher, _ = make_fetcher(
            make_config(),
            {
                "https://example.com/old": redirect_response("/new"),
                "https://example.com/new": html_response("<p>new</p>"),
            },
        )

        result = fetcher.fetch("https://example.com/old")

        assert result.requested_url == "https://example.com/old"
        assert result.final_url == "https://example.com/new"
        assert result.redirects == 1
        assert "new" in result.text

    def test_redirect_loop_is_bounded(self, make_config):
        fetcher, session = make_fetcher(
            make_config(max_redirects=2, respect_robots=False),
            {"https://example.com/loop": redirect_response("/loop", status_code=302)},
        )

        with pytest.raises(TooManyRedirectsError):
            fetcher.fetch("https://example.com/loop")

        assert session.call_count("https://example.com/loop") == 3

    def test_invalid_redirect_location(self, make_config):
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/bad": redirect_response("http://[broken/x")},
        )

        with pytest.raises(NetworkError, match="Invalid redirect location") as excinfo:
            fetcher.fetch("https://example.com/bad")

        assert excinfo.value.status_code == 301
        assert classify_error(excinfo.value) == (ErrorType.NETWORK, 301)

    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("text/html; charset=ISO-8859-1", "ISO-8859-1"),
            ("text/html; charset=x-user-defined-bogus", None),
            ("text/html; charset=utf8mb4", None),
            ("text/html", None),
        ],
    )
    def test_charset_from_header(self, make_config, content_type, expected):
        body = "<p>caf\u00e9</p>".encode("latin-1")
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/": FakeResponse(200, body, headers={"Content-Type": content_type})},
        )

        result = fetcher.fetch("https://example.com/")

        assert result.encoding == expected
        assert result.text.startswith("<p>caf")

    def test_not_found(self, make_config):
        fetcher, _ = make_fetcher(make_config(), {})

        with pytest.raises(HTTPStatusError) as excinfo:
            fetcher.fetch("https://example.com/missing")

        assert excinfo.value.status_code == 404
        assert classify_error(excinfo.value) == (ErrorType.NOT_FOUND, 404)

    def test_timeout(self, make_config):
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/slow": requests.Timeout("read timed out")},
        )

        with pytest.raises(FetchTimeoutError) as excinfo:
            fetcher.fetch("https://example.com/slow")

        assert classify_error(excinfo.value) == (ErrorType.TIMEOUT, None)

    def test_connection_error(self, make_config):
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/down": requests.ConnectionError("refused")},
        )

        with pytest.raises(NetworkError) as excinfo:
            fetcher.fetch("https://example.com/down")

        assert excinfo.value.status_code is None
        assert classify_error(excinfo.value) == (ErrorType.NETWORK, None)

    def test_non_html_content_is_rejected(self, make_config):
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/file": binary_response(b"%PDF", content_type="application/pdf")},
        )

        with pytest.raises(UnsupportedContentError):
            fetcher.fetch("https://example.com/file")


class TestRetries:
    """Bounded retry with linear backoff on transient failures."""

    def test_transient_failure_is_retried(self, make_config):
        sleeps = []
        fetcher, session = make_fetcher(
            make_config(retries=2, retry_backoff_seconds=0.5),
            {
                "https://example.com/": [
                    FakeResponse(503, b"busy"),
                    FakeResponse(503, b"busy"),
                    html_response("<p>ok</p>"),
                ]
            },
            sleeps,
        )

        result = fetcher.fetch("https://example.com/")

        assert result.status_code == 200
        assert session.call_count("https://example.com/") == 3
        assert sleeps == [0.5, 1.0]

    def test_not_found_is_not_retried(self, make_config):
        sleeps = []
        fetcher, session = make_fetcher(make_config(retries=3), {}, sleeps)

        with pytest.raises(HTTPStatusError):
            fetcher.fetch("https://example.com/missing")

        assert session.call_count("https://example.com/missing") == 1
        assert sleeps == []

    def test_retries_exhausted(self, make_config):
        fetcher, session = make_fetcher(
            make_config(retries=1, retry_backoff_seconds=0),
            {"https://example.com/": FakeResponse(500, b"boom")},
        )

        with pytest.raises(HTTPStatusError) as excinfo:
            fetcher.fetch("https://example.com/")

        assert classify_error(excinfo.value) == (ErrorType.SERVER_ERROR, 500)
        assert session.call_count("https://example.com/") == 2


class TestRobots:
    """robots.txt handling."""

    def test_disallowed_path(self, make_config):
        fetcher, session = make_fetcher(
            make_config(),
            {
                "https://example.com/robots.txt": FakeResponse(
                    200,
                    "User-agent: *\nDisallow: /private\n",
                    headers={"Content-Type": "text/plain"},
                ),
                "https://example.com/public": html_response("<p>ok</p>"),
            },
        )

        with pytest.raises(RobotsDisallowedError):
            fetcher.fetch("https://example.com/private/page")
        assert fetcher.fetch("https://example.com/public").status_code == 200

        assert session.call_count("https://example.com/robots.txt") == 1
        assert session.call_count("https://example.com/private/page") == 0

    def test_missing_robots_allows_everything(self, make_config):
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/private": html_response("<p>ok</p>")},
        )
        assert fetcher.is_allowed_by_robots("https://example.com/private")

    def test_robots_ignored_when_disabled(self, make_config):
        fetcher, session = make_fetcher(
            make_config(respect_robots=False),
            {"https://example.com/": html_response("<p>ok</p>")},
        )
        fetcher.fetch("https://example.com/")
        assert session.call_count("https://example.com/robots.txt") == 0


class TestDownload:
    """Streaming asset downloads."""

    def test_download_writes_file(self, make_config, tmp_path):
        body = b"\x89PNG" + b"x" * 100
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/logo.png": binary_response(body)},
        )
        destination = tmp_path / "media" / "logo.png"

        written = fetcher.download("https://example.com/logo.png", destination)

        assert written == len(body)
        assert destination.read_bytes() == body

    def test_download_follows_redirect(self, make_config, tmp_path):
        fetcher, _ = make_fetcher(
            make_config(),
            {
                "https://example.com/img": redirect_response("https://cdn.example.com/img.png"),
                "https://cdn.example.com/img.png": binary_response(b"data"),
            },
        )
        destination = tmp_path / "img.png"

        assert fetcher.download("https://example.com/img", destination) == 4
        assert destination.read_bytes() == b"data"

    def test_failed_download_leaves_nothing_behind(self, make_config, tmp_path):
        broken = FakeResponse(
            200,
            b"a" * 10,
            headers={"Content-Type": "image/png"},
            chunk_size=4,
            fail_after_first_chunk=requests.ConnectionError("reset"),
        )
        fetcher, _ = make_fetcher(make_config(), {"https://example.com/big.png": broken})
        destination = tmp_path / "assets" / "big.png"

        with pytest.raises(NetworkError):
            fetcher.download("https://example.com/big.png", destination)

        assert not destination.exists()
        assert list(destination.parent.iterdir()) == []

    def test_download_invalid_redirect_location(self, make_config, tmp_path):
        fetcher, _ = make_fetcher(
            make_config(),
            {"https://example.com/img.png": redirect_response("http://[broken/img.png")},
        )
        destination = tmp_path / "img.png"

        with pytest.raises(NetworkError, match="Invalid redirect location"):
            fetcher.download("https://example.com/img.png", destination)

        assert not destination.exists()

    def test_download_not_found(self, make_config, tmp_path):
        fetcher, _ = make_fetcher(make_config(), {})
        destination = tmp_path / "missing.png"

        with pytest.raises(HTTPStatusError):
            fetcher.download("https://example.com/missing.png", destination)

        assert not destination.exists()


class TestSessionOwnership:
    def test_injected_session_is_not_closed(self, make_config):
        fetcher, session = make_fetcher(make_config(), {})
        with fetcher:
            pass
        assert session.closed is False
