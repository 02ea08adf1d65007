"""Offline stand-ins for `requests.Session` and `requests.Response`."""

from __future__ import annotations

from typing import Any, Iterator

from requests.structures import CaseInsensitiveDict


class FakeResponse:
    """Minimal `requests.Response` look-alike used by the fetcher."""

    def __init__(
        self,
        status_code: int = 200,
        body: bytes | str = b"",
        *,
        headers: dict[str, str] | None = None,
        chunk_size: int | None = None,
        fail_after_first_chunk: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.content = body.encode("utf-8") if isinstance(body, str) else body
        self.headers = CaseInsensitiveDict(headers or {})
        self.closed = False
        self._chunk_size = chunk_size
        self._fail_after_first_chunk = fail_after_first_chunk

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        size = self._chunk_size or chunk_size
        for index, start in enumerate(range(0, len(self.content), size)):
            if index > 0 and self._fail_after_first_chunk is not None:
                raise self._fail_after_first_chunk
            yield self.content[start : start + size]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def html_response(body: str, *, status_code: int = 200) -> FakeResponse:
    return FakeResponse(
        status_code,
        body,
        headers={"Content-Type": "text/html; charset=utf-8"},
    )


def redirect_response(location: str, *, status_code: int = 301) -> FakeResponse:
    return FakeResponse(status_code, b"", headers={"Location": location})


def binary_response(body: bytes, *, content_type: str = "image/png") -> FakeResponse:
    return FakeResponse(200, body, headers={"Content-Type": content_type})


class FakeSession:
    """Scripted session: URL -> response, exception, or list of either.

    A list is consumed in order and its last entry repeats. Unknown URLs get
    a 404.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, kwargs))

        route = self.routes.get(url)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if route is None:
            return FakeResponse(404, b"not found", headers={"Content-Type": "text/html"})
        if isinstance(route, BaseException):
            raise route
        return route

    def urls_called(self) -> list[str]:
        return [url for url, _ in self.calls]

    def call_count(self, url: str) -> int:
        return self.urls_called().count(url)

    def close(self) -> None:
        self.closed = True
