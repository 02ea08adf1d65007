"""URL normalization, scope filtering, slugs, and link extraction helpers."""

from __future__ import annotations

from functools import lru_cache
import posixpath
import re
from typing import Iterable
from urllib.parse import (
    parse_qsl,
    unquote,
    urlencode,
    urljoin,
    urlsplit,
    urlunsplit,
)

from bs4 import BeautifulSoup


DEFAULT_ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")
TRACKING_QUERY_PARAM_PREFIXES = ("utm_",)
TRACKING_QUERY_PARAMS = {
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "mkt_tok",
    "igshid",
}
PAGE_EXTENSIONS = (".html", ".htm", ".php", ".asp", ".aspx")

_INVALID_FILENAME_CHARS = re.compile(r"[<>:\"/\\|?*\x00-\x1F]")


def hostname_of(url: str) -> str:
    """Return the lowercased hostname of an absolute URL ('' when absent)."""

    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def is_same_host(url: str, reference_url: str) -> bool:
    """Return True when both URLs share exactly the same hostname."""

    host = hostname_of(url)
    return bool(host) and host == hostname_of(reference_url)


def _normalize_path(path: str) -> str:
    if not path:
        return "/"

    collapsed = re.sub(r"/{2,}", "/", path)
    normalized = posixpath.normpath(collapsed)
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    if normalized != "/":
        normalized = normalized.rstrip("/")
    return normalized or "/"


def _normalize_query(query: str) -> str:
    if not query:
        return ""

    pairs = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if key.lower() not in TRACKING_QUERY_PARAMS
        and not key.lower().startswith(TRACKING_QUERY_PARAM_PREFIXES)
    ]
    return urlencode(sorted(pairs), doseq=True)


def normalize_url(url: str | None) -> str | None:
    """Canonicalize an absolute URL for dedup and frontier consistency.

    Lowercases scheme and host, drops default ports, fragments, and tracking
    query parameters, sorts the query, and removes trailing slashes (except
    for the root path). Returns `None` for invalid or non-HTTP URLs.
    """

    if not url or not url.strip():
        return None

    try:
        parsed = urlsplit(url.strip())
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_ALLOWED_SCHEMES or not parsed.hostname:
        return None

    netloc = parsed.hostname.lower()
    if port is not None and not ((scheme, port) in {("http", 80), ("https", 443)}):
        netloc = f"{netloc}:{port}"

    return urlunsplit(
        (scheme, netloc, _normalize_path(parsed.path), _normalize_query(parsed.query), "")
    )


def resolve_url(base_url: str, href: str | None, *, normalize: bool = True) -> str | None:
    """Resolve a possibly relative reference against `base_url`.

    Skips fragment-only references and `javascript:`/`mailto:`/`tel:`/`data:`
    schemes.
    """

    if href is None:
        return None

    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None
    if candidate.lower().startswith(SKIP_HREF_PREFIXES):
        return None

    try:
        absolute = urljoin(base_url, candidate)
    except ValueError:
        return None

    if normalize:
        return normalize_url(absolute)

    scheme = urlsplit(absolute).scheme.lower()
    return absolute if scheme in DEFAULT_ALLOWED_SCHEMES else None


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a `*` wildcard pattern into an unanchored regex.

    Only `*` is special (matches any run of characters); everything else is
    literal. Matching is case-insensitive and may hit anywhere in the URL.
    """

    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.IGNORECASE)


def matches_any(url: str, patterns: Iterable[str]) -> bool:
    return any(compile_pattern(pattern).search(url) for pattern in patterns)


def path_extension(url: str) -> str:
    """Return the lowercased file extension of the URL path without a dot."""

    path = urlsplit(url).path
    return posixpath.splitext(path)[1].lower().lstrip(".")


def path_basename(url: str) -> str:
    return unquote(posixpath.basename(urlsplit(url).path))


def safe_filename(text: str, *, fallback: str = "file", max_length: int = 150) -> str:
    cleaned = _INVALID_FILENAME_CHARS.sub("-", (text or "").strip())
    cleaned = re.sub(r"\s+", "-", cleaned).strip(".- ")
    return (cleaned or fallback)[:max_length]


def slug_for_url(url: str) -> str:
    """Derive the migration slug for a page URL.

    `/` becomes `home`; otherwise the path is trimmed of slashes and common
    server-side extensions and its segments are joined with `-`.
    """

    path = unquote(urlsplit(url).path).strip("/")
    if not path:
        return "home"

    lowered = path.lower()
    for extension in PAGE_EXTENSIONS:
        if lowered.endswith(extension):
            path = path[: -len(extension)]
            break

    return safe_filename(path.replace("/", "-"), fallback="home")


def extract_links_from_html(
    html: str | bytes | BeautifulSoup,
    *,
    base_url: str,
    scope_url: str | None = None,
) -> list[str]:
    """Extract resolved `<a href>` targets in document order, deduplicated.

    When `scope_url` is given, only links on the same hostname are kept.
    """

    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "lxml")

    out: list[str] = []
    seen: set[str] = set()

    for element in soup.find_all("a", href=True):
        resolved = resolve_url(base_url, element.get("href"))
        if not resolved or resolved in seen:
            continue
        if scope_url is not None and not is_same_host(resolved, scope_url):
            continue

        seen.add(resolved)
        out.append(resolved)

    return out


__all__ = [
    "DEFAULT_ALLOWED_SCHEMES",
    "SKIP_HREF_PREFIXES",
    "compile_pattern",
    "extract_links_from_html",
    "hostname_of",
    "is_same_host",
    "matches_any",
    "normalize_url",
    "path_basename",
    "path_extension",
    "resolve_url",
    "safe_filename",
    "slug_for_url",
]
