"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlsplit

import yaml  # type: ignore

from .constants import (
    DEFAULT_ATTEMPT_BUDGET_FACTOR,
    DEFAULT_CHECKPOINT_EVERY,
    DEFAULT_CRAWL_DELAY_MS,
    DEFAULT_DOWNLOAD_DOCUMENTS,
    DEFAULT_DOWNLOAD_IMAGES,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RESPECT_ROBOTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_START_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import JSONDict


def _as_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def _as_patterns(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    try:
        return tuple(str(item) for item in value if str(item).strip())
    except TypeError as exc:
        raise ValueError(f"Invalid pattern list for '{key}': {value!r}") from exc


def default_include_pattern(start_url: str) -> str:
    """Scope pattern covering every path on the start URL's origin."""

    parsed = urlsplit(start_url)
    return f"{parsed.scheme}://{parsed.netloc}/*"


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Immutable run parameters, set once at crawl start.

    `include_patterns` defaults to the start URL's origin. `max_attempts`
    caps total fetch attempts (successes and failures); when unset it is
    derived from `max_pages`.
    """

    start_url: str = DEFAULT_START_URL
    output_dir: str = DEFAULT_OUTPUT_DIR

    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES
    max_attempts: int | None = None
    crawl_delay_ms: int = DEFAULT_CRAWL_DELAY_MS

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS

    download_images: bool = DEFAULT_DOWNLOAD_IMAGES
    download_documents: bool = DEFAULT_DOWNLOAD_DOCUMENTS
    respect_robots: bool = DEFAULT_RESPECT_ROBOTS

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY

    def __post_init__(self) -> None:
        start_url = (self.start_url or "").strip()
        parsed = urlsplit(start_url)
        if parsed.scheme not in {"http", "https"} or not parsed.hostname:
            raise ValueError(f"start_url must be an absolute http(s) URL: {self.start_url!r}")
        object.__setattr__(self, "start_url", start_url)

        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_pages <= 0:
            raise ValueError("max_pages must be > 0")
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0 when set")
        if self.crawl_delay_ms < 0:
            raise ValueError("crawl_delay_ms must be >= 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.checkpoint_every <= 0:
            raise ValueError("checkpoint_every must be > 0")

        include = tuple(self.include_patterns) or (default_include_pattern(start_url),)
        object.__setattr__(self, "include_patterns", include)
        object.__setattr__(self, "exclude_patterns", tuple(self.exclude_patterns))

    @property
    def attempt_budget(self) -> int:
        """Effective cap on page fetch attempts for one run."""

        if self.max_attempts is not None:
            return self.max_attempts
        return self.max_pages * DEFAULT_ATTEMPT_BUDGET_FACTOR

    @property
    def crawl_delay_seconds(self) -> float:
        return self.crawl_delay_ms / 1000.0

    def headers(self) -> dict[str, str]:
        """Return request headers with the configured user agent."""

        merged = dict(self.default_headers)
        merged["User-Agent"] = self.user_agent
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "start_url": self.start_url,
            "output_dir": self.output_dir,
            "max_depth": self.max_depth,
            "max_pages": self.max_pages,
            "max_attempts": self.max_attempts,
            "crawl_delay_ms": self.crawl_delay_ms,
            "user_agent": self.user_agent,
            "default_headers": dict(self.default_headers),
            "include_patterns": list(self.include_patterns),
            "exclude_patterns": list(self.exclude_patterns),
            "download_images": self.download_images,
            "download_documents": self.download_documents,
            "respect_robots": self.respect_robots,
            "timeout_seconds": self.timeout_seconds,
            "max_redirects": self.max_redirects,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "checkpoint_every": self.checkpoint_every,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary; missing keys take defaults."""

        return cls(
            start_url=str(payload.get("start_url", DEFAULT_START_URL)),
            output_dir=str(payload.get("output_dir", DEFAULT_OUTPUT_DIR)),
            max_depth=int(payload.get("max_depth", DEFAULT_MAX_DEPTH)),
            max_pages=int(payload.get("max_pages", DEFAULT_MAX_PAGES)),
            max_attempts=_as_int(payload.get("max_attempts"), "max_attempts"),
            crawl_delay_ms=int(payload.get("crawl_delay_ms", DEFAULT_CRAWL_DELAY_MS)),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            include_patterns=_as_patterns(payload.get("include_patterns"), "include_patterns"),
            exclude_patterns=_as_patterns(
                payload.get("exclude_patterns", DEFAULT_EXCLUDE_PATTERNS),
                "exclude_patterns",
            ),
            download_images=_as_bool(
                payload.get("download_images", DEFAULT_DOWNLOAD_IMAGES),
                "download_images",
            ),
            download_documents=_as_bool(
                payload.get("download_documents", DEFAULT_DOWNLOAD_DOCUMENTS),
                "download_documents",
            ),
            respect_robots=_as_bool(
                payload.get("respect_robots", DEFAULT_RESPECT_ROBOTS),
                "respect_robots",
            ),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                "timeout_seconds",
            ),
            max_redirects=int(payload.get("max_redirects", DEFAULT_MAX_REDIRECTS)),
            retries=int(payload.get("retries", DEFAULT_RETRIES)),
            retry_backoff_seconds=_as_float(
                payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS),
                "retry_backoff_seconds",
            ),
            checkpoint_every=int(payload.get("checkpoint_every", DEFAULT_CHECKPOINT_EVERY)),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "default_include_pattern",
    "load_config",
    "save_config",
]
