"""Shared fixtures."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from content_migration.crawler import CrawlConfig


@pytest.fixture
def make_config(tmp_path) -> Callable[..., CrawlConfig]:
    """Factory for test configs rooted in `tmp_path` with no politeness delay."""

    def _make(**overrides: Any) -> CrawlConfig:
        values: dict[str, Any] = {
            "start_url": "https://example.com",
            "output_dir": str(tmp_path / "out"),
            "crawl_delay_ms": 0,
        }
        values.update(overrides)
        return CrawlConfig(**values)

    return _make
