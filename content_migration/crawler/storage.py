"""Filesystem-backed storage for crawl outputs.

Storage owns the on-disk layout. Other modules should use this API instead of
building paths manually.
"""

from __future__ import annotations

import csv
import io
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping

from .constants import JSON_INDENT
from .types import (
    CrawledPage,
    CrawlProgress,
    DocumentAsset,
    DocumentType,
    ImageAsset,
    ImageContext,
    MigrationReport,
    NavigationItem,
    PageType,
    SiteStructure,
    UrlMapping,
    VideoAsset,
)
from .url import path_basename, safe_filename


# Page types without an entry are written directly under `pages/`.
PAGE_SUBDIR_BY_TYPE: dict[PageType, str] = {
    PageType.ABOUT: "about",
    PageType.SERVICES: "services",
    PageType.BLOG: "blog",
    PageType.RESOURCES: "resources",
}

IMAGE_SUBDIR_BY_CONTEXT: dict[ImageContext, str] = {
    ImageContext.HERO: "heroes",
    ImageContext.LOGO: "logos",
    ImageContext.TEAM: "team",
}
DEFAULT_IMAGE_SUBDIR = "content"

URL_MAPPING_HEADER = ("Old URL", "New URL", "Redirect Type", "Notes")


class Storage:
    """Persist crawl outputs under a single `output_dir` root."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

        self.pages_dir = self.output_dir / "pages"
        self.media_dir = self.output_dir / "media"
        self.images_dir = self.media_dir / "images"
        self.videos_dir = self.media_dir / "videos"
        self.documents_dir = self.media_dir / "documents"
        self.pdfs_dir = self.documents_dir / "pdfs"
        self.logs_dir = self.output_dir / "logs"

        self.video_inventory_path = self.videos_dir / "video-inventory.json"
        self.site_structure_path = self.output_dir / "site-structure.json"
        self.navigation_map_path = self.output_dir / "navigation-map.json"
        self.url_mapping_path = self.output_dir / "url-mapping.csv"
        self.report_markdown_path = self.output_dir / "migration-report.md"
        self.report_json_path = self.output_dir / "migration-report.json"
        self.progress_path = self.output_dir / "crawl-progress.json"

        self._ensure_layout()

    @property
    def paths(self) -> dict[str, str]:
        """Return important output paths for logging/CLI status messages."""

        return {
            "output_dir": str(self.output_dir),
            "pages_dir": str(self.pages_dir),
            "media_dir": str(self.media_dir),
            "video_inventory": str(self.video_inventory_path),
            "site_structure": str(self.site_structure_path),
            "navigation_map": str(self.navigation_map_path),
            "url_mapping": str(self.url_mapping_path),
            "migration_report": str(self.report_markdown_path),
            "migration_report_json": str(self.report_json_path),
            "crawl_progress": str(self.progress_path),
            "log_dir": str(self.logs_dir),
        }

    def _ensure_layout(self) -> None:
        for subdir in PAGE_SUBDIR_BY_TYPE.values():
            (self.pages_dir / subdir).mkdir(parents=True, exist_ok=True)
        for subdir in (*IMAGE_SUBDIR_BY_CONTEXT.values(), DEFAULT_IMAGE_SUBDIR):
            (self.images_dir / subdir).mkdir(parents=True, exist_ok=True)
        self.videos_dir.mkdir(parents=True, exist_ok=True)
        self.pdfs_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def relative(self, path: Path) -> str:
        """Return `path` relative to the output root, POSIX-style."""

        try:
            return path.relative_to(self.output_dir).as_posix()
        except ValueError:
            return path.as_posix()

    def page_path_for(self, page: CrawledPage) -> Path:
        subdir = PAGE_SUBDIR_BY_TYPE.get(page.page_type)
        directory = self.pages_dir / subdir if subdir else self.pages_dir
        return directory / f"{page.slug}.json"

    def image_path_for(self, image: ImageAsset) -> Path:
        subdir = IMAGE_SUBDIR_BY_CONTEXT.get(image.context, DEFAULT_IMAGE_SUBDIR)
        basename = safe_filename(path_basename(image.source_url), fallback="image")
        return self.images_dir / subdir / f"{image.id}-{basename}"

    def document_path_for(self, document: DocumentAsset) -> Path:
        directory = self.pdfs_dir if document.file_type == DocumentType.PDF else self.documents_dir
        basename = safe_filename(document.file_name, fallback="document")
        return directory / f"{document.id}-{basename}"

    def save_page(self, page: CrawledPage) -> Path:
        """Write one page record; called as soon as the page is processed."""

        path = self.page_path_for(page)
        self._atomic_write_json(path, page.to_json())
        return path

    def save_video_inventory(self, videos: Iterable[VideoAsset]) -> Path:
        self._atomic_write_json(
            self.video_inventory_path,
            [video.to_json() for video in videos],
        )
        return self.video_inventory_path

    def save_site_structure(self, structure: SiteStructure) -> None:
        """Write `site-structure.json` and its primary-nav view `navigation-map.json`."""

        self._atomic_write_json(self.site_structure_path, structure.to_json())
        self.save_navigation_map(structure.primary_navigation)

    def save_navigation_map(self, items: Iterable[NavigationItem]) -> None:
        self._atomic_write_json(self.navigation_map_path, [item.to_json() for item in items])

    def save_url_mapping(self, mappings: Iterable[UrlMapping]) -> Path:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(URL_MAPPING_HEADER)
        for mapping in mappings:
            writer.writerow(
                (
                    mapping.old_url,
                    mapping.new_url,
                    mapping.redirect_type.value,
                    mapping.notes,
                )
            )
        self._atomic_write_text(self.url_mapping_path, buffer.getvalue())
        return self.url_mapping_path

    def save_report(self, report: MigrationReport, markdown: str) -> None:
        self._atomic_write_json(self.report_json_path, report.to_json())
        self._atomic_write_text(self.report_markdown_path, markdown)

    def save_progress(self, progress: CrawlProgress | Mapping[str, Any]) -> None:
        """Write the crawl checkpoint atomically as JSON."""

        payload = progress.to_json() if isinstance(progress, CrawlProgress) else dict(progress)
        self._atomic_write_json(self.progress_path, payload)

    @staticmethod
    def _atomic_write_text(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise

    @classmethod
    def _atomic_write_json(cls, path: Path, payload: Any) -> None:
        content = json.dumps(payload, ensure_ascii=False, indent=JSON_INDENT) + "\n"
        cls._atomic_write_text(path, content)


__all__ = [
    "DEFAULT_IMAGE_SUBDIR",
    "IMAGE_SUBDIR_BY_CONTEXT",
    "PAGE_SUBDIR_BY_TYPE",
    "Storage",
    "URL_MAPPING_HEADER",
]
