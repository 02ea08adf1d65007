"""Best-effort download of page images and documents."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import CrawlConfig
from .errors import CrawlerError
from .fetcher import Fetcher
from .progress import ProgressTracker
from .storage import Storage
from .types import CrawledPage, DocumentAsset, ImageAsset


LOGGER = logging.getLogger(__name__)


class AssetDownloader:
    """Download the assets referenced by crawled pages.

    Each asset's download fields are written exactly once. A failed download
    leaves `downloaded=False`, sets `download_error`, logs a `CrawlError`,
    and never interrupts the crawl. Identical source URLs are fetched once per
    run and the result is shared by later references.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        fetcher: Fetcher,
        storage: Storage,
        progress: ProgressTracker,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.storage = storage
        self.progress = progress

        self._completed: dict[str, tuple[str, int]] = {}
        self._failed: dict[str, str] = {}

    def download_page_assets(self, page: CrawledPage) -> tuple[int, int]:
        """Download a page's images/documents as configured.

        Returns (images downloaded, documents downloaded).
        """

        images_ok = 0
        documents_ok = 0

        if self.config.download_images:
            for image in page.images:
                if self.download_image(image):
                    images_ok += 1

        if self.config.download_documents:
            for document in page.documents:
                if self.download_document(document):
                    documents_ok += 1

        return images_ok, documents_ok

    def download_image(self, image: ImageAsset) -> bool:
        return self._download(image, image.source_url, self.storage.image_path_for(image), "image")

    def download_document(self, document: DocumentAsset) -> bool:
        return self._download(
            document,
            document.url,
            self.storage.document_path_for(document),
            "document",
        )

    def _download(
        self,
        asset: ImageAsset | DocumentAsset,
        url: str,
        destination: Path,
        label: str,
    ) -> bool:
        if asset.downloaded or asset.download_error is not None:
            return asset.downloaded

        if url in self._completed:
            asset.local_path, asset.file_size = self._completed[url]
            asset.downloaded = True
            self.progress.record_download(asset)
            return True

        if url in self._failed:
            asset.download_error = self._failed[url]
            return False

        try:
            size = self.fetcher.download(url, destination)
        except (CrawlerError, OSError) as exc:
            message = str(exc) or exc.__class__.__name__
            asset.download_error = message
            self._failed[url] = message
            self.progress.record_exception(url, exc, prefix=f"Failed to download {label}")
            return False

        asset.local_path = self.storage.relative(destination)
        asset.file_size = size
        asset.downloaded = True
        self._completed[url] = (asset.local_path, size)
        self.progress.record_download(asset)
        LOGGER.debug("Downloaded %s %s -> %s (%d bytes)", label, url, asset.local_path, size)
        return True


__all__ = ["AssetDownloader"]
