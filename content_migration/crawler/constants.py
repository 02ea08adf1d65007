"""Default values shared by config, fetcher, storage, and the CLI."""

from __future__ import annotations


DEFAULT_START_URL = "https://www.kdm-assoc.com"
DEFAULT_OUTPUT_DIR = "./kdm-content-migration"

DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_PAGES = 500
# When `max_attempts` is unset, total fetch attempts are capped at this
# multiple of `max_pages` so an error-heavy site still terminates.
DEFAULT_ATTEMPT_BUDGET_FACTOR = 3

DEFAULT_CRAWL_DELAY_MS = 1000
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_REDIRECTS = 10
DEFAULT_RETRIES = 0
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_CHECKPOINT_EVERY = 10

DEFAULT_USER_AGENT = "KDM-Content-Migration-Bot/1.0"
DEFAULT_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

DEFAULT_EXCLUDE_PATTERNS = (
    "*.pdf",
    "*.doc*",
    "*.xls*",
    "*/wp-admin/*",
    "*/wp-login*",
)

DEFAULT_DOWNLOAD_IMAGES = True
DEFAULT_DOWNLOAD_DOCUMENTS = True
DEFAULT_RESPECT_ROBOTS = True

DOWNLOAD_CHUNK_SIZE = 64 * 1024

SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
JSON_INDENT = 2
