"""CLI entrypoint for the content-migration crawler."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from content_migration.crawler import CrawlConfig, CrawlPipeline, load_config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a website and export its content for migration.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config. Flags below override its values.",
    )
    parser.add_argument("--start_url", type=str, default=None)
    parser.add_argument(
        "--output_dir",
        type=Path,
        default=None,
        help="Root output directory for pages/media/reports/logs.",
    )

    parser.add_argument("--max_depth", type=int, default=None)
    parser.add_argument("--max_pages", type=int, default=None)
    parser.add_argument(
        "--max_attempts",
        type=int,
        default=None,
        help="Cap on total page fetch attempts (default: 3 x max_pages).",
    )
    parser.add_argument(
        "--crawl_delay_ms",
        type=int,
        default=None,
        help="Politeness delay after every page fetch attempt.",
    )

    parser.add_argument(
        "--include",
        action="append",
        default=[],
        help="Include URL pattern, '*' is a wildcard (repeatable). Replaces config value.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Exclude URL pattern, '*' is a wildcard (repeatable). Replaces config value.",
    )

    parser.add_argument(
        "--no_download_images",
        dest="download_images",
        action="store_false",
        default=None,
        help="Inventory images without downloading them.",
    )
    parser.add_argument(
        "--no_download_documents",
        dest="download_documents",
        action="store_false",
        default=None,
        help="Inventory documents without downloading them.",
    )

    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument("--max_redirects", type=int, default=None)
    parser.add_argument("--retries", type=int, default=None)
    parser.add_argument("--retry_backoff_seconds", type=float, default=None)

    parser.add_argument("--user_agent", type=str, default=None)
    parser.add_argument(
        "--respect_robots",
        dest="respect_robots",
        action="store_true",
        default=None,
        help="Respect robots.txt (default comes from config).",
    )
    parser.add_argument(
        "--no_respect_robots",
        dest="respect_robots",
        action="store_false",
        help="Ignore robots.txt.",
    )

    parser.add_argument(
        "--print_report_json",
        action="store_true",
        help="Print the full migration report JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    payload: dict[str, Any] = {}
    if args.config is not None:
        payload = load_config(args.config).to_dict()

    overrides = {
        "start_url": args.start_url,
        "output_dir": str(args.output_dir) if args.output_dir is not None else None,
        "max_depth": args.max_depth,
        "max_pages": args.max_pages,
        "max_attempts": args.max_attempts,
        "crawl_delay_ms": args.crawl_delay_ms,
        "user_agent": args.user_agent,
        "download_images": args.download_images,
        "download_documents": args.download_documents,
        "respect_robots": args.respect_robots,
        "timeout_seconds": args.timeout_seconds,
        "max_redirects": args.max_redirects,
        "retries": args.retries,
        "retry_backoff_seconds": args.retry_backoff_seconds,
    }
    payload.update({key: value for key, value in overrides.items() if value is not None})

    if args.include:
        payload["include_patterns"] = list(args.include)
    if args.exclude:
        payload["exclude_patterns"] = list(args.exclude)

    # Without explicit --include, scope follows an overridden start URL.
    if args.start_url is not None and not args.include:
        payload.pop("include_patterns", None)

    return CrawlConfig.from_dict(payload)


def setup_logging(output_dir: Path | None, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if output_dir is not None:
        log_dir = output_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_dir / "crawl.log", encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Per-request connection chatter drowns out per-page lines in verbose mode.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(result: dict[str, Any], *, print_report_json: bool) -> None:
    paths = result.get("paths", {})
    progress = result.get("progress", {})
    report = result.get("report", {})

    print("\n=== Crawl Complete ===")
    print(f"status: {progress.get('status')}")
    print(f"output_dir: {paths.get('output_dir')}")
    print(f"pages: {paths.get('pages_dir')}")
    print(f"report: {paths.get('migration_report')}")
    print(f"url_mapping: {paths.get('url_mapping')}")
    print(f"progress: {paths.get('crawl_progress')}")

    print("\n--- Progress ---")
    for key in [
        "totalPagesDiscovered",
        "pagesAttempted",
        "pagesCrawled",
        "pagesRemaining",
        "imagesFound",
        "imagesDownloaded",
        "videosFound",
        "documentsFound",
        "documentsDownloaded",
    ]:
        if key in progress:
            print(f"{key}: {progress[key]}")
    print(f"errors: {len(progress.get('errors', []))}")

    error_counts = result.get("error_counts", {})
    for error_type, count in error_counts.items():
        print(f"  {error_type}: {count}")

    if print_report_json:
        print("\n--- Migration Report JSON ---")
        print(json.dumps(report, indent=2))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except Exception as exc:
        setup_logging(None, verbose=args.verbose)
        logging.error("Failed to build config: %s", exc)
        return 2

    setup_logging(Path(config.output_dir), verbose=args.verbose)
    logging.info(
        "Starting crawl: start_url=%s, output_dir=%s, max_pages=%d",
        config.start_url,
        config.output_dir,
        config.max_pages,
    )

    try:
        pipeline = CrawlPipeline(config)
        result = pipeline.run()
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1

    print_summary(result, print_report_json=args.print_report_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
