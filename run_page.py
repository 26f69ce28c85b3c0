#!/usr/bin/env python3
"""
Command-line script to read pages through the cache.

Fetches each page (or serves it from the store), extracts its articles
and links, and prints the Page objects as JSON.

Usage:
    python run_page.py example.com/blog
    python run_page.py example.com/blog other.org/news --scheme http
    python run_page.py example.com/blog --refresh -o pages.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from page_crawler.config import load_settings
from page_crawler.exceptions import ConfigError
from page_crawler.logger import setup_logger
from page_crawler.main import ExtractionService
from page_crawler.store import init_default_store, close_default_store


def main():
    parser = argparse.ArgumentParser(
        description="Extract articles and links from pages (cached for 24h)"
    )
    parser.add_argument("paths", nargs="+", help="Page paths without scheme, e.g. example.com/blog")
    parser.add_argument("--scheme", "-s", default="https", choices=["http", "https"])
    parser.add_argument(
        "--refresh", "-r",
        action="store_true",
        help="Skip the cache read and fetch fresh pages"
    )
    parser.add_argument("--output", "-o", help="Output JSON file (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        sys.exit(2)

    log_level = logging.DEBUG if args.verbose else settings.log_level_value
    setup_logger(level=log_level, log_file=settings.log_file)

    store = init_default_store(settings)
    service = ExtractionService(settings=settings, store=store)
    results = []

    try:
        for path in args.paths:
            page, cached = service.read_page(path, scheme=args.scheme, use_cache=not args.refresh)
            results.append(page.model_dump())
            status = "✓" if page.exists else "✗"
            source = settings.store_backend if cached else "-"
            print(f"  {status} {page.uri}: {len(page.articles)} articles "
                  f"(cached: {source})", file=sys.stderr)
    finally:
        service.close()
        close_default_store()

    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output)
        print(f"\nSaved to: {args.output}", file=sys.stderr)
    else:
        print(output)


if __name__ == "__main__":
    main()
