#!/usr/bin/env python3
"""
Command-line script to compute page statistics.

Prints one PageStats object per page: link/tag counts, word counts and
the breadcrumb paths of text-heavy blocks. Statistics are never cached.

Usage:
    python run_discover.py example.com/blog
    python run_discover.py example.com/blog --scheme http -o stats.json
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
    parser = argparse.ArgumentParser(description="Compute word and tag statistics for pages")
    parser.add_argument("paths", nargs="+", help="Page paths without scheme")
    parser.add_argument("--scheme", "-s", default="https", choices=["http", "https"])
    parser.add_argument("--output", "-o", help="Output JSON file (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        sys.exit(2)

    setup_logger(level=logging.DEBUG if args.verbose else settings.log_level_value,
                 log_file=settings.log_file)

    service = ExtractionService(settings=settings, store=init_default_store(settings))
    results = []

    try:
        for path in args.paths:
            stats = service.discover_page(path, scheme=args.scheme)
            results.append(stats.model_dump())
            print(f"  {'✓' if stats.exists else '✗'} {stats.uri}: {len(stats.counts)} counts",
                  file=sys.stderr)
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
