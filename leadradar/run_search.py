#!/usr/bin/env python3
"""
Command-line entry point for LeadRadar.
Runs one search and prints a ranked table, or JSON with --json.
"""

import argparse
import json
import signal
import sys
from typing import List

from .batching import CancellationToken, SearchCancelled
from .config import load_config, validate_config
from .discovery import DiscoveryError
from .industries import INDUSTRY_LABELS, INDUSTRY_TYPES
from .logging_setup import setup_logging, get_logger
from .models import SearchResult
from .search import search_businesses

logger = get_logger("cli")

EXIT_DISCOVERY_FAILED = 1
EXIT_CANCELLED = 130


class GracefulShutdown:
    """Cancel the running search on SIGTERM/SIGINT."""

    def __init__(self, token: CancellationToken):
        self.token = token
        signal.signal(signal.SIGTERM, self._handler)
        signal.signal(signal.SIGINT, self._handler)

    def _handler(self, signum, frame):
        logger.warning(f"Shutdown requested (signal {signum})")
        self.token.cancel(f"signal {signum}")


def format_table(results: List[SearchResult]) -> str:
    """Fixed-width summary, one business per line."""
    lines = [f"{'Score':>5}  {'Priority':<8}  {'Industry':<22}  {'Name':<40}  Website"]
    lines.append("-" * 110)
    for result in results:
        industry = INDUSTRY_LABELS.get(result.industry, result.industry)
        lines.append(
            f"{result.lead_score:>5}  {result.priority:<8}  {industry:<22}  "
            f"{result.candidate.name[:40]:<40}  {result.website or '-'}"
        )
    return "\n".join(lines)


def main(argv: List[str] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="LeadRadar: find and score local businesses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  leadradar-search --industry salon --lat 52.52 --lng 13.405 --country de
  leadradar-search --industry restaurant --lat 40.71 --lng -74.0 --deep --json
  leadradar-search --industry fitness --lat 51.5 --lng -0.12 --timeout 60
        """
    )
    parser.add_argument("--industry", required=True, choices=INDUSTRY_TYPES, help="Industry to search")
    parser.add_argument("--lat", type=float, required=True, help="Latitude of the search center")
    parser.add_argument("--lng", type=float, required=True, help="Longitude of the search center")
    parser.add_argument("--country", default=None, help="Country code for the localized query (e.g. de)")
    parser.add_argument("--limit", type=int, default=None, help="Max businesses (capped at 50)")
    parser.add_argument("--deep", action="store_true", help="Also run PageSpeed Insights analysis")
    parser.add_argument("--no-scrape", action="store_true", help="Skip website probing")
    parser.add_argument("--timeout", type=float, default=None, help="Whole-search deadline in seconds")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    args = parser.parse_args(argv)

    setup_logging()
    config = load_config()

    errors = validate_config(config)
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        return 1

    token = CancellationToken(args.timeout or config.search_timeout_seconds)
    GracefulShutdown(token)

    try:
        results = search_businesses(
            args.industry,
            args.lat,
            args.lng,
            args.limit or config.default_limit,
            country=args.country,
            enable_scrape=not args.no_scrape,
            enable_analyze=args.deep,
            pagespeed_api_key=config.pagespeed.api_key or None,
            config=config,
            cancel_token=token,
        )
    except DiscoveryError as e:
        logger.error(f"Search failed: {e}")
        return EXIT_DISCOVERY_FAILED
    except SearchCancelled as e:
        logger.warning(f"Search cancelled: {e}")
        return EXIT_CANCELLED

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
    else:
        print(format_table(results))
        print(f"\n{len(results)} businesses")

    return 0


if __name__ == "__main__":
    sys.exit(main())
