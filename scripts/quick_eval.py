#!/usr/bin/env python3
"""
Quick evaluation runner for LeadRadar.
Probes a list of websites and summarizes what the heuristics picked up.
"""

import argparse
import sys
from collections import Counter
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from leadradar.config import ProberConfig
from leadradar.logging_setup import setup_logging
from leadradar.prober import probe_website
from leadradar.models import WebsiteSignal

FEATURE_FLAGS = (
    "has_online_booking",
    "has_contact_form",
    "has_live_chat",
    "has_newsletter",
    "has_ecommerce",
    "has_blog",
    "has_mobile_viewport",
    "is_https",
    "has_modern_design",
    "has_video",
)


def normalize_list(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip() and not v.strip().startswith("#")]


def read_urls(args: argparse.Namespace) -> List[str]:
    urls = list(args.urls or [])
    if args.file:
        urls.extend(Path(args.file).read_text(encoding="utf-8").splitlines())
    return normalize_list(urls)


def summarize(signals: List[WebsiteSignal]) -> None:
    totals = Counter()
    ages = Counter()
    tech = Counter()
    features = Counter()
    errors = Counter()

    for signal in signals:
        totals["probed"] += 1
        if signal.skipped:
            totals["skipped"] += 1
            continue
        if not signal.reachable:
            totals["unreachable"] += 1
            errors[(signal.error or "unknown").split(":")[0]] += 1
            continue

        totals["reachable"] += 1
        ages[signal.estimated_age] += 1
        tech.update(signal.tech_stack or ["(none)"])
        for flag in FEATURE_FLAGS:
            if getattr(signal, flag):
                features[flag] += 1

    print("\nSummary")
    print(f"- Probed: {totals['probed']}")
    print(f"- Reachable: {totals['reachable']}")
    print(f"- Unreachable: {totals['unreachable']}")
    print(f"- Skipped (social): {totals['skipped']}")

    print("\nErrors")
    for error, count in errors.most_common(10):
        print(f"- {error}: {count}")

    print("\nEstimated age")
    for bucket in ("new", "recent", "outdated", "ancient", "unknown"):
        print(f"- {bucket}: {ages[bucket]}")

    print("\nTech stack")
    for label, count in tech.most_common():
        print(f"- {label}: {count}")

    print("\nFeatures (reachable sites)")
    for flag in FEATURE_FLAGS:
        print(f"- {flag}: {features[flag]}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Probe websites and summarize detected signals")
    parser.add_argument("urls", nargs="*", help="Website URLs (scheme optional)")
    parser.add_argument("--file", help="Text file with one URL per line")
    parser.add_argument("--timeout", type=float, default=4.0, help="Per-site deadline in seconds")
    parser.add_argument("--verbose", action="store_true", help="Print one line per site")
    args = parser.parse_args()

    setup_logging()

    urls = read_urls(args)
    if not urls:
        print("No URLs provided.")
        return 1

    config = ProberConfig(timeout_seconds=args.timeout)
    signals = []
    for url in urls:
        signal = probe_website(url, config)
        signals.append(signal)
        if args.verbose:
            status = "ok" if signal.reachable else (signal.error or "unreachable")
            print(f"- {url} | {status} | age={signal.estimated_age} | "
                  f"tech={','.join(signal.tech_stack) or '-'} | socials={signal.social_count}")

    summarize(signals)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
