"""
Google PageSpeed Insights client.
Requests a mobile, performance-only Lighthouse report and condenses it to a
PerformanceSignal. Analysis never raises; failures come back as error signals.
"""

from typing import Any, Dict, Iterable, Optional

import requests
from requests.exceptions import RequestException

from .batching import CancellationToken, run_in_windows, unique_in_order
from .config import PageSpeedConfig
from .logging_setup import get_logger
from .models import PerformanceSignal
from .urls import is_https, is_social_url, normalize_url

logger = get_logger("pagespeed")


def _error_signal(url: str) -> PerformanceSignal:
    """Zeroed signal; https is inferred from the URL since no audit ran."""
    return PerformanceSignal(
        url=url,
        is_https=is_https(normalize_url(url)),
        performance_score=0,
        is_mobile_friendly=False,
        response_time_ms=0,
        has_errors=True,
    )


def _audit_score(audits: Dict[str, Any], name: str) -> Optional[float]:
    audit = audits.get(name) or {}
    return audit.get("score")


def parse_pagespeed_response(url: str, data: Dict[str, Any]) -> PerformanceSignal:
    """
    Condense a runPagespeed payload.

    mobile friendly = viewport audit passed AND performance score >= 50.
    Error payloads and payloads without a lighthouse result give an error signal.
    """
    if not isinstance(data, dict) or data.get("error"):
        return _error_signal(url)

    lighthouse = data.get("lighthouseResult")
    if not isinstance(lighthouse, dict):
        return _error_signal(url)

    performance = (lighthouse.get("categories") or {}).get("performance") or {}
    audits = lighthouse.get("audits") or {}

    raw_score = performance.get("score")
    performance_score = int(round(float(raw_score) * 100)) if raw_score is not None else 0

    response_time = (audits.get("server-response-time") or {}).get("numericValue")
    response_time_ms = int(round(float(response_time))) if response_time is not None else 0

    has_viewport = _audit_score(audits, "viewport") == 1

    return PerformanceSignal(
        url=url,
        is_https=_audit_score(audits, "is-on-https") == 1,
        performance_score=performance_score,
        is_mobile_friendly=has_viewport and performance_score >= 50,
        response_time_ms=response_time_ms,
        has_errors=False,
    )


def analyze_website(
    url: str,
    api_key: Optional[str] = None,
    config: PageSpeedConfig = None,
) -> PerformanceSignal:
    """
    Run PageSpeed Insights for one URL.
    Never raises exceptions to caller.
    """
    config = config or PageSpeedConfig()
    api_key = api_key if api_key is not None else config.api_key

    params = {
        "url": normalize_url(url),
        "strategy": config.strategy,
        "category": config.category,
    }
    if api_key:
        params["key"] = api_key

    try:
        response = requests.get(config.api_url, params=params, timeout=config.timeout_seconds)
        if not response.ok:
            logger.warning(f"PageSpeed API error for {url}: HTTP {response.status_code}")
            return _error_signal(url)

        data = response.json()
        if isinstance(data, dict) and data.get("error"):
            message = (data["error"] or {}).get("message") if isinstance(data["error"], dict) else data["error"]
            logger.warning(f"PageSpeed API error for {url}: {message}")
            return _error_signal(url)

        return parse_pagespeed_response(url, data)

    except RequestException as e:
        logger.warning(f"PageSpeed request failed for {url}: {e}")
        return _error_signal(url)
    except ValueError as e:
        logger.warning(f"PageSpeed returned invalid JSON for {url}: {e}")
        return _error_signal(url)
    except Exception as e:
        logger.error(f"Unexpected error analyzing {url}: {e}")
        return _error_signal(url)


def analyze_websites_batch(
    urls: Iterable[str],
    api_key: Optional[str] = None,
    config: PageSpeedConfig = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, PerformanceSignal]:
    """
    Analyze distinct non-social URLs in small windows with a pause between them.
    Error signals are left out of the returned map.
    """
    config = config or PageSpeedConfig()
    valid = unique_in_order(
        (url for url in urls if url and not is_social_url(url)),
        key=normalize_url,
    )
    if not valid:
        return {}

    logger.info(f"Analyzing {len(valid)} websites with PageSpeed (window={config.concurrency})")
    results = run_in_windows(
        valid,
        lambda url: analyze_website(url, api_key, config),
        window_size=config.concurrency,
        pause_seconds=config.pause_seconds,
        cancel_token=cancel_token,
        keep=lambda signal: not signal.has_errors,
        label="pagespeed",
    )
    logger.info(f"PageSpeed analyzed {len(results)}/{len(valid)} websites")
    return results
