"""
Search orchestrator for LeadRadar.
Coordinates discovery, website probing, PageSpeed analysis, scoring and
opportunity generation for one area + industry search.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Tuple

from .batching import CancellationToken, unique_in_order
from .config import Config
from .discovery import DiscoveryError, MapsDiscoveryClient, build_maps_url, parse_candidate
from .industries import detect_industry_type, get_search_query
from .logging_setup import SearchContext, get_logger
from .models import (
    BusinessSignals,
    Candidate,
    PerformanceSignal,
    SearchResult,
    SignalCache,
    WebsiteSignal,
)
from .opportunities import generate_opportunities
from .pagespeed import analyze_websites_batch
from .prober import probe_websites_batch
from .scoring import calculate_lead_score, get_lead_priority
from .urls import normalize_url

logger = get_logger("search")

DiscoveryFunc = Callable[[str, float, float, int], List[dict]]


def lookup_signal(signal_map: Dict[str, object], url: Optional[str]):
    """
    Find a URL's signal under any spelling of it.
    Tries the raw form, then the https-prefixed form, then any key that
    normalizes to the same URL.
    """
    if not url:
        return None
    found = signal_map.get(url)
    if found is not None:
        return found
    target = normalize_url(url)
    found = signal_map.get(target)
    if found is not None:
        return found
    for key, signal in signal_map.items():
        if normalize_url(key) == target:
            return signal
    return None


def collect_signals(
    urls: List[str],
    config: Config,
    enable_scrape: bool,
    enable_analyze: bool,
    pagespeed_api_key: Optional[str],
    cancel_token: CancellationToken,
    cache: SignalCache,
) -> Tuple[Dict[str, WebsiteSignal], Dict[str, PerformanceSignal]]:
    """
    Run the probe and PageSpeed batches side by side for URLs not yet cached.
    Successful signals are written back to the cache; the returned maps are
    snapshots of it, keyed as the batches keyed them.
    """
    to_probe = [url for url in urls if lookup_signal(cache.website, url) is None] if enable_scrape else []
    to_analyze = [
        url for url in urls if lookup_signal(cache.performance, url) is None
    ] if enable_analyze else []

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="signals") as executor:
        probe_future = None
        analyze_future = None
        if to_probe:
            probe_future = executor.submit(
                probe_websites_batch, to_probe, config.prober, cancel_token
            )
        if to_analyze:
            analyze_future = executor.submit(
                analyze_websites_batch, to_analyze, pagespeed_api_key, config.pagespeed, cancel_token
            )

        if probe_future is not None:
            cache.website.update(probe_future.result())
        if analyze_future is not None:
            cache.performance.update(analyze_future.result())

    website_signals = dict(cache.website) if enable_scrape else {}
    performance_signals = dict(cache.performance) if enable_analyze else {}
    return website_signals, performance_signals


def build_result(
    candidate: Candidate,
    requested_industry: str,
    website_signal: Optional[WebsiteSignal],
    performance: Optional[PerformanceSignal],
    config: Config,
) -> SearchResult:
    """Score one candidate and assemble its SearchResult."""
    industry = detect_industry_type(candidate.types) if candidate.types else "other"
    if industry == "other":
        industry = requested_industry

    signals = BusinessSignals(
        photo_count=candidate.photo_count,
        website=candidate.website,
        phone=candidate.phone,
        rating=candidate.rating,
        review_count=candidate.review_count,
        industry=industry,
        performance=performance,
        website_signal=website_signal,
    )
    score = calculate_lead_score(signals, config.scoring)

    return SearchResult(
        candidate=candidate,
        industry=industry,
        website=normalize_url(candidate.website),
        score=score,
        opportunities=generate_opportunities(signals, config.opportunities),
        priority=get_lead_priority(score.total, config.scoring),
        website_signal=website_signal,
        performance=performance,
        maps_url=build_maps_url(candidate.name, candidate.place_id, candidate.latitude, candidate.longitude),
    )


def search_businesses(
    industry: str,
    latitude: float,
    longitude: float,
    limit: int = 20,
    *,
    country: Optional[str] = None,
    enable_scrape: bool = True,
    enable_analyze: bool = False,
    pagespeed_api_key: Optional[str] = None,
    discovery: Optional[DiscoveryFunc] = None,
    config: Config = None,
    cancel_token: Optional[CancellationToken] = None,
    cache: Optional[SignalCache] = None,
) -> List[SearchResult]:
    """
    Discover, inspect and score businesses near a point.

    Per-site failures only lower that candidate's signal coverage.

    Raises:
        DiscoveryError: discovery failed, nothing to score
        SearchCancelled: token cancelled or deadline passed
    """
    config = config or Config()
    cancel_token = cancel_token or CancellationToken(config.search_timeout_seconds)
    cache = cache if cache is not None else SignalCache()
    discovery = discovery or MapsDiscoveryClient(config.discovery, config.retry)
    limit = max(1, min(int(limit), config.discovery.max_results))
    query = get_search_query(industry, country or config.default_country)

    with SearchContext(logger, f"{industry} '{query}' @ {latitude},{longitude}") as ctx:
        cancel_token.raise_if_cancelled()

        try:
            raw_records = discovery(query, latitude, longitude, limit)
        except DiscoveryError:
            raise
        except Exception as e:
            raise DiscoveryError(f"Discovery failed: {e}") from e

        candidates: List[Candidate] = []
        for raw in raw_records or []:
            candidate = parse_candidate(raw)
            if candidate is None:
                ctx.increment("candidates_skipped")
                continue
            candidates.append(candidate)
        ctx.increment("candidates_found", len(candidates))

        # One fetch per site, however each business spells its URL
        urls = unique_in_order((candidate.website for candidate in candidates), key=normalize_url)

        website_signals, performance_signals = collect_signals(
            urls,
            config,
            enable_scrape=enable_scrape,
            enable_analyze=enable_analyze,
            pagespeed_api_key=pagespeed_api_key,
            cancel_token=cancel_token,
            cache=cache,
        )
        if enable_scrape:
            ctx.increment("websites_probed", len(urls))
        ctx.increment("websites_reachable", sum(1 for url in urls if lookup_signal(website_signals, url)))
        ctx.increment("websites_analyzed", sum(1 for url in urls if lookup_signal(performance_signals, url)))

        results: List[SearchResult] = []
        for candidate in candidates:
            cancel_token.raise_if_cancelled()
            results.append(build_result(
                candidate,
                industry,
                lookup_signal(website_signals, candidate.website),
                lookup_signal(performance_signals, candidate.website),
                config,
            ))

        results.sort(key=lambda r: r.score.total, reverse=True)
        ctx.increment("results_returned", len(results))
        return results
