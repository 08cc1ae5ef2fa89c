"""
Configuration management for LeadRadar.
Loads from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
LOG_DIR = PROJECT_ROOT / "logs"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class ProberConfig:
    """Single-page website probe settings."""
    timeout_seconds: float = field(default_factory=lambda: _env_float("PROBE_TIMEOUT_SECONDS", 4.0))
    concurrency: int = field(default_factory=lambda: _env_int("PROBE_CONCURRENCY", 15))
    max_body_bytes: int = 2 * 1024 * 1024  # 2MB is plenty for heuristics
    user_agent: str = "Mozilla/5.0 (compatible; LeadRadar/1.0; +https://example.com/bot)"
    accept_language: str = "en-US,en;q=0.9,de;q=0.8"


@dataclass
class PageSpeedConfig:
    """PageSpeed Insights API configuration."""
    api_key: str = field(default_factory=lambda: os.environ.get("PAGESPEED_API_KEY", ""))
    api_url: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    strategy: str = "mobile"
    category: str = "performance"
    # Keyless quota is ~25 req/100s, keep this well below the prober's
    concurrency: int = 3
    pause_seconds: float = 0.5
    timeout_seconds: float = 60.0


@dataclass
class DiscoveryConfig:
    """RapidAPI maps-data search configuration."""
    api_key: str = field(default_factory=lambda: os.environ.get("RAPIDAPI_KEY", ""))
    api_host: str = field(default_factory=lambda: os.environ.get("RAPIDAPI_MAPS_HOST", "maps-data.p.rapidapi.com"))
    endpoint: str = "/searchmaps.php"
    zoom: int = 13
    language: str = "en"
    max_results: int = 50
    timeout_seconds: float = 30.0


@dataclass
class ScoringConfig:
    """Lead scoring weights and thresholds."""
    # Layer 1: basic presence
    weight_no_website: int = 45
    weight_social_only_website: int = 30
    weight_no_phone: int = 5

    # Layer 2: directory profile quality
    weight_few_photos: int = 8
    weight_very_few_reviews: int = 7
    weight_few_reviews: int = 4
    weight_hidden_gem: int = 5
    few_photos_threshold: int = 5
    very_few_reviews_threshold: int = 20
    few_reviews_threshold: int = 100
    hidden_gem_min_rating: float = 4.0
    hidden_gem_max_reviews: int = 50

    # Layer 3: technical health
    weight_poor_performance: int = 10
    weight_not_mobile_friendly: int = 10
    weight_no_https: int = 5
    weight_unanalyzed_website: int = 5
    poor_performance_threshold: int = 50

    # Layer 4: website opportunities
    weight_outdated_website: int = 10
    weight_no_online_booking: int = 8
    weight_no_social_links: int = 5
    weight_basic_tech_stack: int = 7

    # Priority tiers
    high_priority_min_score: int = 55
    medium_priority_min_score: int = 35


@dataclass
class OpportunityConfig:
    """Opportunity list generation settings."""
    max_opportunities: int = 8
    low_rating_threshold: float = 4.0
    low_reviews_threshold: int = 50


@dataclass
class RetryConfig:
    """Retry and backoff configuration."""
    max_retries: int = 2
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    exponential_base: float = 2.0
    jitter: bool = True


@dataclass
class Config:
    """Main configuration container."""
    prober: ProberConfig = field(default_factory=ProberConfig)
    pagespeed: PageSpeedConfig = field(default_factory=PageSpeedConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    opportunities: OpportunityConfig = field(default_factory=OpportunityConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    default_country: str = field(default_factory=lambda: os.environ.get("DEFAULT_COUNTRY", "us"))
    default_limit: int = 20
    search_timeout_seconds: Optional[float] = None


def load_config() -> Config:
    """Load configuration from environment variables."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return Config()


def validate_config(config: Config, require_discovery: bool = True) -> List[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if require_discovery and not config.discovery.api_key:
        errors.append("RAPIDAPI_KEY environment variable not set")
    if config.prober.concurrency < 1:
        errors.append("Prober concurrency must be at least 1")
    if config.pagespeed.concurrency < 1:
        errors.append("PageSpeed concurrency must be at least 1")
    if config.prober.timeout_seconds <= 0:
        errors.append("Probe timeout must be positive")
    if config.opportunities.max_opportunities < 1:
        errors.append("max_opportunities must be at least 1")

    return errors
