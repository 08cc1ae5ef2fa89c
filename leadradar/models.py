"""
Data records shared across the LeadRadar pipeline.

Signals are built once per probe/analysis and never mutated afterwards;
SearchResult is handed to callers as-is for any persistence they do.
"""

from dataclasses import dataclass, field, asdict, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Candidate:
    """Business record returned by the discovery service."""
    place_id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    photo_count: int = 0
    types: Tuple[str, ...] = ()
    photo_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "types", tuple(self.types))


@dataclass(frozen=True)
class WebsiteSignal:
    """Heuristic evidence scraped from a single page fetch."""
    url: str
    reachable: bool = False
    load_time_ms: int = 0

    # Basic info
    title: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None

    # Tech detection
    tech_stack: Tuple[str, ...] = ()
    has_wordpress: bool = False
    has_shopify: bool = False
    has_squarespace: bool = False
    has_wix: bool = False
    has_custom_site: bool = True

    # Age indicators
    copyright_year: Optional[int] = None
    estimated_age: str = "unknown"  # new | recent | outdated | ancient | unknown

    # Features
    has_online_booking: bool = False
    has_contact_form: bool = False
    has_live_chat: bool = False
    has_newsletter: bool = False
    has_ecommerce: bool = False
    has_blog: bool = False

    # Social presence
    social_links: Dict[str, str] = field(default_factory=dict)
    social_count: int = 0

    # Mobile & security
    has_mobile_viewport: bool = False
    is_https: bool = False
    has_ssl_issues: bool = False

    # Quality indicators
    has_modern_design: bool = False
    image_count: int = 0
    has_video: bool = False

    skipped: bool = False
    error: Optional[str] = None
    scraped_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        object.__setattr__(self, "tech_stack", tuple(self.tech_stack))


@dataclass(frozen=True)
class PerformanceSignal:
    """PageSpeed Insights summary for one URL."""
    url: str
    is_https: bool
    performance_score: int
    is_mobile_friendly: bool
    response_time_ms: int
    has_errors: bool
    analyzed_at: str = field(default_factory=utc_now_iso)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-rule score contributions; total is always the sum of the rule fields."""
    # Layer 1
    no_website: int = 0
    social_only_website: int = 0
    no_phone: int = 0
    # Layer 2
    few_photos: int = 0
    low_reviews: int = 0
    hidden_gem: int = 0
    # Layer 3
    poor_performance: int = 0
    not_mobile_friendly: int = 0
    no_https: int = 0
    # Layer 4
    outdated_website: int = 0
    no_online_booking: int = 0
    no_social_links: int = 0
    basic_tech_stack: int = 0

    total: int = 0

    @classmethod
    def rule_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "total")

    @classmethod
    def from_contributions(cls, contributions: Dict[str, int]) -> "ScoreBreakdown":
        unknown = set(contributions) - set(cls.rule_names())
        if unknown:
            raise ValueError(f"Unknown score rules: {sorted(unknown)}")
        if any(value < 0 for value in contributions.values()):
            raise ValueError("Score contributions must be non-negative")
        return cls(**contributions, total=sum(contributions.values()))

    def contributions(self) -> Dict[str, int]:
        """Non-zero rule contributions, in declaration order."""
        return {
            name: getattr(self, name)
            for name in self.rule_names()
            if getattr(self, name)
        }


@dataclass(frozen=True)
class BusinessSignals:
    """Everything the scoring engine and opportunity generator look at for one business."""
    photo_count: int = 0
    website: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    industry: str = "other"
    performance: Optional[PerformanceSignal] = None
    website_signal: Optional[WebsiteSignal] = None


@dataclass(frozen=True)
class SearchResult:
    """Scored, annotated candidate returned by a search."""
    candidate: Candidate
    industry: str
    website: Optional[str]
    score: ScoreBreakdown
    opportunities: Tuple[str, ...]
    priority: str
    website_signal: Optional[WebsiteSignal] = None
    performance: Optional[PerformanceSignal] = None
    maps_url: Optional[str] = None

    @property
    def lead_score(self) -> int:
        return self.score.total

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["lead_score"] = self.lead_score
        data["opportunities"] = list(self.opportunities)
        return data


@dataclass
class SignalCache:
    """
    Per-URL memo passed explicitly through a search call.
    Keys are the URLs exactly as they were handed to the batch helpers.
    """
    website: Dict[str, WebsiteSignal] = field(default_factory=dict)
    performance: Dict[str, PerformanceSignal] = field(default_factory=dict)
