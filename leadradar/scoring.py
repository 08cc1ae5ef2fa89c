"""
Lead scoring engine for LeadRadar.

Pure, deterministic rules over BusinessSignals. Four additive layers:
presence, directory profile quality, technical health and website
opportunities. Higher score = bigger sales opportunity.
"""

from typing import Dict

from .config import ScoringConfig
from .industries import is_booking_industry
from .models import BusinessSignals, ScoreBreakdown, WebsiteSignal
from .urls import is_social_url

# Any of these means the site is already built on something current
MODERN_TECH = frozenset({"React", "Vue", "Angular", "TailwindCSS", "Shopify", "Webflow"})


def has_basic_tech_stack(signal: WebsiteSignal) -> bool:
    """
    No modern framework AND (WordPress without modern design OR an
    almost-empty stack: nothing, or only jQuery).
    """
    if any(label in MODERN_TECH for label in signal.tech_stack):
        return False
    dated_cms = signal.has_wordpress and not signal.has_modern_design
    bare_stack = len(signal.tech_stack) == 0 or list(signal.tech_stack) == ["jQuery"]
    return dated_cms or bare_stack


def _presence_layer(signals: BusinessSignals, config: ScoringConfig, points: Dict[str, int]) -> None:
    booking_relevant = is_booking_industry(signals.industry)

    if not signals.website:
        points["no_website"] = config.weight_no_website
        if booking_relevant:
            points["no_online_booking"] = config.weight_no_online_booking
    elif is_social_url(signals.website):
        points["social_only_website"] = config.weight_social_only_website
        if booking_relevant:
            points["no_online_booking"] = config.weight_no_online_booking

    if not signals.phone:
        points["no_phone"] = config.weight_no_phone


def _profile_layer(signals: BusinessSignals, config: ScoringConfig, points: Dict[str, int]) -> None:
    reviews = signals.review_count or 0

    if (signals.photo_count or 0) < config.few_photos_threshold:
        points["few_photos"] = config.weight_few_photos

    if reviews < config.very_few_reviews_threshold:
        points["low_reviews"] = config.weight_very_few_reviews
    elif reviews < config.few_reviews_threshold:
        points["low_reviews"] = config.weight_few_reviews

    if (
        signals.rating is not None
        and signals.rating >= config.hidden_gem_min_rating
        and reviews < config.hidden_gem_max_reviews
    ):
        points["hidden_gem"] = config.weight_hidden_gem


def _technical_layer(signals: BusinessSignals, config: ScoringConfig, points: Dict[str, int]) -> None:
    performance = signals.performance
    scraped = signals.website_signal

    if performance is not None and not performance.has_errors:
        if performance.performance_score < config.poor_performance_threshold:
            points["poor_performance"] = config.weight_poor_performance
        if not performance.is_mobile_friendly:
            points["not_mobile_friendly"] = config.weight_not_mobile_friendly
        if not performance.is_https:
            points["no_https"] = config.weight_no_https
    elif scraped is not None and scraped.reachable:
        # No performance data: only what the page itself tells us
        if not scraped.has_mobile_viewport:
            points["not_mobile_friendly"] = config.weight_not_mobile_friendly
        if not scraped.is_https:
            points["no_https"] = config.weight_no_https
    else:
        # A site exists but nothing could be measured; assume it is not perfect
        points["poor_performance"] = config.weight_unanalyzed_website


def _opportunity_layer(signals: BusinessSignals, config: ScoringConfig, points: Dict[str, int]) -> None:
    scraped = signals.website_signal

    if scraped.estimated_age in ("outdated", "ancient"):
        points["outdated_website"] = config.weight_outdated_website

    # Layer 1 may already have granted the booking gap
    if (
        is_booking_industry(signals.industry)
        and not scraped.has_online_booking
        and "no_online_booking" not in points
    ):
        points["no_online_booking"] = config.weight_no_online_booking

    if scraped.social_count == 0:
        points["no_social_links"] = config.weight_no_social_links

    if has_basic_tech_stack(scraped):
        points["basic_tech_stack"] = config.weight_basic_tech_stack


def calculate_lead_score(signals: BusinessSignals, config: ScoringConfig = None) -> ScoreBreakdown:
    """
    Score one business. Each rule field is set at most once; total is their sum.
    """
    config = config or ScoringConfig()
    points: Dict[str, int] = {}

    _presence_layer(signals, config, points)
    _profile_layer(signals, config, points)

    has_real_website = bool(signals.website) and not is_social_url(signals.website)
    if has_real_website:
        _technical_layer(signals, config, points)
        if signals.website_signal is not None and signals.website_signal.reachable:
            _opportunity_layer(signals, config, points)

    return ScoreBreakdown.from_contributions(points)


def get_lead_priority(score: int, config: ScoringConfig = None) -> str:
    """Convert a total score into a priority label."""
    config = config or ScoringConfig()
    if score >= config.high_priority_min_score:
        return "high"
    if score >= config.medium_priority_min_score:
        return "medium"
    return "low"
