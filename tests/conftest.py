"""
Shared pytest fixtures for LeadRadar tests.
"""

from datetime import datetime
from typing import Callable

import pytest

from leadradar.config import (
    Config,
    ProberConfig,
    PageSpeedConfig,
    DiscoveryConfig,
    ScoringConfig,
    OpportunityConfig,
    RetryConfig,
)
from leadradar.models import PerformanceSignal, WebsiteSignal

CURRENT_YEAR = datetime.now().year


@pytest.fixture
def prober_config() -> ProberConfig:
    """Probe configuration with a short deadline for tests."""
    return ProberConfig(timeout_seconds=2.0, concurrency=3)


@pytest.fixture
def pagespeed_config() -> PageSpeedConfig:
    """PageSpeed configuration without the pause between windows."""
    return PageSpeedConfig(api_key="", pause_seconds=0.0)


@pytest.fixture
def scoring_config() -> ScoringConfig:
    """Default scoring configuration for tests."""
    return ScoringConfig()


@pytest.fixture
def opportunity_config() -> OpportunityConfig:
    return OpportunityConfig()


@pytest.fixture
def retry_config() -> RetryConfig:
    """No retries, so failure tests don't sleep."""
    return RetryConfig(
        max_retries=0,
        base_delay_seconds=0.01,
        max_delay_seconds=0.01,
        jitter=False,
    )


@pytest.fixture
def mock_config(
    prober_config: ProberConfig,
    pagespeed_config: PageSpeedConfig,
    scoring_config: ScoringConfig,
    opportunity_config: OpportunityConfig,
    retry_config: RetryConfig,
) -> Config:
    """Full configuration for tests."""
    return Config(
        prober=prober_config,
        pagespeed=pagespeed_config,
        discovery=DiscoveryConfig(api_key="test_key", api_host="maps-data.p.rapidapi.com"),
        scoring=scoring_config,
        opportunities=opportunity_config,
        retry=retry_config,
        default_country="us",
    )


@pytest.fixture
def make_website_signal() -> Callable[..., WebsiteSignal]:
    """Factory for reachable website signals; override any field."""
    def _make(**overrides) -> WebsiteSignal:
        fields = {
            "url": "https://example.com",
            "reachable": True,
            "load_time_ms": 250,
            "estimated_age": "unknown",
        }
        fields.update(overrides)
        return WebsiteSignal(**fields)
    return _make


@pytest.fixture
def make_performance_signal() -> Callable[..., PerformanceSignal]:
    """Factory for error-free PageSpeed signals; override any field."""
    def _make(**overrides) -> PerformanceSignal:
        fields = {
            "url": "https://example.com",
            "is_https": True,
            "performance_score": 90,
            "is_mobile_friendly": True,
            "response_time_ms": 180,
            "has_errors": False,
        }
        fields.update(overrides)
        return PerformanceSignal(**fields)
    return _make


@pytest.fixture
def modern_site_signal(make_website_signal) -> WebsiteSignal:
    """A site with everything the scoring rules look for."""
    return make_website_signal(
        url="https://studiobloom.example",
        is_https=True,
        has_mobile_viewport=True,
        tech_stack=["React", "TailwindCSS"],
        has_modern_design=True,
        has_online_booking=True,
        has_contact_form=True,
        has_live_chat=True,
        has_newsletter=True,
        has_blog=True,
        social_links={
            "facebook": "https://www.facebook.com/studiobloom",
            "instagram": "https://instagram.com/studiobloom",
        },
        social_count=2,
        copyright_year=CURRENT_YEAR,
        estimated_age="new",
    )


@pytest.fixture
def dated_site_signal(make_website_signal) -> WebsiteSignal:
    """An old plain-HTTP WordPress site with no extras."""
    return make_website_signal(
        url="http://joesauto.example",
        is_https=False,
        has_mobile_viewport=False,
        tech_stack=["WordPress", "jQuery"],
        has_wordpress=True,
        has_custom_site=False,
        copyright_year=2012,
        estimated_age="ancient",
    )


@pytest.fixture
def sample_html_modern() -> str:
    """Sample HTML for a modern salon website."""
    return f"""
    <!DOCTYPE html>
    <html lang="en-US">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1">
        <meta name="description" content="Modern hair salon in Berlin.">
        <title>Studio Bloom | Hair Salon</title>
        <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/tailwindcss@3/dist/tailwind.min.css">
        <script src="/_next/static/chunks/main.js"></script>
    </head>
    <body>
        <a href="https://calendly.com/studiobloom">Book now</a>
        <a href="https://www.facebook.com/studiobloom">Facebook</a>
        <a href="https://instagram.com/studiobloom">Instagram</a>
        <a href="https://www.facebook.com/another-page">Partner</a>
        <form action="/contact">
            <input name="email">
            <textarea name="message"></textarea>
        </form>
        <script src="https://widget.intercom.io/widget/abc123"></script>
        <section>Subscribe to our newsletter</section>
        <a href="/blog">Blog</a>
        <img src="a.jpg"><img src="b.jpg">
        <iframe src="https://www.youtube.com/embed/xyz"></iframe>
        <footer>© {CURRENT_YEAR} Studio Bloom</footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_html_dated() -> str:
    """Sample HTML for an old WordPress site.
    Uses "All rights reserved" on purpose: it must not read as a reservation feature.
    """
    return """
    <html>
    <head>
        <title>Joe's Auto Repair</title>
        <link rel="stylesheet" href="/wp-content/themes/classic/style.css">
        <script src="/wp-includes/js/jquery/jquery.js"></script>
    </head>
    <body>
        <table><tr><td>Welcome to Joe's Auto Repair!</td></tr></table>
        <p>Call us at 555-123-4567</p>
        <p>Copyright 2012 Joe's Auto. All rights reserved.</p>
    </body>
    </html>
    """


@pytest.fixture
def pagespeed_payload() -> dict:
    """Trimmed runPagespeed response."""
    return {
        "lighthouseResult": {
            "categories": {"performance": {"score": 0.87}},
            "audits": {
                "server-response-time": {"numericValue": 612.4},
                "is-on-https": {"score": 1},
                "viewport": {"score": 1},
            },
        }
    }


@pytest.fixture
def raw_maps_record() -> dict:
    """One record as returned by the maps-data search endpoint."""
    return {
        "business_id": "0x47a84e:0x1b2c",
        "name": "Studio Bloom",
        "full_address": "Torstr. 1, 10119 Berlin",
        "phone_number": "+49 30 1234567",
        "website": "studiobloom.example",
        "rating": 4.6,
        "review_count": 38,
        "types": ["Hair salon", "beauty_salon"],
        "photos_sample": [
            {"photo_url": "https://lh5.example/photo1.jpg"},
            {"photo_url": "https://lh5.example/photo2.jpg"},
        ],
        "latitude": 52.529,
        "longitude": 13.401,
    }
