"""
Sales opportunity recommendations.
Turns the same signals the scoring engine sees into a short, ordered list of
services to pitch.
"""

from typing import Dict, List, Tuple

from .config import OpportunityConfig
from .models import BusinessSignals, WebsiteSignal
from .urls import is_social_url

BASE_OPPORTUNITIES: Dict[str, List[str]] = {
    "no_website": [
        "Website design and development",
        "Google Business Profile optimization",
        "Basic SEO setup",
    ],
    "social_only_website": [
        "Professional website to replace social media presence",
        "Custom domain and professional email setup",
        "Brand identity and online presence upgrade",
    ],
    "has_website": [
        "SEO audit and optimization",
        "Website redesign and modernization",
        "Website speed and mobile optimization",
        "Conversion rate optimization",
    ],
    "no_phone": [
        "Business phone system setup",
        "Professional phone number and call routing",
    ],
    "low_rating": [
        "Reputation management and review improvement",
        "Customer feedback and service improvement consulting",
    ],
    "low_reviews": [
        "Review generation and management system",
        "Customer feedback automation",
    ],
}

INDUSTRY_OPPORTUNITIES: Dict[str, List[str]] = {
    "restaurant": [
        "Online ordering system",
        "Digital menu with QR codes",
        "Table reservation system",
        "Food delivery platform integration",
        "Social media marketing for restaurants",
    ],
    "salon": [
        "Online appointment booking system",
        "Client management software",
        "Loyalty program digitization",
        "SMS appointment reminders",
        "Before/after gallery for marketing",
    ],
    "fitness": [
        "Member management and billing system",
        "Online class booking and scheduling",
        "Fitness app or member portal",
        "Personal trainer booking system",
        "Virtual class capabilities",
    ],
    "medical": [
        "Patient portal development",
        "Online appointment booking",
        "Telemedicine integration",
        "HIPAA-compliant website and forms",
        "Automated appointment reminders",
    ],
    "retail": [
        "E-commerce website development",
        "Inventory management system",
        "Point of sale integration",
        "Customer loyalty program",
        "Local SEO optimization",
    ],
    "automotive": [
        "Online service booking system",
        "Customer portal for service history",
        "Parts inventory system",
        "Automated service reminders",
        "Review management for auto shops",
    ],
    "real_estate": [
        "Property listing website",
        "Virtual tour integration",
        "Lead capture system",
        "CRM implementation",
        "Email marketing automation",
    ],
    "professional_services": [
        "Professional website development",
        "Online consultation booking",
        "Client portal and document management",
        "Invoice and payment system",
        "Content marketing and blog setup",
    ],
    "other": [
        "Professional website development",
        "Online presence optimization",
        "Social media marketing",
        "Review management",
        "Digital transformation consulting",
    ],
}

# Automotive booking gaps are covered by its own catalogue entry
BOOKING_GAP_INDUSTRIES = frozenset({"salon", "fitness", "medical", "restaurant"})


def website_gap_opportunities(signal: WebsiteSignal, industry: str) -> List[str]:
    """One recommendation per feature the scraped site is missing."""
    gaps: List[str] = []

    if signal.estimated_age in ("outdated", "ancient"):
        gaps.extend(["Website redesign and modernization", "Modern UI/UX overhaul"])
    if not signal.has_mobile_viewport:
        gaps.append("Mobile-responsive website redesign")
    if signal.has_wordpress and not signal.has_modern_design:
        gaps.append("WordPress theme modernization")
    if industry in BOOKING_GAP_INDUSTRIES and not signal.has_online_booking:
        gaps.append("Online appointment/reservation system")
    if not signal.has_live_chat:
        gaps.append("Live chat integration for customer support")
    if not signal.has_newsletter:
        gaps.append("Email marketing and newsletter setup")
    if not signal.has_blog:
        gaps.append("Content marketing and blog setup")
    if signal.social_count == 0:
        gaps.append("Social media integration on website")
    if not signal.is_https:
        gaps.append("SSL certificate and security upgrade")

    return gaps


def _first_word(text: str) -> str:
    parts = text.split()
    return parts[0].lower() if parts else ""


def generate_opportunities(signals: BusinessSignals, config: OpportunityConfig = None) -> Tuple[str, ...]:
    """
    Build the ordered, deduplicated recommendation list for one business.

    Buckets in priority order: web presence, website gaps (or the generic
    website bucket when nothing was scraped), phone, reputation, then the
    industry catalogue. Catalogue entries whose first word already shows up
    in a collected string are skipped.
    """
    config = config or OpportunityConfig()
    collected: List[str] = []

    if not signals.website:
        collected.extend(BASE_OPPORTUNITIES["no_website"])
    elif is_social_url(signals.website):
        collected.extend(BASE_OPPORTUNITIES["social_only_website"])
    elif signals.website_signal is not None and signals.website_signal.reachable:
        collected.extend(website_gap_opportunities(signals.website_signal, signals.industry))
    else:
        collected.extend(BASE_OPPORTUNITIES["has_website"])

    if not signals.phone:
        collected.extend(BASE_OPPORTUNITIES["no_phone"])

    if signals.rating and signals.rating < config.low_rating_threshold:
        collected.extend(BASE_OPPORTUNITIES["low_rating"])
    elif signals.review_count is None or signals.review_count < config.low_reviews_threshold:
        collected.extend(BASE_OPPORTUNITIES["low_reviews"])

    catalogue = INDUSTRY_OPPORTUNITIES.get(signals.industry) or INDUSTRY_OPPORTUNITIES["other"]
    for entry in catalogue:
        keyword = _first_word(entry)
        if keyword and any(keyword in existing.lower() for existing in collected):
            continue
        collected.append(entry)

    unique: List[str] = []
    for item in collected:
        if item not in unique:
            unique.append(item)

    return tuple(unique[:config.max_opportunities])
