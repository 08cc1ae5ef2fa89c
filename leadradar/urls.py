"""
URL helpers shared by the prober, the PageSpeed client and the scoring rules.
"""

from typing import Optional
from urllib.parse import urlparse

# Social-only destinations (matched against the hostname)
SOCIAL_ONLY_DOMAINS = [
    "facebook.com",
    "fb.com",
    "instagram.com",
    "twitter.com",
    "x.com",
    "linkedin.com",
    "youtube.com",
    "tiktok.com",
]


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Ensure URL has a scheme."""
    if not url:
        return url
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        return f"https://{url}"
    return url


def is_social_url(url: Optional[str]) -> bool:
    """Check if the URL points to a social-only profile/page."""
    if not url:
        return False
    parsed = urlparse(normalize_url(url))
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return any(host == domain or host.endswith(f".{domain}") for domain in SOCIAL_ONLY_DOMAINS)


def is_https(url: Optional[str]) -> bool:
    return bool(url) and url.lower().startswith("https://")
