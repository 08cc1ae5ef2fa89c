"""
Website prober for LeadRadar.
Fetches a single page per business and extracts heuristic signals about
technology, features, social presence and age from the raw HTML.

Probing never raises: transport failures, bad status codes and unexpected
errors all come back as an unreachable WebsiteSignal carrying an error string.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from urllib3.exceptions import ReadTimeoutError
from requests.exceptions import (
    RequestException,
    Timeout,
    ConnectionError,
    SSLError,
    TooManyRedirects,
)

from .batching import CancellationToken, run_in_windows, unique_in_order
from .config import ProberConfig
from .logging_setup import get_logger
from .models import WebsiteSignal
from .urls import is_https, is_social_url, normalize_url

logger = get_logger("prober")

SKIPPED_SOCIAL_ERROR = "Social media URL - skipped"
MAX_REDIRECTS = 5


@dataclass
class FetchedPage:
    """Minimal response wrapper so extractors never touch the HTTP client."""
    status_code: int
    url: str
    text: str


def _compile(patterns: Iterable[str]) -> List[re.Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


# Technology detection table: label -> patterns. A label is present if any pattern matches.
TECH_PATTERNS: Dict[str, List[re.Pattern]] = {
    "WordPress": _compile([r"wp-content", r"wp-includes", r"wordpress"]),
    "Shopify": _compile([r"cdn\.shopify", r"shopify"]),
    "Squarespace": _compile([r"squarespace", r"sqsp"]),
    "Wix": _compile([r"wix\.com", r"wixstatic", r"wixsite"]),
    "Webflow": _compile([r"webflow"]),
    "React": _compile([r"\breact(?:-dom)?\b", r"/_next/", r"__next", r"nextjs"]),
    "Vue": _compile([r"vue(?:\.min)?\.js", r"\bnuxt", r"data-v-[0-9a-f]{6,}"]),
    "Angular": _compile([r"angular", r"\bng-(?:app|version|controller)\b"]),
    "Bootstrap": _compile([r"bootstrap"]),
    "TailwindCSS": _compile([r"tailwind"]),
    "jQuery": _compile([r"jquery"]),
}

# Labels that also set a dedicated platform flag on the signal
CMS_FLAGS = {
    "WordPress": "has_wordpress",
    "Shopify": "has_shopify",
    "Squarespace": "has_squarespace",
    "Wix": "has_wix",
}

FEATURE_PATTERNS: Dict[str, List[re.Pattern]] = {
    "has_online_booking": _compile([
        r"book\s*(?:now|online|(?:an?\s+)?appointment)",
        r"\breserv(?:e|ation|ations)\b",
        r"schedule\s+(?:an?\s+)?(?:appointment|visit|service|consultation)",
        r"\btermin(?:e|buchung|vereinbarung)?\b",  # German
        r"buchung",  # German
        r"calendly",
        r"acuityscheduling",
        r"booksy",
        r"fresha",
        r"treatwell",
        r"opentable",
        r"setmore",
        r"simplybook",
    ]),
    "has_live_chat": _compile([
        r"intercom",
        r"driftt?\.com",
        r"crisp\.chat",
        r"tawk\.to",
        r"zendesk|zdassets",
        r"livechat",
        r"hubspot|hs-scripts",
        r"tidio",
    ]),
    "has_newsletter": _compile([
        r"newsletter",
        r"\bsubscribe\b",
        r"mailchimp|list-manage\.com",
        r"klaviyo",
        r"convertkit",
        r"abonnieren",  # German
    ]),
    "has_ecommerce": _compile([
        r"add.to.cart",
        r"shopping.cart",
        r"checkout",
        r"buy.now",
        r"\bshop\b",
        r"woocommerce",
        r"warenkorb",  # German
        r"\bkaufen\b",  # German
    ]),
    "has_blog": _compile([
        r"\bblog\b",
        r"\bartikel\b",  # German
        r"\bnews\b",
    ]),
}

CONTACT_KEYWORDS = _compile([r"contact", r"e-?mail", r"message", r"kontakt", r"nachricht"])

# platform -> hostnames; first matching href per platform wins
SOCIAL_PLATFORMS: Dict[str, Tuple[str, ...]] = {
    "facebook": ("facebook.com", "fb.com"),
    "instagram": ("instagram.com",),
    "twitter": ("twitter.com", "x.com"),
    "linkedin": ("linkedin.com",),
    "youtube": ("youtube.com",),
    "tiktok": ("tiktok.com",),
}

MODERN_DESIGN_PATTERNS = _compile([
    r"tailwind",
    r"bootstrap",
    r"material(?:-ui|ize|\.io|-design)",
    r"chakra",
    r"styled-components",
    r"css-in-js",
    r"display\s*:\s*(?:flex|grid)",
    r"\bd-flex\b",
    r"\bgrid-cols-\d",
])

VIDEO_PATTERNS = _compile([r"<video", r"youtube\.com/embed", r"vimeo"])

# Copyright context is required so phone numbers and prices don't look like years
COPYRIGHT_PATTERNS = _compile([
    r"(?:©|&copy;|&#169;|copyright)\s*(?:\d{4})\s*[-–]\s*(\d{4})",
    r"©\s*(\d{4})",
    r"&copy;\s*(\d{4})",
    r"&#169;\s*(\d{4})",
    r"copyright\s*(?:©|&copy;|\(c\))?\s*(\d{4})",
    r"\(c\)\s*(\d{4})",
    r"(\d{4})\s*©",
])

MIN_COPYRIGHT_YEAR = 2000


def _make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _any_match(patterns: Iterable[re.Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def _host_matches(href: str, domains: Iterable[str]) -> bool:
    host = (urlparse(href.strip()).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return any(host == domain or host.endswith(f".{domain}") for domain in domains)


def extract_basic_info(soup: BeautifulSoup) -> Dict[str, Any]:
    """Title, meta description, language and mobile viewport."""
    info: Dict[str, Any] = {
        "title": None,
        "description": None,
        "language": None,
        "has_mobile_viewport": False,
    }

    if soup.title and soup.title.get_text():
        title = re.sub(r"\s+", " ", soup.title.get_text()).strip()
        info["title"] = title or None

    description = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    if description and description.get("content"):
        info["description"] = description["content"].strip() or None

    html_tag = soup.find("html")
    lang = html_tag.get("lang") if html_tag else None
    if lang and lang.strip():
        info["language"] = lang.strip().split("-")[0].lower()

    for meta in soup.find_all("meta", attrs={"name": re.compile(r"^viewport$", re.I)}):
        if "width=device-width" in (meta.get("content") or "").replace(" ", "").lower():
            info["has_mobile_viewport"] = True
            break

    return info


def detect_tech_stack(html: str) -> Dict[str, Any]:
    """Evaluate the technology table in one pass."""
    tech_stack = tuple(label for label, patterns in TECH_PATTERNS.items() if _any_match(patterns, html))
    flags = {flag: label in tech_stack for label, flag in CMS_FLAGS.items()}
    return {
        "tech_stack": tech_stack,
        **flags,
        "has_custom_site": not any(flags.values()),
    }


def detect_features(html: str, soup: BeautifulSoup) -> Dict[str, bool]:
    features = {name: _any_match(patterns, html) for name, patterns in FEATURE_PATTERNS.items()}
    features["has_contact_form"] = soup.find("form") is not None and _any_match(CONTACT_KEYWORDS, html)
    return features


def extract_social_links(soup: BeautifulSoup) -> Dict[str, Any]:
    """Keep the first href per platform, in document order."""
    links: Dict[str, str] = {}
    for tag in soup.find_all(href=True):
        href = tag.get("href") or ""
        if not href.strip():
            continue
        for platform, domains in SOCIAL_PLATFORMS.items():
            if platform not in links and _host_matches(href, domains):
                links[platform] = href.strip()
                break
    ordered = {platform: links[platform] for platform in SOCIAL_PLATFORMS if platform in links}
    return {"social_links": ordered, "social_count": len(ordered)}


def detect_design_quality(html: str) -> Dict[str, Any]:
    return {
        "has_modern_design": _any_match(MODERN_DESIGN_PATTERNS, html),
        "image_count": len(re.findall(r"<img\b", html, re.IGNORECASE)),
        "has_video": _any_match(VIDEO_PATTERNS, html),
    }


def extract_copyright_year(html: str, current_year: Optional[int] = None) -> Optional[int]:
    """Latest copyright year within [2000, current year], or None."""
    current_year = current_year or datetime.now().year
    years = []
    for pattern in COPYRIGHT_PATTERNS:
        for match in pattern.findall(html):
            year = int(match)
            if MIN_COPYRIGHT_YEAR <= year <= current_year:
                years.append(year)
    return max(years) if years else None


def estimate_age(copyright_year: Optional[int], current_year: Optional[int] = None) -> str:
    """Map a copyright year to new / recent / outdated / ancient / unknown."""
    if copyright_year is None:
        return "unknown"
    age = (current_year or datetime.now().year) - copyright_year
    if age <= 1:
        return "new"
    if age <= 3:
        return "recent"
    if age <= 6:
        return "outdated"
    return "ancient"


def analyze_html(html: str, final_url: str, current_year: Optional[int] = None) -> Dict[str, Any]:
    """Run every extractor over a page body. Order-insensitive; each defaults to absent."""
    html = html or ""
    soup = _make_soup(html)
    copyright_year = extract_copyright_year(html, current_year)

    fields: Dict[str, Any] = {}
    fields.update(extract_basic_info(soup))
    fields.update(detect_tech_stack(html))
    fields.update(detect_features(html, soup))
    fields.update(extract_social_links(soup))
    fields.update(detect_design_quality(html))
    fields["copyright_year"] = copyright_year
    fields["estimated_age"] = estimate_age(copyright_year, current_year)
    fields["is_https"] = is_https(final_url)
    return fields


def _looks_like_ssl_error(error: str) -> bool:
    """Best effort: client libraries word certificate failures differently."""
    lowered = error.lower()
    return any(token in lowered for token in ("ssl", "certificate", "tls"))


def _remaining(deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise Timeout("fetch deadline exceeded")
    return remaining


def _bound_next_read(response: requests.Response, seconds: float) -> None:
    """Cap the next socket read of a streamed response at `seconds`."""
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is not None:
        sock.settimeout(seconds)


def _open_within(url: str, headers: Dict[str, str], deadline: float) -> requests.Response:
    """
    GET with redirects followed by hand, so each hop only gets the time left.
    Raises requests exceptions; Timeout once the deadline has passed.
    """
    current = url
    for _ in range(MAX_REDIRECTS + 1):
        remaining = _remaining(deadline)
        response = requests.get(
            current,
            timeout=(remaining, remaining),
            headers=headers,
            allow_redirects=False,
            stream=True,
        )
        if not response.is_redirect:
            return response
        location = response.headers.get("Location") or ""
        response.close()
        current = urljoin(current, location)
    raise TooManyRedirects(f"Exceeded {MAX_REDIRECTS} redirects")


def _read_within(response: requests.Response, deadline: float, max_bytes: int) -> bytes:
    chunks = []
    size = 0
    stream = iter(response.iter_content(chunk_size=16384))
    while size < max_bytes:
        _bound_next_read(response, _remaining(deadline))
        try:
            chunk = next(stream)
        except StopIteration:
            break
        except ConnectionError as e:
            # requests wraps body read timeouts in ConnectionError
            if e.args and isinstance(e.args[0], ReadTimeoutError):
                raise Timeout("fetch deadline exceeded") from e
            raise
        chunks.append(chunk)
        size += len(chunk)
    return b"".join(chunks)


def fetch_page(url: str, config: ProberConfig) -> Tuple[Optional[FetchedPage], Optional[str]]:
    """
    GET a page with a hard deadline across connect, redirects, headers and body.
    Returns (page, error_message).
    """
    headers = {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml",
        "Accept-Language": config.accept_language,
    }
    deadline = time.monotonic() + config.timeout_seconds

    try:
        response = _open_within(url, headers, deadline)
        try:
            status_code = response.status_code
            final_url = response.url or url
            if not 200 <= status_code < 300:
                return FetchedPage(status_code=status_code, url=final_url, text=""), None

            body = _read_within(response, deadline, config.max_body_bytes)
            content_type = (response.headers.get("Content-Type") or "").lower()
            encoding = response.encoding if "charset" in content_type and response.encoding else "utf-8"
            try:
                text = body.decode(encoding, errors="replace")
            except LookupError:
                text = body.decode("utf-8", errors="replace")
            return FetchedPage(status_code=status_code, url=final_url, text=text), None
        finally:
            response.close()

    except SSLError as e:
        return None, f"ssl_error: {e}"
    except Timeout:
        return None, "timeout"
    except ConnectionError as e:
        return None, f"connection_error: {e}"
    except TooManyRedirects:
        return None, "too_many_redirects"
    except RequestException as e:
        return None, f"request_error: {e}"


def probe_website(
    url: str,
    config: ProberConfig = None,
    current_year: Optional[int] = None,
) -> WebsiteSignal:
    """
    Fetch and analyze a single website.
    Never raises exceptions to caller.
    """
    config = config or ProberConfig()

    if is_social_url(url):
        return WebsiteSignal(
            url=url,
            is_https=is_https(normalize_url(url)),
            skipped=True,
            error=SKIPPED_SOCIAL_ERROR,
        )

    start = time.monotonic()
    try:
        target = normalize_url(url)
        page, error = fetch_page(target, config)
        load_time_ms = int((time.monotonic() - start) * 1000)

        if error or page is None:
            error = error or "fetch_failed"
            logger.debug(f"Unreachable {url}: {error}")
            return WebsiteSignal(
                url=url,
                load_time_ms=load_time_ms,
                is_https=is_https(target),
                has_ssl_issues=_looks_like_ssl_error(error),
                error=error,
            )

        if not 200 <= page.status_code < 300:
            logger.debug(f"Bad status for {url}: {page.status_code}")
            return WebsiteSignal(
                url=url,
                load_time_ms=load_time_ms,
                is_https=is_https(page.url),
                error=f"HTTP {page.status_code}",
            )

        return WebsiteSignal(
            url=url,
            reachable=True,
            load_time_ms=load_time_ms,
            **analyze_html(page.text, page.url, current_year),
        )

    except Exception as e:
        logger.error(f"Unexpected error probing {url}: {e}")
        return WebsiteSignal(
            url=url,
            load_time_ms=int((time.monotonic() - start) * 1000),
            error=f"probe_error: {e}",
        )


def probe_websites_batch(
    urls: Iterable[str],
    config: ProberConfig = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, WebsiteSignal]:
    """
    Probe distinct, non-social URLs in fixed-size concurrency windows.
    Only reachable signals are returned; failed URLs are absent from the map.
    """
    config = config or ProberConfig()
    valid = unique_in_order(
        (url for url in urls if url and not is_social_url(url)),
        key=normalize_url,
    )
    if not valid:
        return {}

    logger.info(f"Probing {len(valid)} websites (window={config.concurrency})")
    results = run_in_windows(
        valid,
        lambda url: probe_website(url, config),
        window_size=config.concurrency,
        cancel_token=cancel_token,
        keep=lambda signal: signal.reachable,
        label="probe",
    )
    logger.info(f"Probed {len(valid)} websites: {len(results)} reachable")
    return results
