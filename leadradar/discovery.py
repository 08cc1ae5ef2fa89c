"""
Business discovery via the RapidAPI "maps-data" search endpoint.
Returns raw records; parse_candidate() turns one into a Candidate.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.exceptions import RequestException

from .config import DiscoveryConfig, RetryConfig
from .logging_setup import get_logger
from .models import Candidate
from .retry import call_upstream

logger = get_logger("discovery")


class DiscoveryError(Exception):
    """Discovery service could not enumerate candidates."""
    pass


def _safe_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _safe_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_maps_url(name: str, place_id: str, latitude: Optional[float], longitude: Optional[float]) -> Optional[str]:
    """Google Maps link for a place; needs coordinates to be meaningful."""
    if latitude is None or longitude is None or not place_id:
        return None
    return (
        "https://www.google.com/maps/search/?api=1"
        f"&query={quote(name or '')}&query_place_id={quote(place_id)}"
    )


def parse_candidate(raw: Dict[str, Any]) -> Optional[Candidate]:
    """
    Map one raw search record to a Candidate.
    Returns None for records without a stable id or a name.
    """
    if not isinstance(raw, dict):
        return None

    place_id = _clean_str(raw.get("business_id") or raw.get("place_id"))
    name = _clean_str(raw.get("name"))
    if not place_id or not name:
        return None

    photos = raw.get("photos_sample")
    if not isinstance(photos, list):
        photos = []
    photo_url = None
    for photo in photos:
        if isinstance(photo, dict) and photo.get("photo_url"):
            photo_url = photo["photo_url"]
            break

    types = raw.get("types")
    if isinstance(types, str):
        types = [types]
    elif not isinstance(types, list):
        types = []

    return Candidate(
        place_id=place_id,
        name=name,
        address=_clean_str(raw.get("full_address") or raw.get("address")),
        phone=_clean_str(raw.get("phone_number")),
        website=_clean_str(raw.get("website")),
        rating=_safe_float(raw.get("rating")),
        review_count=_safe_int(raw.get("review_count")),
        photo_count=len(photos),
        types=tuple(str(t) for t in types if t),
        photo_url=photo_url,
        latitude=_safe_float(raw.get("latitude")),
        longitude=_safe_float(raw.get("longitude")),
    )


class MapsDiscoveryClient:
    """
    RapidAPI maps-data client.

    Callable with the collaborator signature
    (query, latitude, longitude, limit) -> list of raw records.
    """

    def __init__(self, config: DiscoveryConfig = None, retry_config: RetryConfig = None):
        self.config = config or DiscoveryConfig()
        self.retry_config = retry_config or RetryConfig()
        self.session = requests.Session()
        self.session.headers.update({
            "X-RapidAPI-Key": self.config.api_key,
            "X-RapidAPI-Host": self.config.api_host,
        })

    @property
    def url(self) -> str:
        return f"https://{self.config.api_host}{self.config.endpoint}"

    def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        def do_request():
            resp = self.session.get(self.url, params=params, timeout=self.config.timeout_seconds)
            resp.raise_for_status()
            return resp.json()

        return call_upstream(do_request, self.retry_config, "maps_search")

    def search(self, query: str, latitude: float, longitude: float, limit: int = 20) -> List[Dict[str, Any]]:
        """Search businesses near a point. Raises DiscoveryError on failure."""
        if not self.config.api_key:
            raise DiscoveryError("RAPIDAPI_KEY environment variable not set")

        params = {
            "query": query,
            "lat": latitude,
            "lng": longitude,
            "limit": max(1, min(int(limit), self.config.max_results)),
            "zoom": self.config.zoom,
            "lang": self.config.language,
        }
        logger.info(f"Searching '{query}' near {latitude},{longitude} (limit={params['limit']})")

        try:
            data = self._request(params)
        except (RequestException, ValueError) as e:
            logger.error(f"Maps search failed for '{query}': {e}")
            raise DiscoveryError(f"Maps search failed: {e}") from e

        if not isinstance(data, dict):
            raise DiscoveryError("Maps search returned an unexpected payload")

        records = data.get("data") or []
        if not isinstance(records, list):
            raise DiscoveryError("Maps search returned an unexpected payload")

        logger.info(f"Maps search returned {len(records)} records")
        return records

    __call__ = search
