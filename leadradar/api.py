"""
HTTP API for LeadRadar.
FastAPI app exposing a synchronous search endpoint and a health probe.
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .batching import CancellationToken, SearchCancelled
from .config import load_config
from .discovery import DiscoveryError
from .industries import INDUSTRY_TYPES
from .logging_setup import get_logger
from .search import search_businesses

logger = get_logger("api")

app = FastAPI(title="LeadRadar", docs_url=None, redoc_url=None)


class SearchRequest(BaseModel):
    industry: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    limit: int = Field(20, ge=1, le=50)
    country: Optional[str] = None
    enable_scrape: bool = True
    enable_analyze: bool = False
    timeout_seconds: Optional[float] = Field(None, gt=0)


@app.get("/health")
def health():
    return {"status": "ok"}


# Plain def: FastAPI runs it in a worker thread, the search blocks on network I/O
@app.post("/search")
def search(body: SearchRequest):
    if body.industry not in INDUSTRY_TYPES:
        raise HTTPException(status_code=422, detail=f"Unknown industry: {body.industry}")

    config = load_config()
    token = CancellationToken(body.timeout_seconds or config.search_timeout_seconds)

    try:
        results = search_businesses(
            body.industry,
            body.latitude,
            body.longitude,
            body.limit,
            country=body.country,
            enable_scrape=body.enable_scrape,
            enable_analyze=body.enable_analyze,
            pagespeed_api_key=config.pagespeed.api_key or None,
            config=config,
            cancel_token=token,
        )
    except DiscoveryError as e:
        logger.error(f"Discovery failed: {e}")
        raise HTTPException(status_code=502, detail="Discovery service failed")
    except SearchCancelled as e:
        logger.warning(f"Search cancelled: {e}")
        raise HTTPException(status_code=504, detail="Search timed out")

    return {
        "count": len(results),
        "results": [result.to_dict() for result in results],
    }
