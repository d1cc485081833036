# storefront/geocode.py
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .clients import get_http_client
from .config import Settings, get_settings
from .errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["geocode"])


async def _fetch_json(client: httpx.AsyncClient, url: str, params: dict, settings: Settings, failure: str):
    # single attempt; any upstream problem is surfaced as the generic failure message
    try:
        resp = await client.get(url, params=params, headers={"User-Agent": settings.geocoder_user_agent})
    except httpx.HTTPError as exc:
        logger.error("geocoder request to %s failed: %s", url, exc)
        raise UpstreamError(failure) from exc

    if resp.status_code != 200:
        logger.error("geocoder returned %s: %s", resp.status_code, resp.text[:500])
        raise UpstreamError(failure)
    try:
        return resp.json()
    except ValueError as exc:
        logger.error("geocoder returned invalid JSON: %s", exc)
        raise UpstreamError(failure) from exc


# 📍 Address search (free text -> candidate locations)
@router.get("/geocode")
async def geocode(
    query: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not query:
        raise ValidationError("Query parameter is required")

    data = await _fetch_json(
        client,
        f"{settings.geocoder_url.rstrip('/')}/search",
        {"q": query, "format": "json", "limit": settings.geocode_limit},
        settings,
        "Failed to fetch geocoding data",
    )
    return JSONResponse(content=data)


# 📍 Coordinates -> address
@router.get("/reverse-geocode")
async def reverse_geocode(
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not lat or not lng:
        raise ValidationError("Latitude and longitude are required")
    try:
        float(lat)
        float(lng)
    except ValueError:
        raise ValidationError("Latitude and longitude must be numeric")

    data = await _fetch_json(
        client,
        f"{settings.geocoder_url.rstrip('/')}/reverse",
        {"lat": lat, "lon": lng, "format": "json"},
        settings,
        "Failed to fetch reverse geocoding data",
    )
    return JSONResponse(content=data)
