"""Pass-through gateway to the remote data store.

``forward`` knows nothing about routing: it takes a request descriptor and an
upstream origin and returns a response descriptor.  The router at the bottom
only adapts FastAPI requests to it.  Payloads are never inspected, rewritten
or cached.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from .clients import get_http_client
from .config import Settings, get_settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proxy", tags=["proxy"])

BODILESS_METHODS = frozenset({"GET", "HEAD"})
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# never relayed upstream; Host is rewritten, the length is recomputed and
# httpx negotiates only the encodings it can decode
DROPPED_REQUEST_HEADERS = frozenset({
    "host",
    "content-length",
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "cookie",
    "accept-encoding",
})


def cors_headers(site_origin: str) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": site_origin,
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type, apikey",
    }


@dataclass
class ProxyRequest:
    method: str
    path: str = ""
    query: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class ProxyResponse:
    status_code: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    media_type: Optional[str] = None

    def json(self):
        return json.loads(self.body)


def build_target_url(upstream_origin: str, path: str, query: str = "") -> str:
    target = f"{upstream_origin.rstrip('/')}/{path.lstrip('/')}"
    if query:
        target = f"{target}?{query}"
    return target


def build_upstream_headers(headers: Dict[str, str], upstream_origin: str, api_key: str) -> Dict[str, str]:
    out = {k: v for k, v in headers.items() if k.lower() not in DROPPED_REQUEST_HEADERS}
    # drop any caller-supplied key so the configured one wins
    out = {k: v for k, v in out.items() if k.lower() != "apikey"}
    out["Host"] = httpx.URL(upstream_origin).netloc.decode("ascii")
    out["apikey"] = api_key
    return out


async def forward(
    request: ProxyRequest,
    upstream_origin: str,
    api_key: str,
    client: httpx.AsyncClient,
    site_origin: str,
) -> ProxyResponse:
    """Relay ``request`` to the data store and mirror the answer.

    The upstream status and body bytes are returned untouched, with the
    upstream content type and the fixed CORS headers.  A transport failure
    becomes a 500 with ``{"error": "Proxy error: ..."}``.
    """
    method = request.method.upper()
    url = build_target_url(upstream_origin, request.path, request.query)
    content = None if method in BODILESS_METHODS else request.body

    try:
        upstream = await client.request(
            method,
            url,
            headers=build_upstream_headers(request.headers, upstream_origin, api_key),
            content=content,
        )
    except httpx.HTTPError as exc:
        logger.error("proxy %s %s failed: %s", method, url, exc)
        return ProxyResponse(
            status_code=500,
            body=json.dumps({"error": f"Proxy error: {exc}"}).encode("utf-8"),
            media_type="application/json",
        )

    headers = cors_headers(site_origin)
    content_type = upstream.headers.get("content-type")
    if content_type:
        headers["Content-Type"] = content_type
    return ProxyResponse(status_code=upstream.status_code, body=upstream.content, headers=headers)


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy(
    path: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not settings.service_api_key:
        raise UpstreamError("Proxy error: service API key is not configured")

    descriptor = ProxyRequest(
        method=request.method,
        path=path,
        query=request.url.query,
        headers=dict(request.headers),
        body=await request.body(),
    )
    result = await forward(descriptor, settings.upstream_origin, settings.service_api_key, client, settings.site_origin)
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )
