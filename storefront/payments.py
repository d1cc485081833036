# storefront/payments.py
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Body, Depends, Request, Response

from .clients import get_http_client
from .config import Settings, get_settings
from .errors import MethodNotAllowed, PaymentVerificationError, UpstreamError, ValidationError
from .schemas import PaymentVerifyRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["payments"])

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


async def verify_transaction(reference: str, settings: Settings, client: httpx.AsyncClient) -> Dict[str, Any]:
    """Ask Paystack whether ``reference`` is a successful transaction.

    Returns the transaction ``data`` object.  Raises
    ``PaymentVerificationError`` when the provider says no and
    ``UpstreamError`` when it cannot be asked.
    """
    if not settings.paystack_secret_key:
        logger.error("PAYSTACK_SECRET_KEY is not set")
        raise UpstreamError("Payment service configuration is missing", status=False)

    url = f"{settings.paystack_api_url.rstrip('/')}/transaction/verify/{quote(reference, safe='')}"
    try:
        resp = await client.get(
            url,
            headers={
                "Authorization": f"Bearer {settings.paystack_secret_key}",
                "Content-Type": "application/json",
            },
        )
    except httpx.HTTPError as exc:
        logger.error("payment verification for %s failed: %s", reference, exc)
        raise UpstreamError(f"Server error: {exc}", status=False) from exc

    try:
        result = resp.json()
    except ValueError as exc:
        logger.error("payment provider returned invalid JSON (%s)", resp.status_code)
        raise UpstreamError("Failed to parse Paystack response", status=False) from exc

    if not isinstance(result, dict):
        result = {}
    data = result.get("data")
    tx_status = data.get("status") if isinstance(data, dict) else None
    if resp.status_code != 200 or result.get("status") is not True or tx_status != "success":
        logger.warning(
            "payment %s not verified: http=%s provider_status=%s tx_status=%s",
            reference, resp.status_code, result.get("status"), tx_status,
        )
        raise PaymentVerificationError(
            result.get("message") or "Payment verification failed",
            status=False,
            txStatus=tx_status,
        )
    return data


@router.api_route("/verify-payment", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def verify_payment(
    request: Request,
    payload: Optional[PaymentVerifyRequest] = Body(default=None),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)
    if request.method != "POST":
        raise MethodNotAllowed(status=False)

    reference = payload.reference if payload is not None else None
    if not reference or not isinstance(reference, str):
        raise ValidationError("Valid reference is required", status=False)

    data = await verify_transaction(reference, settings, client)
    return {"status": True, "data": data}
