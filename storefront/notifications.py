# storefront/notifications.py
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Body, Depends, Request

from .errors import EmailError, MethodNotAllowed, UpstreamError, ValidationError
from .mailer import Mailer, get_mailer
from .schemas import OtpEmailRequest, ReceiptEmailRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notifications"])

ANY_METHOD = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route("/send-receipt-email", methods=ANY_METHOD)
async def send_receipt_email(
    request: Request,
    payload: Optional[ReceiptEmailRequest] = Body(default=None),
    mailer: Mailer = Depends(get_mailer),
):
    if request.method != "POST":
        raise MethodNotAllowed()
    if payload is None or not payload.email or payload.order is None:
        raise ValidationError("Missing required fields")

    # Receipts are best effort: a mail outage must never fail or roll back
    # the checkout that triggered it, so failures still answer 200.
    try:
        await mailer.send_receipt(payload.email, payload.order, payload.receipt_url)
    except (EmailError, httpx.HTTPError) as exc:
        logger.warning("receipt email to %s failed: %s", payload.email, exc)
        return {"message": "Email sending failed, but order processed"}
    return {"message": "Email sent successfully"}


@router.api_route("/send-otp", methods=ANY_METHOD)
async def send_otp(
    request: Request,
    payload: Optional[OtpEmailRequest] = Body(default=None),
    mailer: Mailer = Depends(get_mailer),
):
    if request.method != "POST":
        raise MethodNotAllowed()
    if payload is None or not payload.email or payload.otp in (None, ""):
        raise ValidationError("Email and OTP are required")

    try:
        data = await mailer.send_otp(payload.email, str(payload.otp))
    except EmailError as exc:
        logger.error("otp email to %s failed: %s", payload.email, exc)
        raise UpstreamError(f"Failed to send OTP email: {exc.message}")
    return {"message": "OTP sent successfully", "data": data}
