# storefront/checkout.py
import json
import logging
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, Request, status

from .clients import get_http_client
from .config import Settings, get_settings
from .errors import EmailError, UpstreamError, ValidationError
from .mailer import Mailer, get_mailer
from .payments import verify_transaction
from .proxy import ProxyRequest, forward
from .schemas import CheckoutRequest, Order, to_money
from .sessions import ShopperSession, get_shopper_session
from .state import CartState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["checkout"])

ORDERS_PATH = "rest/v1/orders"


def build_order(cart: CartState, payload: CheckoutRequest, paid: bool = False) -> Order:
    """Snapshot the cart into an order; prices are frozen at this point."""
    subtotal = cart.get_total()
    shipping_fee = to_money(payload.shipping_fee)
    return Order(
        email=payload.email,
        full_name=payload.full_name,
        phone=payload.phone,
        address=payload.address,
        items=cart.items,
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        total=subtotal + shipping_fee,
        status="paid" if paid else "awaiting payment",
        payment_reference=payload.payment_reference,
        created_at=datetime.now(timezone.utc),
    )


async def persist_order(order: Order, request: Request, settings: Settings, client: httpx.AsyncClient) -> Order:
    """Insert the order in the remote store through the proxy and return it with its remote id."""
    if not settings.service_api_key:
        logger.error("cannot persist order: service API key is not configured")
        raise UpstreamError("Failed to place order")

    headers = {
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }
    auth = request.headers.get("Authorization")
    if auth:
        headers["Authorization"] = auth

    body = json.dumps(order.model_dump(mode="json", exclude={"id"})).encode("utf-8")
    result = await forward(
        ProxyRequest(method="POST", path=ORDERS_PATH, headers=headers, body=body),
        settings.upstream_origin,
        settings.service_api_key,
        client,
        settings.site_origin,
    )
    if result.status_code >= 400:
        logger.error("order insert returned %s: %s", result.status_code, result.body[:500])
        raise UpstreamError("Failed to place order")

    try:
        created = result.json()
    except ValueError:
        created = None
    if isinstance(created, list):
        created = created[0] if created else None
    if isinstance(created, dict) and created.get("id") is not None:
        return order.model_copy(update={"id": created["id"]})
    return order


# ✅ Checkout: cart -> order in the remote store, then a best-effort receipt
@router.post("", status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: CheckoutRequest,
    request: Request,
    session: ShopperSession = Depends(get_shopper_session),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    mailer: Mailer = Depends(get_mailer),
):
    if len(session.cart) == 0:
        raise ValidationError("Cart is empty")

    paid = False
    if payload.payment_reference:
        await verify_transaction(payload.payment_reference, settings, client)
        paid = True

    order = build_order(session.cart, payload, paid=paid)
    order = await persist_order(order, request, settings, client)
    session.cart.deduct(order.items)

    order_data = order.model_dump(mode="json")
    email_sent = True
    try:
        await mailer.send_receipt(order.email, order_data)
    except (EmailError, httpx.HTTPError) as exc:
        logger.warning("receipt email for order %s failed: %s", order.id, exc)
        email_sent = False

    return {"message": "Order placed", "order": order_data, "email_sent": email_sent}
