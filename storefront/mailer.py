"""Transactional email: template rendering and delivery through Resend."""
import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx
from fastapi import Depends
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .clients import get_http_client
from .config import Settings, get_settings
from .errors import EmailError
from .schemas import to_money

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def format_money(value: Any, symbol: str) -> str:
    return f"{symbol}{to_money(value):,.2f}"


def _issue_date(created_at: Any) -> str:
    if isinstance(created_at, datetime):
        issued = created_at.date()
    elif isinstance(created_at, str) and created_at:
        issued = datetime.fromisoformat(created_at.replace("Z", "+00:00")).date()
    else:
        issued = date.today()
    return issued.strftime("%d/%m/%Y")


def receipt_context(order: Mapping[str, Any], settings: Settings) -> Dict[str, Any]:
    """Flatten an order payload into the values the receipt template prints.

    Line totals apply each item's discount percentage; the subtotal is the
    order total minus shipping.
    """
    symbol = settings.currency_symbol
    items = []
    for item in order.get("items") or []:
        price = Decimal(str(item.get("unit_price", item.get("price", 0))))
        discount = Decimal(str(item.get("discount_percentage") or 0))
        if discount > 0:
            price = price * (1 - discount / 100)
        quantity = int(item.get("quantity", 1))
        items.append({
            "name": item.get("name", ""),
            "quantity": quantity,
            "size": item.get("size"),
            "color": item.get("color"),
            "price": format_money(price, symbol),
            "line_total": format_money(price * quantity, symbol),
        })

    total = Decimal(str(order.get("total") or 0))
    shipping = Decimal(str(order.get("shipping_fee") or 0))
    return {
        "order_id": order.get("id") or "",
        "issued_on": _issue_date(order.get("created_at")),
        "address": order.get("address", ""),
        "items": items,
        "subtotal": format_money(total - shipping, symbol),
        "shipping": format_money(shipping, symbol),
        "total": format_money(total, symbol),
    }


def render_receipt(email: str, order: Mapping[str, Any], receipt_url: Optional[str], settings: Settings) -> str:
    try:
        ctx = receipt_context(order, settings)
        return env.get_template("receipt_email.html").render(
            email=email,
            receipt_url=receipt_url,
            store_name=settings.store_name,
            support_email=settings.support_email,
            site_origin=settings.site_origin,
            **ctx,
        )
    except (TemplateError, ArithmeticError, TypeError, ValueError, AttributeError) as exc:
        raise EmailError(f"Failed to render receipt: {exc}") from exc


def render_otp(otp: str, settings: Settings) -> str:
    return env.get_template("otp_email.html").render(
        otp=otp,
        store_name=settings.store_name,
        support_email=settings.support_email,
        site_origin=settings.site_origin,
    )


class Mailer:
    """Sends mail through the Resend HTTP API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> Dict[str, Any]:
        if not self.settings.resend_api_key:
            logger.error("RESEND_API_KEY is not set")
            raise EmailError("Email service configuration is missing")

        payload: Dict[str, Any] = {
            "from": self.settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        try:
            resp = await self.client.post(
                self.settings.resend_api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
            )
        except httpx.HTTPError as exc:
            raise EmailError(f"Failed to send email: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("email provider returned %s: %s", resp.status_code, resp.text[:500])
            raise EmailError(f"Failed to send email: provider returned {resp.status_code}")
        try:
            return resp.json()
        except ValueError:
            return {}

    async def send_receipt(self, email: str, order: Mapping[str, Any], receipt_url: Optional[str] = None) -> Dict[str, Any]:
        html = render_receipt(email, order, receipt_url, self.settings)
        return await self.send(email, f"Order #{order.get('id') or ''} Receipt", html)

    async def send_otp(self, email: str, otp: str) -> Dict[str, Any]:
        text = (
            f"Your OTP is {otp}. It expires in 10 minutes. "
            "If you didn't request a password reset, please ignore this email."
        )
        return await self.send(
            email,
            f"Your OTP for Password Reset - {self.settings.store_name}",
            render_otp(otp, self.settings),
            text=text,
        )


def get_mailer(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Mailer:
    return Mailer(settings, client)
