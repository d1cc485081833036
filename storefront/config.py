from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Request

ROOT_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys)
    return default if v is None else int(v)


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys)
    return default if v is None else float(v)


def _get_bool(*keys: str, default: bool = False) -> bool:
    v = _get_env(*keys)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    site_origin: str = "http://localhost:8000"

    # remote data store (reached only through the proxy)
    upstream_origin: str = "http://localhost:54321"
    service_api_key: str = ""

    geocoder_url: str = "https://nominatim.openstreetmap.org"
    geocoder_user_agent: str = "StorefrontBot/1.0 (+http://localhost:8000)"
    geocode_limit: int = 5

    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "Storefront <no-reply@localhost>"
    store_name: str = "Storefront"
    support_email: str = "support@localhost"
    currency_symbol: str = "₦"

    paystack_secret_key: str = ""
    paystack_api_url: str = "https://api.paystack.co"

    session_secret: str = "supersecretkey"  # override with SESSION_SECRET
    session_cookie: str = "sf_session"
    session_ttl_minutes: int = 60 * 24 * 7
    session_cookie_secure: bool = False

    http_timeout: float = 30.0
    offline_cache_name: str = "storefront-v1"

    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        site_origin = _get_env("SITE_ORIGIN", default=cls.site_origin) or cls.site_origin
        return cls(
            site_origin=site_origin.rstrip("/"),
            upstream_origin=_get_env("SUPABASE_URL", "UPSTREAM_ORIGIN", default=cls.upstream_origin) or cls.upstream_origin,
            service_api_key=_get_env("SUPABASE_ANON_KEY", "SERVICE_API_KEY", default="") or "",
            geocoder_url=_get_env("GEOCODER_URL", default=cls.geocoder_url) or cls.geocoder_url,
            geocoder_user_agent=_get_env(
                "GEOCODER_USER_AGENT", default=f"StorefrontBot/1.0 (+{site_origin})"
            ) or "",
            geocode_limit=_get_int("GEOCODE_LIMIT", default=cls.geocode_limit),
            resend_api_key=_get_env("RESEND_API_KEY", default="") or "",
            resend_api_url=_get_env("RESEND_API_URL", default=cls.resend_api_url) or cls.resend_api_url,
            email_from=_get_env("EMAIL_FROM", default=cls.email_from) or cls.email_from,
            store_name=_get_env("STORE_NAME", default=cls.store_name) or cls.store_name,
            support_email=_get_env("SUPPORT_EMAIL", default=cls.support_email) or cls.support_email,
            currency_symbol=_get_env("CURRENCY_SYMBOL", default=cls.currency_symbol) or cls.currency_symbol,
            paystack_secret_key=_get_env("PAYSTACK_SECRET_KEY", default="") or "",
            paystack_api_url=_get_env("PAYSTACK_API_URL", default=cls.paystack_api_url) or cls.paystack_api_url,
            session_secret=_get_env("SESSION_SECRET", "JWT_SECRET", default=cls.session_secret) or cls.session_secret,
            session_cookie=_get_env("SESSION_COOKIE", default=cls.session_cookie) or cls.session_cookie,
            session_ttl_minutes=_get_int("SESSION_TTL_MINUTES", default=cls.session_ttl_minutes),
            session_cookie_secure=_get_bool("SESSION_COOKIE_SECURE"),
            http_timeout=_get_float("HTTP_TIMEOUT", default=cls.http_timeout),
            offline_cache_name=_get_env("OFFLINE_CACHE_NAME", default=cls.offline_cache_name) or cls.offline_cache_name,
            log_level=_get_env("LOG_LEVEL", default=cls.log_level) or cls.log_level,
            log_file=_get_env("LOG_FILE"),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
