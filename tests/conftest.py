import dataclasses

import httpx
import pytest
from fastapi.testclient import TestClient

from storefront.clients import get_http_client
from storefront.config import Settings
from storefront.main import create_app

DATA_HOST = "data.example.com"
GEO_HOST = "geo.example.com"
MAIL_HOST = "mail.example.com"
PAY_HOST = "pay.example.com"
SITE_ORIGIN = "https://shop.example.com"


class FakeUpstream:
    """Records outbound requests and answers them from per-host handlers."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def route(self, host, handler):
        self.routes[host] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404, json={"error": "no route"})
        return handler(request)

    def sent_to(self, host):
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def settings():
    return Settings(
        site_origin=SITE_ORIGIN,
        upstream_origin=f"https://{DATA_HOST}",
        service_api_key="anon-key",
        geocoder_url=f"https://{GEO_HOST}",
        geocoder_user_agent="StorefrontTest/1.0 (+https://shop.example.com)",
        resend_api_key="re_test",
        resend_api_url=f"https://{MAIL_HOST}/emails",
        email_from="Shop <orders@example.com>",
        store_name="Test Shop",
        paystack_secret_key="sk_test",
        paystack_api_url=f"https://{PAY_HOST}",
        session_secret="test-secret",
    )


@pytest.fixture
def upstream():
    fake = FakeUpstream()
    fake.route(MAIL_HOST, lambda request: httpx.Response(200, json={"id": "email-1"}))
    return fake


@pytest.fixture
def make_client(settings, upstream):
    """Build a TestClient, optionally with some settings replaced."""
    clients = []

    def _make(**overrides):
        app = create_app(dataclasses.replace(settings, **overrides))

        async def _http_client():
            async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as c:
                yield c

        app.dependency_overrides[get_http_client] = _http_client
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def product():
    return {"product_id": "sku-1", "name": "Silk Top", "unit_price": "12.50", "image_url": "/img/silk.jpg"}
