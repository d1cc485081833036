import asyncio
import gzip
import json

import httpx

from storefront.proxy import ProxyRequest, build_target_url, forward

from .conftest import DATA_HOST, SITE_ORIGIN

CORS = {
    "access-control-allow-origin": SITE_ORIGIN,
    "access-control-allow-methods": "GET, POST, PUT, DELETE, OPTIONS",
    "access-control-allow-headers": "Authorization, Content-Type, apikey",
}


def assert_cors(response):
    for name, value in CORS.items():
        assert response.headers[name] == value


def test_relays_upstream_error_verbatim(client, upstream):
    upstream.route(DATA_HOST, lambda r: httpx.Response(404, content=b'{"error":"not found"}',
                                                        headers={"content-type": "application/json"}))

    resp = client.get("/api/proxy/rest/v1/products")

    assert resp.status_code == 404
    assert resp.text == '{"error":"not found"}'
    assert_cors(resp)


def test_forwards_path_query_and_credentials(client, upstream):
    upstream.route(DATA_HOST, lambda r: httpx.Response(200, json=[{"id": 5}]))

    resp = client.get(
        "/api/proxy/rest/v1/products?select=*&id=eq.5",
        headers={"Authorization": "Bearer user-token", "apikey": "spoofed"},
    )

    assert resp.status_code == 200
    assert resp.json() == [{"id": 5}]
    sent = upstream.sent_to(DATA_HOST)[0]
    assert sent.method == "GET"
    assert sent.url.path == "/rest/v1/products"
    assert sent.url.params["select"] == "*"
    assert sent.url.params["id"] == "eq.5"
    assert sent.headers["host"] == DATA_HOST
    assert sent.headers["apikey"] == "anon-key"
    assert sent.headers["authorization"] == "Bearer user-token"
    assert sent.content == b""


def test_forwards_body_for_writes(client, upstream):
    upstream.route(DATA_HOST, lambda r: httpx.Response(201, text=r.content.decode()))
    body = {"name": "Linen Shirt", "price": 40}

    resp = client.post("/api/proxy/rest/v1/products", json=body)

    assert resp.status_code == 201
    assert json.loads(resp.text) == body
    sent = upstream.sent_to(DATA_HOST)[0]
    assert sent.method == "POST"
    assert json.loads(sent.content) == body
    assert_cors(resp)


def test_session_cookie_is_not_forwarded(client, upstream):
    upstream.route(DATA_HOST, lambda r: httpx.Response(200, text="ok"))
    client.get("/api/cart")  # creates the session cookie

    client.delete("/api/proxy/storage/v1/object/avatars/me.png")

    sent = upstream.sent_to(DATA_HOST)[0]
    assert sent.method == "DELETE"
    assert "cookie" not in sent.headers


def test_network_failure_is_500_envelope(client, upstream):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.route(DATA_HOST, boom)

    resp = client.get("/api/proxy/rest/v1/orders")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Proxy error: connection refused"}


def test_missing_service_key_is_500(make_client, upstream):
    client = make_client(service_api_key="")

    resp = client.get("/api/proxy/rest/v1/products")

    assert resp.status_code == 500
    assert "error" in resp.json()
    assert upstream.sent_to(DATA_HOST) == []


def test_build_target_url():
    assert build_target_url("https://x.example.com/", "rest/v1/a") == "https://x.example.com/rest/v1/a"
    assert build_target_url("https://x.example.com", "/a", "b=1") == "https://x.example.com/a?b=1"
    assert build_target_url("https://x.example.com", "") == "https://x.example.com/"


def test_forward_works_without_a_web_framework():
    def handler(request):
        assert request.headers["apikey"] == "k"
        return httpx.Response(418, content=b"teapot", headers={"content-type": "text/plain"})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await forward(
                ProxyRequest(method="head", path="ping"),
                "https://up.example.com",
                "k",
                client,
                SITE_ORIGIN,
            )

    result = asyncio.run(run())
    assert result.status_code == 418
    assert result.body == b"teapot"
    assert result.headers["Content-Type"] == "text/plain"
    assert result.headers["Access-Control-Allow-Origin"] == SITE_ORIGIN


def test_caller_encoding_preferences_are_not_forwarded(client, upstream):
    products = [{"id": 1, "name": "Ankara Dress"}]

    def handler(request):
        if request.headers.get("accept-encoding") == "br":
            # the store would answer with a body httpx cannot decode
            return httpx.Response(200, content=b"\x1b\x0e\x00\xf8\xa5@", headers={"content-type": "application/json"})
        return httpx.Response(
            200,
            content=gzip.compress(json.dumps(products).encode()),
            headers={"content-type": "application/json", "content-encoding": "gzip"},
        )

    upstream.route(DATA_HOST, handler)

    resp = client.get("/api/proxy/rest/v1/products", headers={"Accept-Encoding": "br"})

    assert upstream.sent_to(DATA_HOST)[0].headers.get("accept-encoding") != "br"
    assert resp.status_code == 200
    assert resp.json() == products
    assert "content-encoding" not in resp.headers
