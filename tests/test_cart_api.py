from fastapi.testclient import TestClient


def test_new_session_gets_signed_cookie(client):
    resp = client.get("/api/cart")
    assert resp.status_code == 200
    assert resp.json() == {"items": [], "count": 0, "total": "0.00"}
    assert "sf_session" in resp.cookies

    # same session on the next request: no new cookie issued
    resp = client.get("/api/cart")
    assert "sf_session" not in resp.cookies


def test_add_same_product_twice(client, product):
    client.post("/api/cart/items", json=product)
    resp = client.post("/api/cart/items", json=product)

    assert resp.status_code == 201
    data = resp.json()
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 2
    assert data["items"][0]["line_total"] == "25.00"
    assert data["count"] == 2
    assert data["total"] == "25.00"


def test_accepts_store_product_shape(client):
    resp = client.post("/api/cart/items", json={"id": 9, "name": "Kaftan", "price": 30, "quantity": 3})
    item = resp.json()["items"][0]
    assert item["product_id"] == "9"
    assert item["unit_price"] == "30.00"
    assert resp.json()["total"] == "90.00"


def test_update_quantity_and_remove_on_zero(client, product):
    client.post("/api/cart/items", json=product)
    client.post("/api/cart/items", json={"product_id": "sku-2", "name": "Belt", "unit_price": "5.00"})

    resp = client.put("/api/cart/items/sku-1", json={"quantity": 4})
    assert resp.json()["total"] == "55.00"

    resp = client.put("/api/cart/items/sku-1", json={"quantity": 0})
    data = resp.json()
    assert [i["product_id"] for i in data["items"]] == ["sku-2"]
    assert data["total"] == "5.00"

    assert client.get("/api/cart/count").json() == {"count": 1}


def test_update_unknown_item_is_404(client):
    resp = client.put("/api/cart/items/ghost", json={"quantity": 2})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Cart item not found"}


def test_remove_and_clear(client, product):
    client.post("/api/cart/items", json=product)
    client.post("/api/cart/items", json={"product_id": "sku-2", "name": "Belt", "unit_price": "5.00"})

    resp = client.delete("/api/cart/items/sku-1")
    assert resp.json()["count"] == 1
    resp = client.delete("/api/cart/items/not-there")
    assert resp.status_code == 200
    assert resp.json()["count"] == 1

    resp = client.delete("/api/cart")
    assert resp.json() == {"items": [], "count": 0, "total": "0.00"}


def test_replace_with_client_copy(client, product):
    client.post("/api/cart/items", json=product)

    resp = client.put("/api/cart", json={"items": [
        {"id": "a", "name": "Cap", "price": "4.00", "quantity": 2},
        {"id": "a", "name": "Cap", "price": "4.00", "quantity": 1},
    ]})

    data = resp.json()
    assert [i["product_id"] for i in data["items"]] == ["a"]
    assert data["items"][0]["quantity"] == 3
    assert data["total"] == "12.00"


def test_invalid_item_is_400(client):
    resp = client.post("/api/cart/items", json={"product_id": "x", "name": "Bad", "unit_price": "-1"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_sessions_are_isolated(make_client, product):
    first = make_client()
    app = first.app
    first.post("/api/cart/items", json=product)

    with TestClient(app) as second:
        assert second.get("/api/cart").json()["count"] == 0
    assert first.get("/api/cart").json()["count"] == 1


def test_tampered_cookie_starts_new_session(client, product):
    client.post("/api/cart/items", json=product)
    client.cookies.clear()
    client.cookies.set("sf_session", "not-a-token")

    resp = client.get("/api/cart")

    assert resp.json()["count"] == 0
    assert "sf_session" in resp.cookies


def test_wishlist_toggle_round_trip(client):
    resp = client.post("/api/wishlist/toggle", json={"product_id": "sku-1", "name": "Silk Top"})
    assert resp.json()["in_wishlist"] is True
    assert resp.json()["count"] == 1
    assert client.get("/api/wishlist/items/sku-1").json()["in_wishlist"] is True

    resp = client.post("/api/wishlist/toggle", json={"product_id": "sku-1"})
    assert resp.json()["in_wishlist"] is False
    assert client.get("/api/wishlist/items/sku-1").json()["in_wishlist"] is False


def test_wishlist_add_remove(client):
    client.post("/api/wishlist/items", json={"id": 3, "name": "Hat", "price": "9.99"})
    resp = client.post("/api/wishlist/items", json={"id": "3"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["count"] == 1
    assert data["items"][0]["name"] == "Hat"

    resp = client.delete("/api/wishlist/items/3")
    assert resp.json() == {"items": [], "count": 0}
    assert client.get("/api/wishlist").json()["count"] == 0
