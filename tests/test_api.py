"""
REST surface: auth, role guards, error bodies, the purchase flow end to end.
"""
from decimal import Decimal

from marketplace.data.models import NotificationModel


def register(client, email, role="customer", full_name="Test User", password="secret123"):
    resp = client.post(
        "/auth/register",
        json={"email": email, "password": password, "full_name": full_name, "role": role},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "OK"


def test_register_login_and_profile(client):
    headers, user = register(client, "alice@shop.io", full_name="Alice")
    assert user["role"] == "customer"

    dup = client.post(
        "/auth/register",
        json={"email": "ALICE@shop.io", "password": "secret123", "full_name": "Again"},
    )
    assert dup.status_code == 409
    assert dup.json()["error"] == "conflict"

    bad = client.post("/auth/login", json={"email": "alice@shop.io", "password": "wrong-pass"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "unauthorized", "message": "Invalid email or password"}

    ok = client.post("/auth/login", json={"email": "alice@shop.io", "password": "secret123"})
    assert ok.status_code == 200

    me = client.patch("/auth/me", json={"full_name": "Alice B."}, headers=headers)
    assert me.json()["full_name"] == "Alice B."

    empty = client.patch("/auth/me", json={}, headers=headers)
    assert empty.status_code == 400
    assert empty.json()["error"] == "validation"


def test_missing_or_bad_token(client):
    assert client.get("/cart").status_code == 401

    resp = client.get("/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


def test_customer_cannot_use_seller_endpoints(client):
    headers, _ = register(client, "bob@shop.io")

    resp = client.post("/stores", json={"name": "Bob's"}, headers=headers)

    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"


def test_purchase_flow(client, db):
    seller_headers, seller = register(client, "seller@shop.io", role="seller", full_name="Sid")
    store = client.post("/stores", json={"name": "Sid's Shed"}, headers=seller_headers)
    assert store.status_code == 201

    product = client.post(
        "/products",
        json={"name": "Garden Gloves", "price": "12.50", "stock_quantity": 3, "category": "garden"},
        headers=seller_headers,
    )
    assert product.status_code == 201
    product_id = product.json()["id"]

    buyer_headers, buyer = register(client, "buyer@shop.io", full_name="Bea")
    added = client.post("/cart", json={"product_id": product_id, "quantity": 2}, headers=buyer_headers)
    assert added.status_code == 201

    cart = client.get("/cart", headers=buyer_headers).json()
    assert cart["count"] == 1
    assert Decimal(cart["total"]) == Decimal("25.00")

    placed = client.post(
        "/orders/checkout",
        json={
            "shipping_address": {
                "full_name": "Bea",
                "line1": "1 High St",
                "city": "Leeds",
                "postal_code": "LS1 1AA",
                "country": "GB",
            }
        },
        headers=buyer_headers,
    )
    assert placed.status_code == 201, placed.text
    order = placed.json()["order"]
    assert order["status"] == "pending"
    assert Decimal(order["total_amount"]) == Decimal("25.00")
    assert order["items"][0]["store_name"] == "Sid's Shed"

    assert client.get("/cart", headers=buyer_headers).json()["count"] == 0
    assert client.get(f"/products/{product_id}").json()["stock_quantity"] == 1

    inbox = client.get("/notifications", headers=seller_headers).json()
    assert inbox["unread"] == 1
    assert inbox["notifications"][0]["type"] == "new_order"

    shipped = client.patch(f"/orders/{order['id']}/status", json={"status": "shipped"}, headers=seller_headers)
    assert shipped.status_code == 200
    assert shipped.json()["order"]["status"] == "shipped"

    assert client.get(f"/orders/{order['id']}", headers=buyer_headers).json()["order"]["status"] == "shipped"
    assert db.query(NotificationModel).filter_by(user_id=buyer["id"], type="order_status").count() == 1

    listed = client.get("/orders", headers=buyer_headers).json()
    assert listed["pagination"]["total"] == 1


def test_checkout_error_bodies(client):
    seller_headers, _ = register(client, "s2@shop.io", role="seller")
    client.post("/stores", json={"name": "Tiny"}, headers=seller_headers)
    product_id = client.post(
        "/products",
        json={"name": "Rare Stamp", "price": "99.00", "stock_quantity": 1},
        headers=seller_headers,
    ).json()["id"]

    buyer_headers, _ = register(client, "b2@shop.io")
    address = {"full_name": "B", "line1": "x", "city": "y", "postal_code": "z", "country": "PL"}

    empty = client.post("/orders/checkout", json={"shipping_address": address}, headers=buyer_headers)
    assert empty.status_code == 400
    assert empty.json() == {"error": "empty_cart", "message": "Your cart is empty"}

    too_many = client.post("/cart", json={"product_id": product_id, "quantity": 2}, headers=buyer_headers)
    assert too_many.status_code == 400
    body = too_many.json()
    assert body["error"] == "insufficient_stock"
    assert body["details"]["available"] == 1

    missing = client.get("/orders/9999", headers=buyer_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    invalid = client.post("/orders/checkout", json={"shipping_address": {"city": "y"}}, headers=buyer_headers)
    assert invalid.status_code == 422


def test_reviews_over_http(client):
    seller_headers, _ = register(client, "s3@shop.io", role="seller")
    store_id = client.post("/stores", json={"name": "Reviewed"}, headers=seller_headers).json()["id"]
    product_id = client.post(
        "/products", json={"name": "Pen", "price": "2.00", "stock_quantity": 10}, headers=seller_headers
    ).json()["id"]

    ratings = [5, 3, 4]
    review_ids = []
    for i, rating in enumerate(ratings):
        headers, _ = register(client, f"r{i}@shop.io")
        resp = client.post(f"/reviews/products/{product_id}", json={"rating": rating}, headers=headers)
        assert resp.status_code == 201
        review_ids.append((headers, resp.json()["id"]))

    assert Decimal(client.get(f"/products/{product_id}").json()["average_rating"]) == Decimal("4.0")

    headers, review_id = review_ids[1]
    assert client.delete(f"/reviews/{review_id}", headers=headers).status_code == 200
    assert Decimal(client.get(f"/products/{product_id}").json()["average_rating"]) == Decimal("4.5")

    store_review = client.post(f"/reviews/stores/{store_id}", json={"rating": 6}, headers=headers)
    assert store_review.status_code == 422

    listing = client.get(f"/reviews/products/{product_id}").json()
    assert listing["pagination"]["total"] == 2


def test_delete_product_with_history_reports_deactivation(client):
    seller_headers, _ = register(client, "s4@shop.io", role="seller")
    client.post("/stores", json={"name": "History"}, headers=seller_headers)
    product_id = client.post(
        "/products", json={"name": "Old Thing", "price": "5.00", "stock_quantity": 2}, headers=seller_headers
    ).json()["id"]

    buyer_headers, _ = register(client, "b4@shop.io")
    client.post("/cart", json={"product_id": product_id}, headers=buyer_headers)
    address = {"full_name": "B", "line1": "x", "city": "y", "postal_code": "z", "country": "DE"}
    assert client.post("/orders/checkout", json={"shipping_address": address}, headers=buyer_headers).status_code == 201

    resp = client.delete(f"/products/{product_id}", headers=seller_headers)

    assert resp.status_code == 200
    assert resp.json()["deactivated"] is True
    assert client.get("/search", params={"q": "old"}).json()["pagination"]["total"] == 0
