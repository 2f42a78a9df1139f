from app.domain.models import Order
from app.domain.status import OrderStatus


def test_admin_routes_require_identity(client, customer_headers):
    assert client.get("/admin/orders/").status_code == 401
    assert client.get("/admin/orders/", headers=customer_headers).status_code == 403
    assert client.post("/internal/test-order", json={"customer_name": "X", "email": "x@y.z"}).status_code == 401


def test_admin_lists_and_reads_orders(client, admin_headers, place_order):
    order = place_order(pickup_code="1234")

    resp = client.get("/admin/orders/", headers=admin_headers)
    assert resp.status_code == 200
    assert [o["id"] for o in resp.json()] == [order.id]

    resp = client.get(f"/admin/orders/by-code/1234", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "riley@example.com"
    assert body["actions"]["next"] == "dropped_off"
    assert body["actions"]["waiting_on_customer"] is True

    assert client.get("/admin/orders/999", headers=admin_headers).status_code == 404


def test_admin_status_controls(client, admin_headers, place_order):
    order = place_order()

    resp = client.post(f"/admin/orders/{order.id}/status", json={"status": "stringing"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "stringing"
    assert resp.json()["stringing_at"] is not None

    resp = client.post(f"/admin/orders/{order.id}/back", headers=admin_headers)
    assert resp.json()["status"] == "picked_up"
    assert resp.json()["stringing_at"] is None

    resp = client.post(f"/admin/orders/{order.id}/next", headers=admin_headers)
    assert resp.json()["status"] == "stringing"


def test_admin_cannot_step_into_customer_rank(client, admin_headers, place_order):
    order = place_order()
    resp = client.post(f"/admin/orders/{order.id}/next", headers=admin_headers)
    assert resp.status_code == 409
    assert "customer" in resp.json()["detail"]


def test_status_must_be_known(client, admin_headers, place_order):
    order = place_order()
    resp = client.post(f"/admin/orders/{order.id}/status", json={"status": "shipped"}, headers=admin_headers)
    assert resp.status_code == 422
    resp = client.post(f"/admin/orders/{order.id}/status", json={"status": "on_hold"}, headers=admin_headers)
    assert resp.status_code == 409


def test_archive(client, admin_headers, place_order, db):
    order = place_order()
    assert client.delete(f"/admin/orders/{order.id}", headers=admin_headers).status_code == 204
    assert db.get(Order, order.id) is None
    assert client.delete(f"/admin/orders/{order.id}", headers=admin_headers).status_code == 404


def test_public_order_hides_contact_details(client, place_order):
    place_order(pickup_code="1234")

    resp = client.get("/order/1234")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "paid"
    assert body["pickup_code"] == "1234"
    for private in ("email", "customer_name", "phone", "stripe_session_id"):
        assert private not in body
    assert client.get("/order/0000").status_code == 404


def test_drop_off_form_flow(client, place_order, db):
    order = place_order(pickup_code="1234")

    resp = client.post("/order/drop-off", data={"pickupCode": "1234", "confirmCode": "9999"}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/order/1234?error=wrong-code"

    resp = client.post("/order/drop-off", data={"pickupCode": "1234", "confirmCode": "1234"}, follow_redirects=False)
    assert resp.headers["location"] == "/order/1234?success=dropoff"
    db.refresh(order)
    assert order.status == OrderStatus.DROPPED_OFF

    resp = client.post("/order/drop-off", data={"pickupCode": "1234", "confirmCode": "1234"}, follow_redirects=False)
    assert resp.headers["location"] == "/order/1234?error=already-done"


def test_drop_off_form_missing_fields(client):
    resp = client.post("/order/drop-off", data={"pickupCode": "1234"}, follow_redirects=False)
    assert resp.headers["location"] == "/order/1234?error=server"

    resp = client.post("/order/drop-off", data={"pickupCode": "7777", "confirmCode": "7777"}, follow_redirects=False)
    assert resp.headers["location"] == "/order/7777?error=not-found"


def test_pickup_and_review_form_flow(client, place_order, db, admin_headers):
    order = place_order(pickup_code="2468")

    resp = client.post("/order/pickup", data={"pickupCode": "2468", "confirmCode": "2468"}, follow_redirects=False)
    assert resp.headers["location"] == "/order/2468?error=not-ready"

    client.post(f"/admin/orders/{order.id}/status", json={"status": "ready_for_pickup"}, headers=admin_headers)
    resp = client.post("/order/pickup", data={"pickupCode": "2468", "confirmCode": "2468"}, follow_redirects=False)
    assert resp.headers["location"] == "/order/2468?success=pickup"

    resp = client.post("/order/review", data={"pickupCode": "2468"}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"].startswith("https://")
    db.refresh(order)
    assert order.status == OrderStatus.COMPLETED


def test_test_order_harness(client, admin_headers, inventory_item, db):
    item = inventory_item(stock=3)
    payload = {
        "customer_name": "Sam Crease",
        "email": "sam@example.com",
        "order_type": "product",
        "line_items": [{"price_id": "price_mesh", "product_name": "Hero 3.0 Mesh", "quantity": 2}],
    }

    resp = client.post("/internal/test-order", json=payload, headers=admin_headers)

    assert resp.status_code == 201
    body = resp.json()
    assert body["duplicate"] is False
    assert body["order"]["status"] == "paid"
    assert body["order"]["stripe_session_id"].startswith("cs_test_")
    assert body["order"]["line_items"][0]["category"] == "mesh"
    db.refresh(item)
    assert item.stock == 1


def test_inventory_endpoints(client, admin_headers):
    item = {"price_id": "price_strings", "name": "Hero Strings", "category": "strings", "stock": 2}

    assert client.post("/inventory/", json=item).status_code == 401
    resp = client.post("/inventory/", json=item, headers=admin_headers)
    assert resp.status_code == 201
    item_id = resp.json()["id"]
    assert client.post("/inventory/", json=item, headers=admin_headers).status_code == 409

    resp = client.post(f"/inventory/{item_id}/stock", json={"adjustment": -5}, headers=admin_headers)
    assert resp.json() == {"id": item_id, "stock": 0}

    client.post(f"/inventory/{item_id}/stock", json={"adjustment": 4}, headers=admin_headers)
    front = client.get("/inventory/storefront").json()
    assert [i["name"] for i in front["items"]] == ["Hero Strings"]
    assert [i["name"] for i in front["grouped"]["strings"]] == ["Hero Strings"]

    assert client.delete(f"/inventory/{item_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/inventory/{item_id}", headers=admin_headers).status_code == 404
