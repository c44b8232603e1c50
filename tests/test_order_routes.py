import json

import pytest

from core.extensions import db
from models.orderModels import Order
from services.orderFeed import order_changed


@pytest.fixture
def checkout_body(seller, make_product, shipping):
    product = make_product(seller, price=100)
    return {
        "cart": [{"productId": product.id, "sellerId": seller.id, "name": product.name, "price": 100, "quantity": 2}],
        "shippingInfo": {
            "fullName": shipping["name"],
            "phone": shipping["phone"],
            "address": shipping["address"],
            "city": shipping["city"],
            "postalCode": shipping["postal_code"],
            "country": shipping["country"],
        },
        "payment": {"transactionId": "EP-90817263"},
    }


@pytest.fixture
def placed(client, buyer, auth_headers, checkout_body):
    resp = client.post("/api/orders", json=checkout_body, headers=auth_headers(buyer))
    assert resp.status_code == 201
    return resp.get_json()["order"]


def test_checkout_over_http(placed, seller):
    assert placed["status"] == "pending"
    assert placed["total"] == 200.0
    assert placed["seller_ids"] == [seller.id]
    assert len(placed["status_history"]) == 1
    assert placed["shipping_info"]["postal_code"] == "54000"
    assert placed["payment"] == {
        "payment_method": "Easypaisa", "payment_status": "pending", "transaction_id": "EP-90817263",
    }


def test_checkout_errors_are_json(client, buyer, auth_headers, checkout_body):
    checkout_body["payment"]["transactionId"] = "short"
    resp = client.post("/api/orders", json=checkout_body, headers=auth_headers(buyer))
    assert resp.status_code == 400
    assert resp.get_json() == {"message": "Please enter a valid transaction ID"}

    checkout_body["payment"]["transactionId"] = "EP-90817263"
    checkout_body["cart"][0].pop("sellerId")
    checkout_body["cart"][0]["productId"] = 9999
    resp = client.post("/api/orders", json=checkout_body, headers=auth_headers(buyer))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Missing sellerId for product: Cotton Kurta"
    assert Order.query.count() == 0


def test_buyer_list_and_tracking(client, buyer, placed, auth_headers):
    orders = client.get("/api/orders", headers=auth_headers(buyer)).get_json()["orders"]
    assert [o["id"] for o in orders] == [placed["id"]]
    assert orders[0]["status_label"] == "Order Placed"

    tracked = client.get(f"/api/orders/{placed['id']}", headers=auth_headers(buyer)).get_json()
    assert tracked["current_step"] == 1
    assert tracked["milestones"][0]["timestamp"] == placed["status_history"][0]["timestamp"]


def test_seller_status_update_over_http(client, seller, other_seller, buyer, placed, auth_headers):
    url = f"/api/seller/orders/{placed['id']}/status"

    resp = client.put(url, json={"status": "shipped"}, headers=auth_headers(other_seller))
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Unauthorized: Seller not associated with this order"

    resp = client.put(url, json={"status": "teleported"}, headers=auth_headers(seller))
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("Invalid status: teleported.")

    resp = client.put(url, json={"status": "shipped"}, headers=auth_headers(seller))
    assert resp.status_code == 200
    assert resp.get_json()["order"]["status"] == "shipped"

    tracked = client.get(f"/api/orders/{placed['id']}", headers=auth_headers(buyer)).get_json()
    assert tracked["current_step"] == 4
    assert [h["status"] for h in tracked["status_history"]] == ["pending", "shipped"]


def test_seller_update_on_soft_deleted_order_changes_nothing(client, seller, admin, placed, auth_headers):
    client.delete(f"/api/admin/orders/{placed['id']}?hard=false", headers=auth_headers(admin))

    resp = client.put(f"/api/seller/orders/{placed['id']}/status", json={"status": "shipped"},
                      headers=auth_headers(seller))
    assert resp.status_code == 404

    db.session.expire_all()
    order = db.session.get(Order, placed["id"])
    assert order.status == "pending"
    assert len(order.status_history) == 1


def test_seller_stats_endpoint(client, seller, make_user, placed, auth_headers):
    stats = client.get("/api/seller/stats", headers=auth_headers(seller)).get_json()
    assert stats["total_sales"] == 200.0
    assert stats["total_orders"] == 1
    assert stats["top_product"]["quantity_sold"] == 2

    pending = make_user("seller", approved=False)
    assert client.get("/api/seller/stats", headers=auth_headers(pending)).status_code == 403


def test_admin_order_console(client, admin, placed, auth_headers):
    headers = auth_headers(admin)
    order_id = placed["id"]

    listing = client.get("/api/admin/orders?status=pending&page_size=5", headers=headers).get_json()
    assert [o["id"] for o in listing["orders"]] == [order_id]
    assert listing["orders"][0]["buyer"]["name"] == "Ayesha Buyer"

    resp = client.post(f"/api/admin/orders/{order_id}/mark-paid", headers=headers)
    assert resp.get_json()["order"]["payment"]["payment_status"] == "paid"

    resp = client.put(f"/api/admin/orders/{order_id}/status", json={"status": "cancelled"}, headers=headers)
    assert resp.get_json()["order"]["status_history"][-1]["updated_by"] == str(admin.id)

    resp = client.get("/api/admin/orders/export.csv", headers=headers)
    assert resp.mimetype == "text/csv"
    assert len(resp.get_data(as_text=True).strip().split("\n")) == 2

    resp = client.delete(f"/api/admin/orders/{order_id}?hard=false", headers=headers)
    assert resp.status_code == 200
    assert client.get("/api/admin/orders", headers=headers).get_json()["orders"] == []
    deleted = client.get("/api/admin/orders?include_deleted=true", headers=headers).get_json()
    assert deleted["orders"][0]["deleted"] is True


def test_admin_console_accepts_offset_dates(client, admin, placed, auth_headers):
    headers = auth_headers(admin)
    query = "date_from=2024-01-01T00:00:00%2B00:00"

    resp = client.get(f"/api/admin/orders?{query}", headers=headers)
    assert resp.status_code == 200
    assert [o["id"] for o in resp.get_json()["orders"]] == [placed["id"]]
    assert client.get(f"/api/admin/orders/export.csv?{query}", headers=headers).status_code == 200


def test_invoice_is_escaped_html(client, admin, buyer, auth_headers, checkout_body):
    checkout_body["shippingInfo"]["fullName"] = "<script>alert(1)</script>"
    order = client.post("/api/orders", json=checkout_body, headers=auth_headers(buyer)).get_json()["order"]

    resp = client.get(f"/api/admin/orders/{order['id']}/invoice", headers=auth_headers(admin))

    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert f"Invoice #{order['id']}" in html
    assert "Rs. 200.00" in html
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_buyer_stream_sends_snapshot_first(client, buyer, placed, auth_headers):
    listeners = len(order_changed.receivers)
    resp = client.get("/api/orders/stream", headers=auth_headers(buyer), buffered=False)
    try:
        assert resp.mimetype == "text/event-stream"
        first = next(iter(resp.response)).decode()
    finally:
        resp.close()
    assert len(order_changed.receivers) == listeners

    event, data = first.strip().split("\n", 1)
    assert event == "event: orders"
    payload = json.loads(data[len("data: "):])
    assert [o["id"] for o in payload] == [placed["id"]]


def test_stream_closed_before_first_read_subscribes_nothing(client, buyer, placed, auth_headers):
    listeners = len(order_changed.receivers)

    resp = client.get(f"/api/orders/{placed['id']}/stream", headers=auth_headers(buyer), buffered=False)
    assert resp.status_code == 200
    assert len(order_changed.receivers) == listeners
    resp.close()

    assert len(order_changed.receivers) == listeners
