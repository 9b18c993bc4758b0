"""
Tests for the dashboard order and notification endpoints.
"""
from conftest import CUSTOMER_PHONE
from food_order_bot.models import Notification


# ---- Authentication ----


def test_admin_orders_requires_auth(client):
    resp = client.get("/admin/orders")
    assert resp.status_code == 401


def test_admin_orders_rejects_invalid_auth(client):
    resp = client.get("/admin/orders", auth=("wrong", "credentials"))
    assert resp.status_code == 401


def test_admin_orders_unconfigured_password(client, admin_auth, monkeypatch):
    import food_order_bot.config as config_mod

    monkeypatch.setattr(config_mod, "ADMIN_PASSWORD", "")
    resp = client.get("/admin/orders", auth=admin_auth)
    assert resp.status_code == 503


# ---- Listing ----


def test_list_orders(client, admin_auth, make_order):
    order = make_order()

    resp = client.get("/admin/orders", auth=admin_auth)

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    assert data["has_next"] is False
    [item] = data["items"]
    assert item["id"] == order.id
    assert item["status"] == "pending"
    assert item["restaurant_name"] == "Spice Garden"
    assert item["customer_name"] == "Asha"
    assert item["customer_phone"] == CUSTOMER_PHONE


def test_list_orders_filters_and_paginates(client, admin_auth, make_order, seeded):
    for _ in range(3):
        make_order()
    make_order(status="ready")
    make_order(restaurant_id=seeded["other_restaurant_id"])

    data = client.get("/admin/orders?status=pending&page_size=2", auth=admin_auth).json()
    assert data["total"] == 4
    assert len(data["items"]) == 2
    assert data["has_next"] is True

    data = client.get("/admin/orders?status=pending&page=2&page_size=2", auth=admin_auth).json()
    assert len(data["items"]) == 2
    assert data["has_next"] is False

    data = client.get(
        f"/admin/orders?restaurant_id={seeded['restaurant_id']}", auth=admin_auth,
    ).json()
    assert data["total"] == 4

    data = client.get("/admin/orders?status=ready", auth=admin_auth).json()
    assert data["total"] == 1


def test_order_detail(client, admin_auth, make_order):
    order = make_order()

    resp = client.get(f"/admin/orders/{order.id}", auth=admin_auth)

    assert resp.status_code == 200
    data = resp.json()
    assert data["delivery_address"] == "Koramangala"
    assert data["payment_method"] == "UPI"
    [line] = data["items"]
    assert line["menu_item_name"] == "Chicken Biryani"
    assert line["quantity"] == 1
    assert line["line_total"] == 250.0


def test_order_detail_not_found(client, admin_auth):
    resp = client.get("/admin/orders/999", auth=admin_auth)
    assert resp.status_code == 404

    resp = client.get("/admin/orders/99999999999999999999", auth=admin_auth)
    assert resp.status_code == 404


# ---- Status updates ----


def test_update_status_notifies_customer(client, admin_auth, make_order, outbox, session_factory):
    order = make_order()

    resp = client.patch(f"/admin/orders/{order.id}/status", json={"status": "confirmed"}, auth=admin_auth)

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["order"]["status"] == "confirmed"
    assert data["notifications_sent"] == 1

    [(phone, body)] = outbox
    assert phone == CUSTOMER_PHONE
    assert f"✅ Order #{order.id} Update ✅" in body

    db = session_factory()
    try:
        notification = db.query(Notification).one()
        assert notification.type == "order_status"
        assert notification.status == "confirmed"
    finally:
        db.close()


def test_update_status_delivered_needs_payment(client, admin_auth, make_order, outbox):
    order = make_order(status="ready", payment_method="UPI")

    resp = client.patch(f"/admin/orders/{order.id}/status", json={"status": "delivered"}, auth=admin_auth)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot mark order as delivered. Payment must be confirmed first."
    assert outbox == []


def test_update_status_delivered_cod_needs_payment(client, admin_auth, make_order, outbox):
    order = make_order(status="ready", payment_method="COD")

    resp = client.patch(f"/admin/orders/{order.id}/status", json={"status": "delivered"}, auth=admin_auth)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot mark order as delivered. Payment must be confirmed first."
    assert outbox == []

    resp = client.get(f"/admin/orders/{order.id}", auth=admin_auth)
    assert resp.json()["status"] == "ready"
    assert resp.json()["payment_status"] == "pending"


def test_update_status_invalid_value(client, admin_auth, make_order):
    order = make_order()
    resp = client.patch(f"/admin/orders/{order.id}/status", json={"status": "shipped"}, auth=admin_auth)
    assert resp.status_code == 400


def test_update_status_missing_order(client, admin_auth):
    resp = client.patch("/admin/orders/999/status", json={"status": "confirmed"}, auth=admin_auth)
    assert resp.status_code == 404


def test_update_status_requires_auth(client, make_order):
    order = make_order()
    resp = client.patch(f"/admin/orders/{order.id}/status", json={"status": "confirmed"})
    assert resp.status_code == 401


def test_update_payment_status(client, admin_auth, make_order, outbox):
    order = make_order(status="ready")

    resp = client.patch(
        f"/admin/orders/{order.id}/payment-status", json={"payment_status": "paid"}, auth=admin_auth,
    )

    assert resp.status_code == 200
    assert resp.json()["order"]["payment_status"] == "paid"
    [(_, body)] = outbox
    assert "Your payment has been received. Thank you!" in body

    # Now delivery is allowed
    resp = client.patch(f"/admin/orders/{order.id}/status", json={"status": "delivered"}, auth=admin_auth)
    assert resp.status_code == 200


def test_update_payment_status_refuses_unpaid_delivered(client, admin_auth, make_order):
    order = make_order(status="delivered", payment_status="paid")
    resp = client.patch(
        f"/admin/orders/{order.id}/payment-status", json={"payment_status": "pending"}, auth=admin_auth,
    )
    assert resp.status_code == 400


# ---- Notifications ----


def test_list_notifications(client, admin_auth, make_order, outbox, seeded):
    first = make_order()
    second = make_order()
    client.patch(f"/admin/orders/{first.id}/status", json={"status": "confirmed"}, auth=admin_auth)
    client.patch(f"/admin/orders/{second.id}/status", json={"status": "confirmed"}, auth=admin_auth)

    resp = client.get("/admin/notifications", auth=admin_auth)
    assert resp.status_code == 200
    assert len(resp.json()) == 2

    resp = client.get(f"/admin/notifications?order_id={first.id}", auth=admin_auth)
    [note] = resp.json()
    assert note["order_id"] == first.id
    assert note["is_read"] is False

    resp = client.get(f"/admin/notifications?user_id={seeded['owner_id']}", auth=admin_auth)
    assert resp.json() == []

    resp = client.get("/admin/notifications?unread_only=true", auth=admin_auth)
    assert len(resp.json()) == 2


def test_list_notifications_requires_auth(client):
    assert client.get("/admin/notifications").status_code == 401
