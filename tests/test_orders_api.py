import pytest

from conftest import auth_headers, create_order, as_decimal
from courier_core.modules.orders.pricing import compute_cost
from courier_core.shared.database.models import Order

API = "/api/v1"


def accept(client, order_id, driver):
    return client.post(f"{API}/courier/orders/{order_id}/accept", headers=auth_headers(driver))


def collect(client, order_id, driver, amount="17.00"):
    return client.post(
        f"{API}/courier/orders/{order_id}/collect-payment",
        json={"amount": amount},
        headers=auth_headers(driver),
    )


def pickup(client, order_id, driver):
    return client.post(f"{API}/courier/orders/{order_id}/confirm-pickup", headers=auth_headers(driver))


def start_transit(client, order_id, driver):
    return client.post(f"{API}/courier/orders/{order_id}/start-transit", headers=auth_headers(driver))


def deliver(client, order_id, driver, **body):
    return client.post(
        f"{API}/courier/orders/{order_id}/confirm-delivery", json=body, headers=auth_headers(driver)
    )


def advance_to(client, customer, driver, status):
    """Create a sender-pays order and drive it to ``status``"""
    order = create_order(client, customer)
    order_id = order["id"]
    steps = {
        "assigned": [lambda: accept(client, order_id, driver)],
        "picked_up": [
            lambda: accept(client, order_id, driver),
            lambda: collect(client, order_id, driver),
            lambda: pickup(client, order_id, driver),
        ],
        "in_transit": [
            lambda: accept(client, order_id, driver),
            lambda: collect(client, order_id, driver),
            lambda: pickup(client, order_id, driver),
            lambda: start_transit(client, order_id, driver),
        ],
    }
    for step in steps.get(status, []):
        response = step()
        assert response.status_code == 200, response.text
    return order_id


def test_create_order_freezes_cost(client, customer):
    order = create_order(client, customer)
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["driver_id"] is None
    assert order["version"] == 1
    assert as_decimal(order["cost"]) == as_decimal("17")
    assert order["customer_id"] == customer.id


def test_frozen_cost_matches_stored_distance(client, customer, db):
    order = create_order(client, customer, distance_km="0.0005", package={
        "size": "Large", "weight": "> 50kg", "fragile": False, "speed": "Express",
    })
    assert as_decimal(order["distance_km"]) == as_decimal("0.001")

    stored = db.query(Order).filter(Order.id == order["id"]).first()
    assert stored.cost == compute_cost(stored.distance_km, stored.weight, stored.fragile, stored.speed)
    assert stored.cost == as_decimal("22.505")


def test_action_response_lists_next_events(client, customer, driver):
    order = create_order(client, customer)
    response = client.get(f"{API}/orders/{order['id']}", headers=auth_headers(customer))
    assert response.json()["allowed_events"] == ["accept", "cancel"]

    response = accept(client, order["id"], driver)
    assert response.json()["allowed_events"] == ["mark_picked_up", "cancel"]


def test_quote_does_not_store_anything(client, customer):
    response = client.post(
        f"{API}/orders/quote",
        json={"distance_km": 10, "package": {"weight": "5–20kg", "fragile": True, "speed": "Express"}},
        headers=auth_headers(customer),
    )
    assert response.status_code == 200
    assert as_decimal(response.json()["cost"]) == as_decimal("45.75")

    listing = client.get(f"{API}/orders", headers=auth_headers(customer)).json()
    assert listing["count"] == 0


def test_only_customers_create_orders(client, driver):
    response = client.post(f"{API}/orders", json={
        "pickup_address": "A", "dropoff_address": "B", "distance_km": 1, "eta_minutes": 5,
        "payment_responsibility": "sender", "payment_method": "card",
    }, headers=auth_headers(driver))
    assert response.status_code == 403


def test_create_order_validates_payload(client, customer):
    response = client.post(f"{API}/orders", json={
        "pickup_address": "   ", "dropoff_address": "B", "distance_km": -1, "eta_minutes": 5,
        "payment_responsibility": "nobody", "payment_method": "cash",
    }, headers=auth_headers(customer))
    assert response.status_code == 422


def test_requests_without_token_are_rejected(client):
    response = client.get(f"{API}/orders")
    assert response.status_code in (401, 403)


def test_sender_pays_end_to_end(client, customer, driver):
    order = create_order(client, customer, payment_responsibility="sender", payment_method="cash")
    order_id = order["id"]

    board = client.get(f"{API}/courier/available-orders", headers=auth_headers(driver)).json()
    assert [o["id"] for o in board["available_orders"]] == [order_id]
    assert board["breakdown"]["sender_pays"] == 1

    response = accept(client, order_id, driver)
    assert response.status_code == 200
    assigned = response.json()["order"]
    assert assigned["status"] == "assigned"
    assert assigned["driver_id"] == driver.id
    assert assigned["assigned_at"] is not None
    assert assigned["version"] == 2

    # The sender has not paid yet
    response = pickup(client, order_id, driver)
    assert response.status_code == 409
    assert response.json()["error_code"] == "invalid_transition"
    assert "sender payment" in response.json()["details"]["failed_precondition"]

    response = collect(client, order_id, driver, amount="20.00")
    assert response.status_code == 200
    body = response.json()
    assert body["payment_status"] == "paid"
    assert body["already_recorded"] is False
    assert as_decimal(body["order"]["amount_collected"]) == as_decimal("20")
    assert body["order"]["paid_at"] is not None

    # Retried collection is a no-op
    response = collect(client, order_id, driver, amount="20.00")
    assert response.status_code == 200
    assert response.json()["already_recorded"] is True
    assert response.json()["order"]["version"] == body["order"]["version"]

    response = pickup(client, order_id, driver)
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "picked_up"
    assert response.json()["order"]["picked_up_at"] is not None

    response = start_transit(client, order_id, driver)
    assert response.json()["order"]["status"] == "in_transit"

    response = deliver(client, order_id, driver, delivery_photo_ref="https://img.example/proof.jpg",
                       delivery_notes="Left with concierge")
    assert response.status_code == 200
    delivered = response.json()["order"]
    assert delivered["status"] == "delivered"
    assert delivered["delivered_at"] is not None
    assert delivered["delivery_photo_ref"] == "https://img.example/proof.jpg"
    assert delivered["delivery_notes"] == "Left with concierge"
    assert response.json()["next_step"] == "Order completed"

    history = client.get(f"{API}/orders/{order_id}/history", headers=auth_headers(customer)).json()
    assert [e["event"] for e in history["events"]] == [
        "create", "accept", "collect_payment", "mark_picked_up", "start_transit", "mark_delivered"
    ]
    assert history["events"][1]["actor_id"] == driver.id

    # Terminal
    response = client.post(f"{API}/orders/{order_id}/cancel", json={"reason": "too late"},
                           headers=auth_headers(customer))
    assert response.status_code == 409


def test_receiver_pays_blocks_delivery_until_collected(client, customer, driver):
    order = create_order(client, customer, payment_responsibility="receiver")
    order_id = order["id"]

    assert accept(client, order_id, driver).status_code == 200
    assert pickup(client, order_id, driver).status_code == 200

    response = deliver(client, order_id, driver)
    assert response.status_code == 409
    assert response.json()["error_code"] == "invalid_transition"

    assert collect(client, order_id, driver).status_code == 200
    response = deliver(client, order_id, driver)
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "delivered"


def test_collect_rejects_amount_below_cost(client, customer, driver):
    order_id = advance_to(client, customer, driver, "assigned")
    response = collect(client, order_id, driver, amount="5.00")
    assert response.status_code == 422
    assert response.json()["error_code"] == "validation_error"


def test_collect_on_pending_order_is_not_payable(client, customer, admin):
    order = create_order(client, customer)
    response = client.post(f"{API}/payments/{order['id']}/collect", json={"amount": "17"},
                           headers=auth_headers(admin))
    assert response.status_code == 409
    assert response.json()["error_code"] == "order_not_payable"


def test_payment_failure_and_refund(client, customer, driver, admin):
    order_id = advance_to(client, customer, driver, "assigned")

    response = client.post(f"{API}/payments/{order_id}/fail", json={"reason": "no cash"},
                           headers=auth_headers(driver))
    assert response.json()["payment_status"] == "failed"
    assert pickup(client, order_id, driver).status_code == 409

    assert collect(client, order_id, driver).status_code == 200

    response = client.post(f"{API}/payments/{order_id}/refund", json={}, headers=auth_headers(driver))
    assert response.status_code == 403

    response = client.post(f"{API}/payments/{order_id}/refund", json={"reason": "damaged"},
                           headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["payment_status"] == "refunded"


def test_other_driver_cannot_advance_order(client, customer, driver, second_driver):
    order_id = advance_to(client, customer, driver, "assigned")

    response = collect(client, order_id, second_driver)
    assert response.status_code == 403

    response = client.post(f"{API}/orders/{order_id}/status", json={"event": "start_transit"},
                           headers=auth_headers(second_driver))
    assert response.status_code == 403


def test_status_endpoint_accepts_events(client, customer, driver):
    order = create_order(client, customer, payment_responsibility="receiver")
    response = client.post(f"{API}/orders/{order['id']}/status", json={"event": "accept"},
                           headers=auth_headers(driver))
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "assigned"

    response = client.post(f"{API}/orders/{order['id']}/status", json={"event": "mark_picked_up"},
                           headers=auth_headers(driver))
    assert response.json()["order"]["status"] == "picked_up"


def test_stale_expected_version_is_a_conflict(client, customer, driver):
    order_id = advance_to(client, customer, driver, "assigned")
    assert collect(client, order_id, driver).status_code == 200

    response = client.post(
        f"{API}/orders/{order_id}/status",
        json={"event": "mark_picked_up", "expected_version": 1},
        headers=auth_headers(driver),
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "conflict"
    assert response.json()["details"]["current_version"] == 3


@pytest.mark.parametrize("status", ["pending", "assigned", "picked_up", "in_transit"])
def test_customer_can_cancel_from_any_non_terminal_state(client, customer, driver, status):
    order_id = advance_to(client, customer, driver, status)

    response = client.post(f"{API}/orders/{order_id}/cancel", json={"reason": "No longer needed"},
                           headers=auth_headers(customer))
    assert response.status_code == 200
    cancelled = response.json()["order"]
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancel_reason"] == "No longer needed"
    assert cancelled["cancelled_at"] is not None

    # No further events
    response = client.post(f"{API}/orders/{order_id}/status", json={"event": "accept"},
                           headers=auth_headers(driver))
    assert response.status_code == 409


def test_assigned_driver_can_cancel(client, customer, driver):
    order_id = advance_to(client, customer, driver, "assigned")
    response = client.post(f"{API}/orders/{order_id}/status",
                           json={"event": "cancel", "reason": "Vehicle broke down"},
                           headers=auth_headers(driver))
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "cancelled"


def test_strangers_cannot_cancel_or_read(client, customer, other_customer):
    order = create_order(client, customer)

    response = client.post(f"{API}/orders/{order['id']}/cancel", json={"reason": "mine now"},
                           headers=auth_headers(other_customer))
    assert response.status_code == 403
    assert response.json()["error_code"] == "permission_denied"

    response = client.get(f"{API}/orders/{order['id']}", headers=auth_headers(other_customer))
    assert response.status_code == 403


def test_unknown_order_is_not_found(client, customer):
    response = client.get(f"{API}/orders/does-not-exist", headers=auth_headers(customer))
    assert response.status_code == 404
    assert response.json()["error_code"] == "not_found"


def test_admin_force_status_is_audited(client, customer, driver, admin):
    order_id = advance_to(client, customer, driver, "assigned")

    # Skips the sender payment gate
    response = client.post(f"{API}/admin/orders/{order_id}/force-status",
                           json={"target_status": "picked_up", "reason": "App offline at pickup"},
                           headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "picked_up"
    assert response.json()["order"]["payment_status"] == "pending"

    history = client.get(f"{API}/orders/{order_id}/history", headers=auth_headers(admin)).json()
    last = history["events"][-1]
    assert last["event"] == "force_set_status"
    assert last["actor_role"] == "admin"
    assert last["details"]["reason"] == "App offline at pickup"


def test_admin_cancelling_a_delivered_order_clears_delivery(client, customer, driver, admin):
    order_id = advance_to(client, customer, driver, "in_transit")
    response = deliver(client, order_id, driver, delivery_photo_ref="https://img.example/proof.jpg")
    assert response.status_code == 200

    response = client.post(f"{API}/admin/orders/{order_id}/force-status",
                           json={"target_status": "cancelled", "reason": "Chargeback"},
                           headers=auth_headers(admin))
    assert response.status_code == 200
    cancelled = response.json()["order"]
    assert cancelled["status"] == "cancelled"
    assert cancelled["delivered_at"] is None
    assert cancelled["delivery_photo_ref"] is None
    assert cancelled["cancel_reason"] == "Chargeback"
    assert response.json()["allowed_events"] == []

    history = client.get(f"{API}/orders/{order_id}/history", headers=auth_headers(admin)).json()
    previous = history["events"][-1]["details"]["previous"]
    assert previous["delivery_photo_ref"] == "https://img.example/proof.jpg"
    assert previous["delivered_at"] is not None


def test_admin_cannot_force_driver_state_without_driver(client, customer, admin):
    order = create_order(client, customer)
    response = client.post(f"{API}/admin/orders/{order['id']}/force-status",
                           json={"target_status": "picked_up"}, headers=auth_headers(admin))
    assert response.status_code == 409
    assert response.json()["error_code"] == "invalid_transition"


def test_only_admin_can_force_status(client, customer, driver):
    order_id = advance_to(client, customer, driver, "assigned")
    response = client.post(f"{API}/orders/{order_id}/status",
                           json={"event": "force_set_status", "target_status": "delivered"},
                           headers=auth_headers(driver))
    assert response.status_code == 403


def test_admin_assigns_and_reassigns_driver(client, customer, driver, second_driver, admin):
    order = create_order(client, customer)

    response = client.post(f"{API}/admin/orders/{order['id']}/assign-driver",
                           json={"driver_id": driver.id}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "assigned"
    assert response.json()["order"]["driver_id"] == driver.id

    response = client.post(f"{API}/admin/orders/{order['id']}/assign-driver",
                           json={"driver_id": second_driver.id}, headers=auth_headers(admin))
    assert response.json()["order"]["driver_id"] == second_driver.id
    assert response.json()["order"]["status"] == "assigned"

    response = client.post(f"{API}/admin/orders/{order['id']}/assign-driver",
                           json={"driver_id": customer.id}, headers=auth_headers(admin))
    assert response.status_code == 422


def test_delivery_photo_upload_without_storage(client, customer, driver):
    order_id = advance_to(client, customer, driver, "picked_up")
    response = client.post(
        f"{API}/courier/orders/{order_id}/delivery-photo",
        files={"photo": ("proof.jpg", b"\xff\xd8\xff", "image/jpeg")},
        headers=auth_headers(driver),
    )
    assert response.status_code == 503
    assert response.json()["error_code"] == "storage_unavailable"


def test_my_orders_stats(client, customer, driver):
    advance_to(client, customer, driver, "assigned")
    delivered_id = advance_to(client, customer, driver, "in_transit")
    assert deliver(client, delivered_id, driver).status_code == 200

    body = client.get(f"{API}/courier/my-orders", headers=auth_headers(driver)).json()
    assert len(body["active_orders"]) == 1
    assert len(body["completed_orders"]) == 1
    assert body["courier_stats"]["awaiting_payment"] == 1
    assert body["courier_stats"]["completion_rate"] == 50.0
    assert as_decimal(body["courier_stats"]["collected_amount"]) == as_decimal("17")
