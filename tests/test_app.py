from courier_core.core.exceptions import Conflict, InvalidTransition


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/api/v1/health").json()["status"] == "healthy"
    assert client.get("/api/v1/orders/health").json()["service"] == "orders"
    assert client.get("/api/v1/courier/health").json()["service"] == "courier"


def test_error_codes_are_stable():
    error = InvalidTransition("assigned", "mark_picked_up", "sender payment must be collected first")
    body = error.to_dict()
    assert body["success"] is False
    assert body["error_code"] == "invalid_transition"
    assert body["details"]["failed_precondition"] == "sender payment must be collected first"

    conflict = Conflict("order-1", 2, 3)
    assert conflict.status_code == 409
    assert conflict.details == {"order_id": "order-1", "expected_version": 2, "current_version": 3}
