import threading

import pytest

from conftest import run, make_user, auth_headers
from courier_core.core.exceptions import AlreadyUsed, CodeInactive, NotFound, ValidationError
from courier_core.modules.invite_codes.service import InviteCodeService, normalize_code
from courier_core.shared.database.models import DriverInviteCode, User
from courier_core.shared.schemas.enums import UserRole

API = "/api/v1"


def test_normalize_code():
    assert normalize_code("  drive2025 ") == "DRIVE2025"
    assert normalize_code(None) == ""


def test_validate(db, invite_code):
    service = InviteCodeService(db)
    assert service.validate("drive2025")
    assert not service.validate("UNKNOWN")
    assert not service.validate("ab")


def test_consume_promotes_customer(db, invite_code, customer):
    user = InviteCodeService(db).consume(" drive2025 ", customer)
    assert user.role == UserRole.DRIVER.value

    db.expire_all()
    stored = db.get(DriverInviteCode, invite_code.id)
    assert stored.used_by == customer.id
    assert stored.used_at is not None
    assert not InviteCodeService(db).validate("DRIVE2025")


def test_code_is_single_use(db, invite_code, customer, other_customer):
    service = InviteCodeService(db)
    service.consume("DRIVE2025", customer)

    with pytest.raises(AlreadyUsed):
        service.consume("DRIVE2025", other_customer)

    db.expire_all()
    assert db.get(User, other_customer.id).role == UserRole.CUSTOMER.value


def test_inactive_and_unknown_codes(db, invite_code, admin, customer):
    service = InviteCodeService(db)
    service.deactivate(invite_code.id)

    with pytest.raises(CodeInactive):
        service.consume("DRIVE2025", customer)
    with pytest.raises(NotFound):
        service.consume("NOPE-123", customer)

    # Deactivating twice is harmless
    assert service.deactivate(invite_code.id).is_active is False


def test_only_customers_redeem(db, invite_code, driver):
    with pytest.raises(ValidationError):
        InviteCodeService(db).consume("DRIVE2025", driver)
    db.expire_all()
    assert db.get(DriverInviteCode, invite_code.id).used_at is None


def test_create_rejects_duplicates_and_short_codes(db, invite_code, admin):
    service = InviteCodeService(db)
    with pytest.raises(ValidationError):
        service.create("drive2025", admin.id)
    with pytest.raises(ValidationError):
        service.create(" x ", admin.id)

    created = service.create("  new-code ", admin.id, notes="spring intake")
    assert created.code == "NEW-CODE"
    assert [c.code for c in service.list_codes(only_valid=True)].count("NEW-CODE") == 1


def test_concurrent_consumption_succeeds_once(session_factory, db, invite_code):
    customer_ids = [
        make_user(db, UserRole.CUSTOMER, f"Hopeful {i}", f"+1416555030{i}").id for i in range(4)
    ]
    barrier = threading.Barrier(len(customer_ids))
    outcomes = {}

    def attempt(user_id):
        session = session_factory()
        try:
            user = session.get(User, user_id)
            barrier.wait()
            InviteCodeService(session).consume("DRIVE2025", user)
            outcomes[user_id] = "used"
        except AlreadyUsed:
            outcomes[user_id] = "rejected"
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(user_id,)) for user_id in customer_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert list(outcomes.values()).count("used") == 1
    assert list(outcomes.values()).count("rejected") == len(customer_ids) - 1

    db.expire_all()
    drivers = db.query(User).filter(User.id.in_(customer_ids), User.role == UserRole.DRIVER.value).all()
    assert len(drivers) == 1


def test_validate_endpoint_is_public(client, invite_code):
    response = client.get(f"{API}/invite-codes/validate", params={"code": "drive2025"})
    assert response.status_code == 200
    assert response.json()["valid"] is True
    assert response.json()["code"] == "DRIVE2025"

    response = client.get(f"{API}/invite-codes/validate", params={"code": "missing"})
    assert response.json()["valid"] is False


def test_consume_endpoint(client, invite_code, customer):
    response = client.post(f"{API}/invite-codes/consume", json={"code": "DRIVE2025"},
                           headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["role"] == "driver"

    # The new role is read from the store, the old token still works
    me = client.get(f"{API}/auth/me", headers=auth_headers(customer)).json()
    assert me["role"] == "driver"

    response = client.post(f"{API}/invite-codes/consume", json={"code": "DRIVE2025"},
                           headers=auth_headers(customer))
    assert response.status_code in (409, 422)


def test_admin_invite_code_management(client, admin, customer):
    response = client.post(f"{API}/admin/invite-codes", json={"code": "fleet-01", "notes": "pilot"},
                           headers=auth_headers(admin))
    assert response.status_code == 201
    code = response.json()["invite_code"]
    assert code["code"] == "FLEET-01"

    listing = client.get(f"{API}/admin/invite-codes", headers=auth_headers(admin)).json()
    assert listing["count"] == 1

    response = client.post(f"{API}/admin/invite-codes/{code['id']}/deactivate", headers=auth_headers(admin))
    assert response.json()["invite_code"]["is_active"] is False

    response = client.get(f"{API}/admin/invite-codes", headers=auth_headers(customer))
    assert response.status_code == 403
