import os

# Settings are read at import time; keep the app off the real database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"

import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from courier_core.config.database import get_db
from courier_core.core.auth.service import AuthService
from courier_core.main import app
from courier_core.shared.database.models import Base, User, DriverInviteCode
from courier_core.shared.schemas.enums import UserRole

TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = AuthService.get_password_hash(TEST_PASSWORD)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'courier.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, role: UserRole, name: str, phone: str, is_active: bool = True) -> User:
    user = User(
        full_name=name,
        email=f"{name.lower().replace(' ', '.')}@courier.ca",
        phone=phone,
        password_hash=TEST_PASSWORD_HASH,
        role=role.value,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return make_user(db, UserRole.CUSTOMER, "Casey Customer", "+14165550101")


@pytest.fixture
def other_customer(db):
    return make_user(db, UserRole.CUSTOMER, "Olive Other", "+14165550104")


@pytest.fixture
def driver(db):
    return make_user(db, UserRole.DRIVER, "Dana Driver", "+14165550102")


@pytest.fixture
def second_driver(db):
    return make_user(db, UserRole.DRIVER, "Sam Second", "+14165550103")


@pytest.fixture
def admin(db):
    return make_user(db, UserRole.ADMIN, "Alex Admin", "+14165550100")


@pytest.fixture
def invite_code(db, admin):
    invite = DriverInviteCode(code="DRIVE2025", is_active=True, created_by=admin.id)
    db.add(invite)
    db.commit()
    db.refresh(invite)
    return invite


def auth_headers(user: User) -> dict:
    token = AuthService.create_access_token(
        data={"user_id": user.id, "email": user.email, "role": user.role}
    )
    return {"Authorization": f"Bearer {token}"}


ORDER_PAYLOAD = {
    "pickup_address": "100 Queen St W, Toronto, ON",
    "dropoff_address": "1 Yonge St, Toronto, ON",
    "distance_km": 10,
    "eta_minutes": 25,
    "package": {
        "size": "Medium",
        "weight": "< 5kg",
        "fragile": False,
        "speed": "Standard",
    },
    "payment_responsibility": "sender",
    "payment_method": "cash",
}


def create_order(client, customer: User, **overrides) -> dict:
    payload = dict(ORDER_PAYLOAD, **overrides)
    response = client.post("/api/v1/orders", json=payload, headers=auth_headers(customer))
    assert response.status_code == 200, response.text
    return response.json()["order"]


def as_decimal(value) -> Decimal:
    return Decimal(str(value))
