"""
Shared fixtures.

The root conftest sets TESTING before import, so core.db already points at an
in-memory SQLite engine on a StaticPool; every session below shares that one
connection. Celery runs tasks eagerly and Redis is the in-process stand-in.
"""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from core.db import Base, SessionLocal, engine, get_db
from core.redis_client import redis_client
from main import app
from models.order import Order
from models.product import Product
from models.user import User, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_DELIVERY, ROLE_VENDOR
from models.vendor import Vendor, VENDOR_APPROVED
from security import jwt as jwt_utils
from security.password import hash_password
from services.order_numbers import next_order_number


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clear_redis():
    redis_client.flushall()
    yield
    redis_client.flushall()


@pytest.fixture
def db():
    """Fresh schema for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {jwt_utils.create_access_token(user.id, user.role)}"}


def _user(db, phone: str, role: str, name: str, **extra) -> User:
    user = User(phone=phone, role=role, name=name, **extra)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return _user(db, "+919800000001", ROLE_CUSTOMER, "Asha", email="asha@example.com")


@pytest.fixture
def other_customer(db):
    return _user(db, "+919800000002", ROLE_CUSTOMER, "Ravi")


@pytest.fixture
def admin_user(db):
    return _user(
        db, "+919800000009", ROLE_ADMIN, "Admin",
        email="admin@wyshkit.com", password_hash=hash_password("admin-pass-123"),
    )


@pytest.fixture
def delivery_user(db):
    return _user(db, "+919800000008", ROLE_DELIVERY, "Rider")


def _vendor(db, user: User, name: str, status: str = VENDOR_APPROVED) -> Vendor:
    vendor = Vendor(
        user_id=user.id,
        name=name,
        city="Bangalore",
        store_lat=Decimal("12.9716"),
        store_lng=Decimal("77.5946"),
        max_delivery_radius=10,
        status=status,
        commission_rate=Decimal("18"),
    )
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    return vendor


@pytest.fixture
def vendor_user(db):
    return _user(db, "+919800000003", ROLE_VENDOR, "Meera")


@pytest.fixture
def vendor(db, vendor_user):
    return _vendor(db, vendor_user, "Crafted Gifts")


@pytest.fixture
def other_vendor_user(db):
    return _user(db, "+919800000004", ROLE_VENDOR, "Kiran")


@pytest.fixture
def other_vendor(db, other_vendor_user):
    return _vendor(db, other_vendor_user, "Other Gifts")


@pytest.fixture
def product(db, vendor):
    item = Product(
        vendor_id=vendor.id,
        name="Engraved Mug",
        description="Ceramic mug with a custom engraving",
        price=Decimal("499"),
        category="mugs",
        is_personalizable=True,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def second_product(db, vendor):
    item = Product(vendor_id=vendor.id, name="Photo Frame", price=Decimal("799"), category="frames")
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def make_order(db, customer, vendor, product):
    """Build an order straight in the database, in any status."""

    def _make(status: str = "pending", quantity: int = 1, cashback_used: Decimal = Decimal("0"), **extra) -> Order:
        item_total = Decimal(str(product.price)) * quantity
        delivery_fee = Decimal("40")
        platform_fee = Decimal("5")
        order = Order(
            order_number=next_order_number(db),
            customer_id=extra.pop("customer_id", customer.id),
            vendor_id=extra.pop("vendor_id", vendor.id),
            status=status,
            items=[{"productId": product.id, "quantity": quantity, "price": float(product.price)}],
            item_total=item_total,
            delivery_fee=delivery_fee,
            platform_fee=platform_fee,
            cashback_used=cashback_used,
            total=item_total + delivery_fee + platform_fee - cashback_used,
            delivery_address={
                "name": "Asha",
                "phone": "9876543210",
                "address": "12 MG Road",
                "city": "Bangalore",
                "pincode": "560001",
            },
            **extra,
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def headers():
    return auth_headers
