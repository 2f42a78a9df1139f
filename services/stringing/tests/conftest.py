import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "owner@stringshop.test"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_0123456789abcdef"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

import itertools
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.application.auth import create_access_token
from app.application.checkout import CheckoutService
from app.application.schemas import CheckoutCompleted, CheckoutLineItem
from app.domain.models import Base, Category, InventoryItem
from app.infrastructure.db import get_db


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token("user_admin", email="owner@stringshop.test", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers():
    token = create_access_token("user_customer", email="player@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def inventory_item(db):
    def make(price_id="price_mesh", stock=3, category=Category.MESH, name="Hero 3.0 Mesh", **extra):
        item = InventoryItem(price_id=price_id, name=name, category=category, stock=stock, **extra)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return make


_session_ids = itertools.count(1)


@pytest.fixture
def checkout_payload():
    def make(line_items=(), **overrides):
        data = {
            "stripe_session_id": f"cs_test_{next(_session_ids)}",
            "customer_name": "Riley Stick",
            "email": "riley@example.com",
            "phone": "555-0100",
            "item_description": "Signature Mesh Re-string",
            "line_items": [CheckoutLineItem(**li) for li in line_items],
        }
        data.update(overrides)
        return CheckoutCompleted(**data)
    return make


@pytest.fixture
def place_order(db, checkout_payload):
    """Creates a paid order through the checkout handler."""
    def make(pickup_code="1234", **overrides):
        order, _ = CheckoutService(db).handle_checkout_completed(
            checkout_payload(pickup_code=pickup_code, **overrides)
        )
        return order
    return make
