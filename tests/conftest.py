"""
Shared fixtures.

Environment is set before anything from marketplace is imported:
settings are module constants read once at import time.
"""
import os
import tempfile
from decimal import Decimal

_DB_DIR = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["REDIS_URL"] = ""
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import marketplace.data.models  # noqa: E402,F401
from marketplace.data.database import Base, SessionLocal, engine  # noqa: E402
from marketplace.data.models import (  # noqa: E402
    CartItemModel,
    ProductModel,
    StoreModel,
    UserModel,
)
from marketplace.services.auth_service import create_token, hash_password  # noqa: E402

SHIPPING_ADDRESS = {
    "full_name": "Alice Buyer",
    "line1": "12 Market Street",
    "city": "Lisbon",
    "postal_code": "1100-001",
    "country": "PT",
}


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from marketplace.api import create_app

    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: str = "customer", email: str | None = None, full_name: str | None = None, password: str = "secret123"):
        counter["n"] += 1
        user = UserModel(
            email=email or f"{role}{counter['n']}@shop.io",
            password_hash=hash_password(password),
            full_name=full_name or f"{role.title()} {counter['n']}",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_store(db, make_user):
    def _make(seller: UserModel | None = None, name: str | None = None):
        seller = seller or make_user("seller")
        store = StoreModel(seller_id=seller.id, name=name or f"Store of {seller.full_name}")
        db.add(store)
        db.commit()
        db.refresh(store)
        return store

    return _make


@pytest.fixture
def make_product(db, make_store):
    def _make(store: StoreModel | None = None, name: str = "Widget", price: str = "10.00", stock: int = 5, **extra):
        store = store or make_store()
        product = ProductModel(
            store_id=store.id,
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            **extra,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def put_in_cart(db):
    def _put(user: UserModel, product: ProductModel, quantity: int = 1):
        item = CartItemModel(user_id=user.id, product_id=product.id, quantity=quantity)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _put


@pytest.fixture
def auth_headers():
    def _headers(user: UserModel):
        return {"Authorization": f"Bearer {create_token(user)}"}

    return _headers


@pytest.fixture
def shipping():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture
def record_calls(monkeypatch):
    """Wraps cls.name so each call appends `label` to `calls` before running the real method."""
    def _record(calls, cls, name, label):
        real = getattr(cls, name)

        def wrapper(self, *args):
            calls.append(label)
            return real(self, *args)

        monkeypatch.setattr(cls, name, wrapper)

    return _record
