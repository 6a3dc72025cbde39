"""
Checkout: cart -> order in one transaction.
"""
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from marketplace.data.models import CartItemModel, NotificationModel, OrderItemModel, OrderModel
from marketplace.domain.errors import EmptyCartError, InfrastructureError, InsufficientStockError
from marketplace.repos.product_repo import ProductRepo
from marketplace.services.order_service import OrderService
from marketplace.services.product_service import CatalogService


def test_checkout_creates_order_and_decrements_stock(db, shipping, make_user, make_product, put_in_cart):
    customer = make_user()
    product = make_product(price="10.00", stock=5)
    put_in_cart(customer, product, 2)

    order = OrderService(db).checkout(customer.id, shipping)

    assert order["status"] == "pending"
    assert order["total_amount"] == Decimal("20.00")
    assert order["shipping_address"]["city"] == "Lisbon"
    assert order["item_count"] == 1
    assert order["items"][0]["price"] == Decimal("10.00")
    assert order["items"][0]["quantity"] == 2

    db.refresh(product)
    assert product.stock_quantity == 3
    assert db.query(CartItemModel).filter_by(user_id=customer.id).count() == 0


def test_checkout_insufficient_stock_changes_nothing(db, shipping, make_user, make_product, put_in_cart):
    customer = make_user()
    product = make_product(name="Last One", stock=1)
    put_in_cart(customer, product, 2)

    with pytest.raises(InsufficientStockError) as exc:
        OrderService(db).checkout(customer.id, shipping)

    assert exc.value.message == "Insufficient stock for product: Last One"
    assert exc.value.details == {
        "product_id": product.id,
        "product_name": "Last One",
        "available": 1,
        "requested": 2,
    }
    db.refresh(product)
    assert product.stock_quantity == 1
    assert db.query(OrderModel).count() == 0
    assert db.query(CartItemModel).filter_by(user_id=customer.id).count() == 1


def test_empty_cart_is_rejected(db, shipping, make_user):
    customer = make_user()

    with pytest.raises(EmptyCartError):
        OrderService(db).checkout(customer.id, shipping)

    assert db.query(OrderModel).count() == 0


def test_one_bad_line_aborts_the_whole_order(db, shipping, make_user, make_product, put_in_cart):
    customer = make_user()
    plenty = make_product(name="Plenty", stock=10)
    scarce = make_product(name="Scarce", stock=1)
    put_in_cart(customer, plenty, 3)
    put_in_cart(customer, scarce, 2)

    with pytest.raises(InsufficientStockError):
        OrderService(db).checkout(customer.id, shipping)

    db.refresh(plenty)
    db.refresh(scarce)
    assert plenty.stock_quantity == 10
    assert scarce.stock_quantity == 1
    assert db.query(OrderModel).count() == 0
    assert db.query(OrderItemModel).count() == 0
    assert db.query(CartItemModel).filter_by(user_id=customer.id).count() == 2


def test_deactivated_product_blocks_checkout(db, shipping, make_user, make_product, put_in_cart):
    customer = make_user()
    product = make_product(stock=5)
    put_in_cart(customer, product, 1)
    product.is_active = False
    db.commit()

    with pytest.raises(InsufficientStockError) as exc:
        OrderService(db).checkout(customer.id, shipping)

    assert exc.value.available == 0


def test_price_is_frozen_at_purchase(db, shipping, make_user, make_store, make_product, put_in_cart):
    seller = make_user("seller")
    store = make_store(seller)
    customer = make_user()
    product = make_product(store, price="10.00", stock=5)
    put_in_cart(customer, product, 1)

    order = OrderService(db).checkout(customer.id, shipping)
    CatalogService(db).update_product(seller.id, product.id, {"price": Decimal("15.00")})

    item = db.query(OrderItemModel).filter_by(order_id=order["id"]).one()
    assert item.price_at_purchase == Decimal("10.00")
    reloaded = OrderService(db).get_order(order["id"], customer.id)
    assert reloaded["total_amount"] == Decimal("10.00")


def test_cart_clears_exactly_once(db, shipping, make_user, make_product, put_in_cart):
    customer = make_user()
    product = make_product(stock=5)
    put_in_cart(customer, product, 1)

    OrderService(db).checkout(customer.id, shipping)
    with pytest.raises(EmptyCartError):
        OrderService(db).checkout(customer.id, shipping)

    assert db.query(OrderModel).count() == 1
    db.refresh(product)
    assert product.stock_quantity == 4


def test_each_store_seller_gets_one_notification(db, shipping, make_user, make_store, make_product, put_in_cart):
    seller_a, seller_b = make_user("seller"), make_user("seller")
    store_a, store_b = make_store(seller_a, "Alpha"), make_store(seller_b, "Beta")
    customer = make_user()
    put_in_cart(customer, make_product(store_a, name="A1", price="5.00"), 2)
    put_in_cart(customer, make_product(store_a, name="A2", price="1.50"), 1)
    put_in_cart(customer, make_product(store_b, name="B1", price="7.00"), 1)

    order = OrderService(db).checkout(customer.id, shipping)

    rows = db.query(NotificationModel).order_by(NotificationModel.user_id).all()
    assert [(n.user_id, n.dedup_key) for n in rows] == [
        (seller_a.id, f"new_order:{order['id']}:{store_a.id}"),
        (seller_b.id, f"new_order:{order['id']}:{store_b.id}"),
    ]
    assert rows[0].message == f"New order #{order['id']} received for Alpha! Amount: $11.50"
    assert rows[0].type == "new_order"


def test_notification_failure_does_not_undo_the_order(db, shipping, make_user, make_product, put_in_cart):
    customer = make_user()
    product = make_product(stock=2)
    put_in_cart(customer, product, 1)

    with patch(
        "marketplace.services.notification_service.deliver_notification_task.delay",
        side_effect=ConnectionError("broker down"),
    ):
        order = OrderService(db).checkout(customer.id, shipping)

    assert db.query(OrderModel).filter_by(id=order["id"]).count() == 1
    assert db.query(NotificationModel).count() == 0


def test_transient_failure_is_retried(db, shipping, make_user, make_product, put_in_cart, monkeypatch):
    customer = make_user()
    product = make_product(stock=3)
    put_in_cart(customer, product, 1)

    real_lock = ProductRepo.lock_many_for_update
    calls = {"n": 0}

    def flaky_lock(self, product_ids):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("deadlock detected"))
        return real_lock(self, product_ids)

    monkeypatch.setattr(ProductRepo, "lock_many_for_update", flaky_lock)

    order = OrderService(db).checkout(customer.id, shipping)

    assert calls["n"] == 2
    assert order["total_amount"] == Decimal("10.00")
    db.refresh(product)
    assert product.stock_quantity == 2


def test_persistent_storage_failure_surfaces_as_infrastructure_error(db, shipping, make_user, make_product, put_in_cart, monkeypatch):
    customer = make_user()
    product = make_product(stock=3)
    put_in_cart(customer, product, 1)

    def broken_lock(self, product_ids):
        raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("could not serialize access"))

    monkeypatch.setattr(ProductRepo, "lock_many_for_update", broken_lock)

    with pytest.raises(InfrastructureError):
        OrderService(db).checkout(customer.id, shipping)

    db.refresh(product)
    assert product.stock_quantity == 3
    assert db.query(CartItemModel).filter_by(user_id=customer.id).count() == 1
