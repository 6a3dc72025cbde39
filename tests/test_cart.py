"""
Cart mutations: stock-checked adds and updates, owner-scoped removal.
"""
from decimal import Decimal

import pytest

from marketplace.data.models import CartItemModel
from marketplace.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from marketplace.repos.cart_repo import CartRepo
from marketplace.repos.product_repo import ProductRepo
from marketplace.services.cart_service import CartService


def test_add_merges_into_existing_line(db, make_user, make_product):
    customer = make_user()
    product = make_product(stock=5)
    cart = CartService(db)

    cart.add_item(customer.id, product.id, 2)
    item = cart.add_item(customer.id, product.id, 1)

    assert item.quantity == 3
    assert db.query(CartItemModel).filter_by(user_id=customer.id).count() == 1


def test_add_beyond_stock_counts_existing_quantity(db, make_user, make_product):
    customer = make_user()
    product = make_product(name="Lamp", stock=3)
    cart = CartService(db)
    cart.add_item(customer.id, product.id, 2)

    with pytest.raises(InsufficientStockError) as exc:
        cart.add_item(customer.id, product.id, 2)

    assert exc.value.details == {"product_id": product.id, "product_name": "Lamp", "available": 3, "requested": 4}
    assert cart.get_cart(customer.id)["items"][0]["quantity"] == 2


def test_add_unavailable_product(db, make_user, make_product):
    customer = make_user()
    hidden = make_product(is_active=False)

    with pytest.raises(NotFoundError):
        CartService(db).add_item(customer.id, hidden.id)
    with pytest.raises(NotFoundError):
        CartService(db).add_item(customer.id, 12345)


def test_get_cart_totals(db, make_user, make_store, make_product):
    customer = make_user()
    store = make_store(name="Corner Shop")
    cart = CartService(db)
    cart.add_item(customer.id, make_product(store, name="Tea", price="3.25", stock=10).id, 2)
    cart.add_item(customer.id, make_product(store, name="Honey", price="7.10", stock=10).id, 1)

    view = cart.get_cart(customer.id)

    assert view["count"] == 2
    assert view["total"] == Decimal("13.60")
    assert {line["name"] for line in view["items"]} == {"Tea", "Honey"}
    assert all(line["store_name"] == "Corner Shop" for line in view["items"])


def test_update_checks_current_stock(db, make_user, make_product):
    customer = make_user()
    product = make_product(stock=4)
    cart = CartService(db)
    item = cart.add_item(customer.id, product.id, 1)

    assert cart.update_item(customer.id, item.id, 4).quantity == 4
    with pytest.raises(InsufficientStockError):
        cart.update_item(customer.id, item.id, 5)


def test_update_to_zero_removes_line(db, make_user, make_product):
    customer = make_user()
    cart = CartService(db)
    item = cart.add_item(customer.id, make_product().id, 1)

    assert cart.update_item(customer.id, item.id, 0) is None
    assert cart.get_cart(customer.id)["count"] == 0


def test_remove_is_scoped_to_owner(db, make_user, make_product):
    owner, intruder = make_user(), make_user()
    cart = CartService(db)
    item = cart.add_item(owner.id, make_product().id, 1)

    with pytest.raises(NotFoundError):
        cart.remove_item(intruder.id, item.id)
    with pytest.raises(NotFoundError):
        cart.update_item(intruder.id, item.id, 2)

    assert cart.remove_item(owner.id, item.id) == {"message": "Item removed from cart"}


def test_clear_empties_cart(db, make_user, make_product):
    customer = make_user()
    cart = CartService(db)
    cart.add_item(customer.id, make_product(name="A").id, 1)
    cart.add_item(customer.id, make_product(name="B").id, 1)

    cart.clear(customer.id)

    assert cart.get_cart(customer.id) == {"items": [], "total": Decimal("0.00"), "count": 0}

def test_add_replays_after_losing_the_first_insert_race(db, make_user, make_product, monkeypatch):
    customer = make_user()
    product = make_product(stock=5)
    cart = CartService(db)
    cart.add_item(customer.id, product.id, 2)

    # first lookup misses the line a parallel request has just committed
    real_lookup = CartRepo.get_line_for_update
    lookups = []

    def lookup(self, user_id, product_id):
        lookups.append(product_id)
        if len(lookups) == 1:
            return None
        return real_lookup(self, user_id, product_id)

    monkeypatch.setattr(CartRepo, "get_line_for_update", lookup)

    item = cart.add_item(customer.id, product.id, 1)

    assert len(lookups) == 2
    assert item.quantity == 3
    assert db.query(CartItemModel).filter_by(user_id=customer.id).count() == 1


def test_add_gives_up_after_repeated_insert_races(db, make_user, make_product, monkeypatch):
    customer = make_user()
    product = make_product(stock=5)
    cart = CartService(db)
    cart.add_item(customer.id, product.id, 2)
    monkeypatch.setattr(CartRepo, "get_line_for_update", lambda self, user_id, product_id: None)

    with pytest.raises(ValidationError) as exc:
        cart.add_item(customer.id, product.id, 1)

    assert exc.value.message == "Cart was modified concurrently, please retry"
    assert cart.get_cart(customer.id)["items"][0]["quantity"] == 2


@pytest.mark.parametrize("operation", ["add", "update"])
def test_product_is_locked_before_the_cart_line(db, make_user, make_product, record_calls, operation):
    customer = make_user()
    product = make_product(stock=5)
    cart = CartService(db)
    item = cart.add_item(customer.id, product.id, 1)

    calls = []
    record_calls(calls, ProductRepo, "lock_for_share", "product")
    record_calls(calls, CartRepo, "get_line_for_update", "line")
    record_calls(calls, CartRepo, "get_item_for_update", "line")

    if operation == "add":
        cart.add_item(customer.id, product.id, 1)
    else:
        cart.update_item(customer.id, item.id, 3)

    assert calls == ["product", "line"]
