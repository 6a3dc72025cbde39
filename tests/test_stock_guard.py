"""
Stock never goes negative: guarded decrement, validator and CHECK constraint.
Concurrent checkouts against PostgreSQL live in test_concurrency.py.
"""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from marketplace.data.database import SessionLocal
from marketplace.data.models import ProductModel
from marketplace.domain.errors import InsufficientStockError, ValidationError
from marketplace.services.stock_guard import StockGuard


def test_decrement_reduces_stock(db, make_product):
    product = make_product(stock=5)

    StockGuard(db).decrement(product, 2)
    db.commit()

    assert product.stock_quantity == 3


def test_decrement_on_stale_read_is_rejected(db, make_product):
    product = make_product(stock=1)
    assert product.stock_quantity == 1

    # someone else sells the last unit after we read it
    other = SessionLocal()
    try:
        other.query(ProductModel).filter_by(id=product.id).update({"stock_quantity": 0})
        other.commit()
    finally:
        other.close()

    with pytest.raises(InsufficientStockError):
        StockGuard(db).decrement(product, 1)
    db.rollback()

    db.refresh(product)
    assert product.stock_quantity == 0


def test_decrement_rejects_non_positive_quantity(db, make_product):
    product = make_product(stock=5)

    with pytest.raises(ValidationError):
        StockGuard(db).decrement(product, 0)


def test_ensure_available(make_product):
    product = make_product(stock=2)

    StockGuard.ensure_available(product, 2)
    with pytest.raises(InsufficientStockError) as exc:
        StockGuard.ensure_available(product, 3)
    assert exc.value.available == 2
    assert exc.value.requested == 3


def test_set_quantity_rejects_negative(make_product):
    product = make_product(stock=2)

    with pytest.raises(ValidationError):
        StockGuard.set_quantity(product, -1)
    assert product.stock_quantity == 2


def test_model_validator_rejects_negative_assignment(make_product):
    product = make_product(stock=2)

    with pytest.raises(ValidationError) as exc:
        product.stock_quantity = -5
    assert exc.value.message == "Stock cannot be negative"


def test_check_constraint_rejects_negative_stock(db, make_product):
    product = make_product(stock=2)

    with pytest.raises(IntegrityError):
        db.execute(text("UPDATE products SET stock_quantity = -1 WHERE id = :id"), {"id": product.id})
        db.commit()
    db.rollback()

    db.refresh(product)
    assert product.stock_quantity == 2

