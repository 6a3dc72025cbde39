# marketplace/repos/store_repo.py
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import func, distinct, case
from sqlalchemy.orm import Session, Query

from marketplace.data.models.store import StoreModel
from marketplace.data.models.product import ProductModel
from marketplace.data.models.order import OrderModel
from marketplace.data.models.order_item import OrderItemModel
from marketplace.data.models.review import ReviewModel


class StoreRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_store(self, store_id: int) -> StoreModel | None:
        return self.db.get(StoreModel, store_id)

    def get_for_update(self, store_id: int) -> StoreModel | None:
        return (
            self.db.query(StoreModel)
            .filter(StoreModel.id == store_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_seller(self, seller_id: int) -> StoreModel | None:
        return self.db.query(StoreModel).filter(StoreModel.seller_id == seller_id).first()

    def get_by_name(self, name: str, exclude_id: int | None = None) -> StoreModel | None:
        q = self.db.query(StoreModel).filter(func.lower(StoreModel.name) == name.strip().lower())
        if exclude_id is not None:
            q = q.filter(StoreModel.id != exclude_id)
        return q.first()

    def add(self, store: StoreModel) -> StoreModel:
        self.db.add(store)
        self.db.flush()
        return store

    def list_query(self) -> Query:
        return self.db.query(StoreModel).order_by(StoreModel.created_at.desc(), StoreModel.id.desc())

    def dashboard_stats(self, store_id: int) -> Dict[str, Any]:
        """Aggregates shown on the seller dashboard and public store page."""
        product_counts = (
            self.db.query(
                func.count(ProductModel.id),
                func.coalesce(func.sum(case((ProductModel.is_active.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(case((ProductModel.stock_quantity == 0, 1), else_=0)), 0),
            )
            .filter(ProductModel.store_id == store_id)
            .one()
        )
        sales = (
            self.db.query(
                func.count(distinct(OrderItemModel.order_id)),
                func.coalesce(func.sum(OrderItemModel.price_at_purchase * OrderItemModel.quantity), 0),
            )
            .filter(OrderItemModel.store_id == store_id)
            .one()
        )
        review_count = (
            self.db.query(func.count(ReviewModel.id))
            .filter(ReviewModel.store_id == store_id)
            .scalar()
        )
        return {
            "total_products": int(product_counts[0] or 0),
            "active_products": int(product_counts[1] or 0),
            "out_of_stock": int(product_counts[2] or 0),
            "total_orders": int(sales[0] or 0),
            "total_revenue": sales[1] or 0,
            "review_count": int(review_count or 0),
        }

    def revenue(self, store_id: int, start: datetime | None, end: datetime | None) -> Dict[str, Any]:
        q = (
            self.db.query(
                func.coalesce(func.sum(OrderItemModel.price_at_purchase * OrderItemModel.quantity), 0),
                func.count(distinct(OrderItemModel.order_id)),
                func.coalesce(func.sum(OrderItemModel.quantity), 0),
            )
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .filter(OrderItemModel.store_id == store_id, OrderModel.status != "cancelled")
        )
        if start is not None:
            q = q.filter(OrderModel.created_at >= start)
        if end is not None:
            q = q.filter(OrderModel.created_at <= end)

        total_revenue, total_orders, items_sold = q.one()
        return {
            "total_revenue": total_revenue or 0,
            "total_orders": int(total_orders or 0),
            "total_items_sold": int(items_sold or 0),
        }
