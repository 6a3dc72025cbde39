# marketplace/repos/order_repo.py
from sqlalchemy import exists
from sqlalchemy.orm import Session, Query, joinedload, selectinload

from marketplace.data.models.order import OrderModel
from marketplace.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        return (
            self.db.query(OrderModel)
            .options(
                joinedload(OrderModel.customer),
                selectinload(OrderModel.items).joinedload(OrderItemModel.product),
                selectinload(OrderModel.items).joinedload(OrderItemModel.store),
            )
            .filter(OrderModel.id == order_id)
            .first()
        )

    def get_for_store_update(self, order_id: int, store_id: int) -> OrderModel | None:
        """Locks the order row, only if the store has at least one line in it."""
        has_line = exists().where(
            OrderItemModel.order_id == OrderModel.id,
            OrderItemModel.store_id == store_id,
        )
        return (
            self.db.query(OrderModel)
            .filter(OrderModel.id == order_id, has_line)
            .with_for_update(of=OrderModel)
            .populate_existing()
            .first()
        )

    def has_store_line(self, order_id: int, store_id: int) -> bool:
        return (
            self.db.query(OrderItemModel.id)
            .filter(OrderItemModel.order_id == order_id, OrderItemModel.store_id == store_id)
            .first()
            is not None
        )

    def user_orders_query(self, user_id: int) -> Query:
        return (
            self.db.query(OrderModel)
            .options(
                joinedload(OrderModel.customer),
                selectinload(OrderModel.items).joinedload(OrderItemModel.product),
                selectinload(OrderModel.items).joinedload(OrderItemModel.store),
            )
            .filter(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )

    def store_orders_query(self, store_id: int, status: str | None = None) -> Query:
        has_line = exists().where(
            OrderItemModel.order_id == OrderModel.id,
            OrderItemModel.store_id == store_id,
        )
        q = (
            self.db.query(OrderModel)
            .options(
                joinedload(OrderModel.customer),
                selectinload(OrderModel.items).joinedload(OrderItemModel.product),
                selectinload(OrderModel.items).joinedload(OrderItemModel.store),
            )
            .filter(has_line)
        )
        if status:
            q = q.filter(OrderModel.status == status)
        return q.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
