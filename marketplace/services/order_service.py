# marketplace/services/order_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from marketplace.data.models.order import OrderModel, ORDER_STATUSES
from marketplace.data.models.order_item import OrderItemModel
from marketplace.domain.errors import (
    EmptyCartError,
    InfrastructureError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from marketplace.repos.cart_repo import CartRepo
from marketplace.repos.order_repo import OrderRepo
from marketplace.repos.product_repo import ProductRepo
from marketplace.repos.store_repo import StoreRepo
from marketplace.services.notification_service import NotificationService
from marketplace.services.stock_guard import StockGuard
from marketplace.utils.pagination import normalize, paginate
from marketplace.utils.retry import transaction_retry
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

NOT_YOUR_ORDER = "Order not found or doesn't belong to your store"


def order_to_dict(order: OrderModel, store_id: int | None = None) -> Dict[str, Any]:
    """store_id given -> only that store's lines are embedded."""
    items = [i for i in order.items if store_id is None or i.store_id == store_id]
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "shipping_address": order.shipping_address,
        "created_at": order.created_at,
        "customer_name": order.customer.full_name if order.customer else None,
        "item_count": len(items),
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product.name,
                "store_id": i.store_id,
                "store_name": i.store.name,
                "quantity": i.quantity,
                "price": i.price_at_purchase,
            }
            for i in items
        ],
    }


class OrderService:
    """
    Order domain, separate from CartService.
    checkout is the only place where cart lines turn into orders and stock goes down.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.stores = StoreRepo(db)
        self.stock = StockGuard(db)
        self.notification_service = NotificationService()

    def checkout(self, user_id: int, shipping_address: Dict[str, Any]) -> Dict[str, Any]:
        """
        Use Case: cart -> order, all or nothing.

        1. Loads cart lines, locks their products in id order
        2. Re-verifies stock under the lock
        3. Creates order + items with frozen prices
        4. Decrements stock (guarded), clears the cart, commits
        5. Notifies each store's seller (async, after commit)
        """
        try:
            order_id, sellers = self._checkout_transaction(user_id, shipping_address)
        except (EmptyCartError, InsufficientStockError) as e:
            logger.warning(f"Checkout rejected for user {user_id}: {e.message}")
            raise
        except OperationalError as e:
            logger.error(f"Checkout for user {user_id} failed after retries: {e}")
            raise InfrastructureError("Could not complete checkout, please try again")

        logger.info(f"Order {order_id} created for user {user_id}")

        for store_id, info in sellers.items():
            self.notification_service.notify_seller_new_order(
                seller_id=info["seller_id"],
                order_id=order_id,
                store_id=store_id,
                store_name=info["store_name"],
                amount=info["amount"],
            )

        return order_to_dict(self.repo.get_order(order_id))

    @transaction_retry()
    def _checkout_transaction(self, user_id: int, shipping_address: Dict[str, Any]):
        try:
            lines = self.carts.get_items_for_checkout(user_id)
            if not lines:
                raise EmptyCartError()

            locked = self.products.lock_many_for_update(line.product_id for line in lines)

            for line in lines:
                product = locked.get(line.product_id)
                if product is None:
                    raise InsufficientStockError(product_id=line.product_id, available=0, requested=line.quantity)
                self.stock.ensure_available(product, line.quantity)

            total = sum(
                (locked[line.product_id].price * line.quantity for line in lines),
                Decimal("0.00"),
            )

            order = self.repo.create_order(
                OrderModel(
                    user_id=user_id,
                    status="pending",
                    total_amount=total,
                    shipping_address=shipping_address,
                )
            )

            sellers: Dict[int, Dict[str, Any]] = {}
            for line in lines:
                product = locked[line.product_id]
                self.repo.add_item(
                    OrderItemModel(
                        order_id=order.id,
                        product_id=product.id,
                        store_id=product.store_id,
                        quantity=line.quantity,
                        price_at_purchase=product.price,
                    )
                )

                entry = sellers.setdefault(
                    product.store_id,
                    {
                        "seller_id": product.store.seller_id,
                        "store_name": product.store.name,
                        "amount": Decimal("0.00"),
                    },
                )
                entry["amount"] += product.price * line.quantity

            for line in lines:
                self.stock.decrement(locked[line.product_id], line.quantity)

            self.carts.clear(user_id)

            order_id = order.id
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return order_id, sellers

    #queries
    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if order.user_id == user_id:
            return order_to_dict(order)

        store = self.stores.get_by_seller(user_id)
        if store and self.repo.has_store_line(order_id, store.id):
            return order_to_dict(order, store_id=store.id)

        raise NotFoundError("Order not found")

    def list_user_orders(self, user_id: int, page: int | None = None, limit: int | None = None) -> Dict[str, Any]:
        page, limit = normalize(page, limit)
        rows, pagination = paginate(self.repo.user_orders_query(user_id), page, limit)
        return {"orders": [order_to_dict(o) for o in rows], "pagination": pagination}

    def list_seller_orders(
        self,
        seller_id: int,
        status: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> Dict[str, Any]:
        store = self.stores.get_by_seller(seller_id)
        if not store:
            raise NotFoundError("You need to create a store first")

        page, limit = normalize(page, limit)
        rows, pagination = paginate(self.repo.store_orders_query(store.id, _status_value(status)), page, limit)
        return {"orders": [order_to_dict(o, store_id=store.id) for o in rows], "pagination": pagination}

    #commands
    def update_order_status(self, seller_id: int, order_id: int, new_status) -> Dict[str, Any]:
        new_status = _status_value(new_status)
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f"Invalid status: {new_status}")

        store = self.stores.get_by_seller(seller_id)
        if not store:
            raise NotFoundError(NOT_YOUR_ORDER)

        try:
            order = self.repo.get_for_store_update(order_id, store.id)
            if not order:
                raise NotFoundError(NOT_YOUR_ORDER)

            old_status = order.status
            customer_id = order.user_id
            order.status = new_status
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if old_status == new_status:
            logger.info(f"Order {order_id} already {new_status}, nothing to notify")
        else:
            logger.info(f"Order {order_id} status {old_status} -> {new_status} by store {store.id}")
            self.notification_service.notify_order_status(customer_id, order_id, new_status)

        return order_to_dict(self.repo.get_order(order_id), store_id=store.id)


def _status_value(status) -> str | None:
    # OrderStatus enum or plain string
    return getattr(status, "value", status)
