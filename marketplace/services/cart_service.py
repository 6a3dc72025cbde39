# marketplace/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.cart_item import CartItemModel
from marketplace.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from marketplace.repos.cart_repo import CartRepo
from marketplace.repos.product_repo import ProductRepo
from marketplace.utils.logging import get_logger
from marketplace.utils.retry import insert_race_retry

logger = get_logger(__name__)


class CartService:
    """
    Use cases for the cart (one line per user+product)
    commands (add, update, remove, clear) change state
    query (get) read only
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        items = self.repo.get_items(user_id)
        total = sum((i.product.price * i.quantity for i in items), Decimal("0.00"))

        return {
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.product.name,
                    "price": i.product.price,
                    "quantity": i.quantity,
                    "stock_quantity": i.product.stock_quantity,
                    "image_url": i.product.image_url,
                    "store_name": i.product.store.name,
                    "created_at": i.created_at,
                }
                for i in items
            ],
            "total": total.quantize(Decimal("0.01")),
            "count": len(items),
        }

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> CartItemModel:
        try:
            item = self._add_item(user_id, product_id, quantity)
        except IntegrityError:
            raise ValidationError("Cart was modified concurrently, please retry")

        logger.info(f"User {user_id} cart: product {product_id} -> quantity {item.quantity}")
        self.db.refresh(item)
        return item

    @insert_race_retry()
    def _add_item(self, user_id: int, product_id: int, quantity: int) -> CartItemModel:
        # lock order: product, then cart line (same as update_item and checkout)
        try:
            product = self.products.lock_for_share(product_id)
            if not product or not product.is_active:
                raise NotFoundError("Product not found or unavailable")

            item = self.repo.get_line_for_update(user_id, product_id)
            wanted = quantity + (item.quantity if item else 0)
            if wanted > product.stock_quantity:
                raise InsufficientStockError(
                    product_id=product.id,
                    product_name=product.name,
                    available=product.stock_quantity,
                    requested=wanted,
                )

            if item:
                item.quantity = wanted
            else:
                item = self.repo.add_item(CartItemModel(user_id=user_id, product_id=product_id, quantity=quantity))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return item

    def update_item(self, user_id: int, item_id: int, quantity: int) -> CartItemModel | None:
        """quantity <= 0 removes the line and returns None."""
        if quantity <= 0:
            self.remove_item(user_id, item_id)
            return None

        line = self.repo.find_item(user_id, item_id)
        if not line:
            raise NotFoundError("Cart item not found")

        try:
            # product before line, the order checkout takes them in
            product = self.products.lock_for_share(line.product_id)
            if not product or not product.is_active:
                raise NotFoundError("Product not found or unavailable")

            item = self.repo.get_item_for_update(user_id, item_id)
            if not item:
                raise NotFoundError("Cart item not found")

            if quantity > product.stock_quantity:
                raise InsufficientStockError(
                    product_id=product.id,
                    product_name=product.name,
                    available=product.stock_quantity,
                    requested=quantity,
                )

            item.quantity = quantity
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {item_id} of user {user_id} set to quantity {quantity}")
        self.db.refresh(item)
        return item

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, str]:
        deleted = self.repo.delete_item(user_id, item_id)
        if deleted == 0:
            self.repo.rollback()
            raise NotFoundError("Cart item not found")

        self.repo.commit()
        logger.info(f"Cart item {item_id} removed for user {user_id}")
        return {"message": "Item removed from cart"}

    def clear(self, user_id: int) -> Dict[str, str]:
        deleted = self.repo.clear(user_id)
        self.repo.commit()
        logger.info(f"Cart of user {user_id} cleared ({deleted} lines)")
        return {"message": "Cart cleared"}
