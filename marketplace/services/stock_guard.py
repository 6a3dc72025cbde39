# marketplace/services/stock_guard.py
from sqlalchemy.orm import Session

from marketplace.data.models.product import ProductModel
from marketplace.domain.errors import InsufficientStockError, ValidationError
from marketplace.repos.product_repo import ProductRepo
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class StockGuard:
    """
    Every stock mutation goes through here: checkout decrement, seller edits.
    Stock never goes below zero in a committed state.

    Layers:
    - caller holds a row lock on the product (FOR UPDATE / FOR SHARE)
    - decrement is a compare-and-set UPDATE (... WHERE stock_quantity >= :q)
    - ProductModel validator + CHECK constraint reject anything negative
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)

    @staticmethod
    def ensure_available(product: ProductModel, requested: int) -> None:
        if not product.is_active:
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                available=0,
                requested=requested,
                message=f"Product is no longer available: {product.name}",
            )
        if product.stock_quantity < requested:
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                available=product.stock_quantity,
                requested=requested,
            )

    def decrement(self, product: ProductModel, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        rowcount = self.repo.decrement_stock(product.id, quantity)

        # 0 rows -> someone else took the stock between our read and write
        if rowcount == 0:
            logger.warning(f"Stock guard rejected decrement of product {product.id} by {quantity}")
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                available=None,
                requested=quantity,
            )

        # the UPDATE bypassed the identity map
        self.db.expire(product, ["stock_quantity"])

    @staticmethod
    def set_quantity(product: ProductModel, quantity: int) -> None:
        if quantity is None:
            return
        if quantity < 0:
            raise ValidationError("Stock cannot be negative", details={"product_id": product.id})
        product.stock_quantity = quantity
