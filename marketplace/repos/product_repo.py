# marketplace/repos/product_repo.py
from typing import Dict, Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, Query

from marketplace.data.models.product import ProductModel
from marketplace.data.models.store import StoreModel
from marketplace.data.models.user import UserModel
from marketplace.data.models.review import ReviewModel
from marketplace.data.models.order_item import OrderItemModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    #row locks live here so services only ask for "exclusive/shared intent on row X"
    def lock_for_update(self, product_id: int) -> ProductModel | None:
        return (
            self.db.query(ProductModel)
            .filter(ProductModel.id == product_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def lock_for_share(self, product_id: int) -> ProductModel | None:
        # FOR SHARE: blocks concurrent writers (checkout decrement) until we commit
        return (
            self.db.query(ProductModel)
            .filter(ProductModel.id == product_id)
            .with_for_update(read=True)
            .populate_existing()
            .first()
        )

    def lock_many_for_update(self, product_ids: Iterable[int]) -> Dict[int, ProductModel]:
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        # stable (id) order, two checkouts never wait on each other crosswise
        rows = (
            self.db.query(ProductModel)
            .filter(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {p.id: p for p in rows}

    def get_owned_for_update(self, product_id: int, seller_id: int) -> ProductModel | None:
        return (
            self.db.query(ProductModel)
            .join(StoreModel, StoreModel.id == ProductModel.store_id)
            .filter(ProductModel.id == product_id, StoreModel.seller_id == seller_id)
            .with_for_update(of=ProductModel)
            .populate_existing()
            .first()
        )

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        Compare-and-set decrement, returns rowcount.
        0 rows means the stock was already lower than quantity.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock_quantity >= quantity,
            )
            .values(stock_quantity=ProductModel.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def add(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def delete(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.flush()

    def is_referenced_by_orders(self, product_id: int) -> bool:
        return (
            self.db.query(OrderItemModel.id)
            .filter(OrderItemModel.product_id == product_id)
            .first()
            is not None
        )

    def listing_query(self) -> Query:
        """Rows of (product, store_name, store_rating, seller_name, review_count)."""
        review_count = (
            select(func.count(ReviewModel.id))
            .where(ReviewModel.product_id == ProductModel.id)
            .correlate(ProductModel)
            .scalar_subquery()
        )
        return (
            self.db.query(
                ProductModel,
                StoreModel.name,
                StoreModel.average_rating,
                UserModel.full_name,
                review_count,
            )
            .join(StoreModel, StoreModel.id == ProductModel.store_id)
            .join(UserModel, UserModel.id == StoreModel.seller_id)
        )
