# marketplace/repos/cart_repo.py
from typing import List

from sqlalchemy.orm import Session, joinedload

from marketplace.data.models.cart_item import CartItemModel
from marketplace.data.models.product import ProductModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: int) -> List[CartItemModel]:
        return (
            self.db.query(CartItemModel)
            .options(joinedload(CartItemModel.product).joinedload(ProductModel.store))
            .filter(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.created_at.desc(), CartItemModel.id.desc())
            .all()
        )

    def get_items_for_checkout(self, user_id: int) -> List[CartItemModel]:
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.product_id)
            .all()
        )

    def find_item(self, user_id: int, item_id: int) -> CartItemModel | None:
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.id == item_id, CartItemModel.user_id == user_id)
            .first()
        )

    def get_line_for_update(self, user_id: int, product_id: int) -> CartItemModel | None:
        # FOR UPDATE + fresh values: concurrent adds of the same product merge one after another
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.user_id == user_id, CartItemModel.product_id == product_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_item_for_update(self, user_id: int, item_id: int) -> CartItemModel | None:
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.id == item_id, CartItemModel.user_id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def add_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_item(self, user_id: int, item_id: int) -> int:
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.id == item_id, CartItemModel.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def clear(self, user_id: int) -> int:
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
