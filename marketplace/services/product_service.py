# marketplace/services/product_service.py
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from marketplace.data.models.product import ProductModel
from marketplace.domain.errors import NotFoundError
from marketplace.repos.product_repo import ProductRepo
from marketplace.repos.store_repo import StoreRepo
from marketplace.services.stock_guard import StockGuard
from marketplace.utils.pagination import normalize, paginate
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "category", "image_url", "is_active")


def listing_row_to_dict(row) -> Dict[str, Any]:
    """(product, store_name, store_rating, seller_name, review_count) -> dict"""
    product, store_name, store_rating, seller_name, review_count = row
    return {
        "id": product.id,
        "store_id": product.store_id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "stock_quantity": product.stock_quantity,
        "category": product.category,
        "image_url": product.image_url,
        "average_rating": product.average_rating,
        "is_active": product.is_active,
        "created_at": product.created_at,
        "store_name": store_name,
        "store_rating": store_rating,
        "seller_name": seller_name,
        "review_count": int(review_count or 0),
    }


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)
        self.stores = StoreRepo(db)
        self.stock = StockGuard(db)

    #queries
    def get_product(self, product_id: int) -> Dict[str, Any]:
        row = self.repo.listing_query().filter(ProductModel.id == product_id).first()
        if not row:
            raise NotFoundError("Product not found")
        return listing_row_to_dict(row)

    def list_products(
        self,
        store_id: int | None = None,
        category: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> Dict[str, Any]:
        page, limit = normalize(page, limit)

        q = self.repo.listing_query().filter(ProductModel.is_active.is_(True))
        if store_id is not None:
            q = q.filter(ProductModel.store_id == store_id)
        if category:
            q = q.filter(func.lower(ProductModel.category).contains(category.strip().lower()))
        q = q.order_by(ProductModel.created_at.desc(), ProductModel.id.desc())

        rows, pagination = paginate(q, page, limit)
        return {"products": [listing_row_to_dict(r) for r in rows], "pagination": pagination}

    #commands
    def create_product(self, seller_id: int, data: Dict[str, Any]) -> ProductModel:
        store = self.stores.get_by_seller(seller_id)
        if not store:
            raise NotFoundError("You need to create a store first")

        try:
            product = self.repo.add(
                ProductModel(
                    store_id=store.id,
                    name=data["name"],
                    description=data.get("description"),
                    price=data["price"],
                    stock_quantity=data.get("stock_quantity") or 0,
                    category=data.get("category"),
                    image_url=data.get("image_url"),
                    is_active=True,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(product)
        logger.info(f"Product {product.id} created in store {store.id}")
        return product

    def update_product(self, seller_id: int, product_id: int, data: Dict[str, Any]) -> ProductModel:
        try:
            product = self.repo.get_owned_for_update(product_id, seller_id)
            if not product:
                raise NotFoundError("Product not found or you don't own it")

            for field in EDITABLE_FIELDS:
                if field in data and data[field] is not None:
                    setattr(product, field, data[field])

            if "stock_quantity" in data:
                self.stock.set_quantity(product, data["stock_quantity"])

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(product)
        logger.info(f"Product {product_id} updated by seller {seller_id}")
        return product

    def delete_product(self, seller_id: int, product_id: int) -> Dict[str, Any]:
        """Hard delete, or deactivate when order history points at the product."""
        try:
            product = self.repo.get_owned_for_update(product_id, seller_id)
            if not product:
                raise NotFoundError("Product not found or you don't own it")

            if self.repo.is_referenced_by_orders(product_id):
                product.is_active = False
                deactivated = True
            else:
                self.repo.delete(product)
                deactivated = False

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if deactivated:
            logger.info(f"Product {product_id} has order history, deactivated instead of deleted")
            return {"message": "Product has existing orders and was deactivated", "deactivated": True}

        logger.info(f"Product {product_id} deleted by seller {seller_id}")
        return {"message": "Product deleted", "deactivated": False}
