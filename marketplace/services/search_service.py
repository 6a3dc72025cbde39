# marketplace/services/search_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from marketplace.data.models.product import ProductModel
from marketplace.domain.errors import ValidationError
from marketplace.repos.product_repo import ProductRepo
from marketplace.services.product_service import listing_row_to_dict
from marketplace.utils.pagination import normalize, paginate

SORT_ORDERS = {
    "newest": (ProductModel.created_at.desc(), ProductModel.id.desc()),
    "price_asc": (ProductModel.price.asc(), ProductModel.id.asc()),
    "price_desc": (ProductModel.price.desc(), ProductModel.id.desc()),
    "rating": (ProductModel.average_rating.desc(), ProductModel.id.desc()),
}


class SearchService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def search_products(
        self,
        q: str | None = None,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort_by: str = "newest",
        page: int | None = None,
        limit: int | None = None,
    ) -> Dict[str, Any]:
        if sort_by not in SORT_ORDERS:
            raise ValidationError(f"Unknown sort order: {sort_by}", details={"allowed": list(SORT_ORDERS)})
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("min_price cannot be greater than max_price")

        page, limit = normalize(page, limit)

        query = self.repo.listing_query().filter(ProductModel.is_active.is_(True))

        if q and q.strip():
            keyword = f"%{q.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(ProductModel.name).like(keyword),
                    func.lower(ProductModel.description).like(keyword),
                )
            )
        if category:
            query = query.filter(func.lower(ProductModel.category).contains(category.strip().lower()))
        if min_price is not None:
            query = query.filter(ProductModel.price >= min_price)
        if max_price is not None:
            query = query.filter(ProductModel.price <= max_price)

        rows, pagination = paginate(query.order_by(*SORT_ORDERS[sort_by]), page, limit)
        return {"products": [listing_row_to_dict(r) for r in rows], "pagination": pagination}
