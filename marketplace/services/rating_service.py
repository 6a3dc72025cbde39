# marketplace/services/rating_service.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Literal

from sqlalchemy.orm import Session

from marketplace.data.models.product import ProductModel
from marketplace.data.models.store import StoreModel
from marketplace.repos.product_repo import ProductRepo
from marketplace.repos.review_repo import ReviewRepo
from marketplace.repos.store_repo import StoreRepo
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

TargetType = Literal["product", "store"]

ZERO = Decimal("0.0")


def round_rating(value) -> Decimal:
    """avg -> one decimal, half up (4.45 -> 4.5); no reviews -> 0.0"""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class RatingAggregator:
    """
    Recompute-on-write for average_rating.
    Runs inside the caller's transaction; the caller commits review + aggregate together.

    Writers call lock_target() before touching reviews of a target, so two reviews
    of the same product/store are applied one after another and the second AVG
    sees the first review.
    """

    def __init__(self, db: Session):
        self.db = db
        self.reviews = ReviewRepo(db)
        self.products = ProductRepo(db)
        self.stores = StoreRepo(db)

    def lock_target(self, target_type: TargetType, target_id: int) -> ProductModel | StoreModel | None:
        if target_type == "product":
            return self.products.lock_for_update(target_id)
        if target_type == "store":
            return self.stores.get_for_update(target_id)
        raise ValueError(f"Unknown rating target: {target_type}")

    def recompute(self, target_type: TargetType, target_id: int) -> Decimal:
        # pending review insert/delete must be visible to the AVG query
        self.db.flush()

        # no-op re-lock when the caller already holds it
        target = self.lock_target(target_type, target_id)
        if target_type == "product":
            average = self.reviews.average_for_product(target_id)
        else:
            average = self.reviews.average_for_store(target_id)

        rating = round_rating(average)
        if target is not None:
            target.average_rating = rating
            logger.info(f"Recomputed {target_type} {target_id} average_rating={rating}")
        return rating
