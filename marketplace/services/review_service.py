# marketplace/services/review_service.py
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.review import ReviewModel
from marketplace.domain.errors import ConflictError, NotFoundError
from marketplace.repos.review_repo import ReviewRepo
from marketplace.services.rating_service import RatingAggregator
from marketplace.utils.pagination import normalize, paginate
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def review_to_dict(review: ReviewModel) -> Dict[str, Any]:
    return {
        "id": review.id,
        "user_id": review.user_id,
        "product_id": review.product_id,
        "store_id": review.store_id,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at,
        "reviewer_name": review.user.full_name if review.user else None,
    }


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepo(db)
        self.ratings = RatingAggregator(db)

    def add_product_review(self, user_id: int, product_id: int, rating: int, comment: str | None = None):
        review = ReviewModel(user_id=user_id, product_id=product_id, rating=rating, comment=comment)
        return self._save(review, "Product not found", "You already reviewed this product")

    def add_store_review(self, user_id: int, store_id: int, rating: int, comment: str | None = None):
        review = ReviewModel(user_id=user_id, store_id=store_id, rating=rating, comment=comment)
        return self._save(review, "Store not found", "You already reviewed this store")

    def _already_reviewed(self, review: ReviewModel) -> bool:
        if review.product_id is not None:
            return self.repo.find_by_user_and_product(review.user_id, review.product_id) is not None
        return self.repo.find_by_user_and_store(review.user_id, review.store_id) is not None

    def _save(self, review: ReviewModel, missing_message: str, conflict_message: str) -> Dict[str, Any]:
        # target lock -> review row -> aggregate, all in one transaction
        try:
            # lock before the insert: the FK check on insert takes a share lock on the same row
            if self.ratings.lock_target(review.target_type, review.target_id) is None:
                raise NotFoundError(missing_message)

            if self._already_reviewed(review):
                raise ConflictError(conflict_message)

            self.repo.add(review)
            self.ratings.recompute(review.target_type, review.target_id)
            self.db.commit()
        except IntegrityError:
            # two requests from the same user raced past the pre-check
            self.db.rollback()
            raise ConflictError(conflict_message)
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(review)
        logger.info(f"Review {review.id} by user {review.user_id} on {review.target_type} {review.target_id}")
        return review_to_dict(review)

    def delete_review(self, user_id: int, review_id: int) -> Dict[str, str]:
        review = self.repo.get_owned(review_id, user_id)
        if not review:
            raise NotFoundError("Review not found or you don't own it")

        target_type, target_id = review.target_type, review.target_id
        try:
            self.ratings.lock_target(target_type, target_id)
            # a parallel delete of the same review may have committed while we waited
            if not self.repo.get_owned(review_id, user_id):
                raise NotFoundError("Review not found or you don't own it")

            self.repo.delete(review)
            self.ratings.recompute(target_type, target_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Review {review_id} deleted, {target_type} {target_id} rating recomputed")
        return {"message": "Review deleted"}

    def list_product_reviews(self, product_id: int, page: int | None = None, limit: int | None = None):
        page, limit = normalize(page, limit)
        rows, pagination = paginate(self.repo.product_reviews_query(product_id), page, limit)
        return {"reviews": [review_to_dict(r) for r in rows], "pagination": pagination}

    def list_store_reviews(self, store_id: int, page: int | None = None, limit: int | None = None):
        page, limit = normalize(page, limit)
        rows, pagination = paginate(self.repo.store_reviews_query(store_id), page, limit)
        return {"reviews": [review_to_dict(r) for r in rows], "pagination": pagination}
