# marketplace/repos/review_repo.py
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session, Query, joinedload

from marketplace.data.models.review import ReviewModel


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        self.db.flush()
        return review

    def get_review(self, review_id: int) -> ReviewModel | None:
        return self.db.get(ReviewModel, review_id)

    def get_owned(self, review_id: int, user_id: int) -> ReviewModel | None:
        return (
            self.db.query(ReviewModel)
            .filter(ReviewModel.id == review_id, ReviewModel.user_id == user_id)
            .first()
        )

    def find_by_user_and_product(self, user_id: int, product_id: int) -> ReviewModel | None:
        return (
            self.db.query(ReviewModel)
            .filter(ReviewModel.user_id == user_id, ReviewModel.product_id == product_id)
            .first()
        )

    def find_by_user_and_store(self, user_id: int, store_id: int) -> ReviewModel | None:
        return (
            self.db.query(ReviewModel)
            .filter(ReviewModel.user_id == user_id, ReviewModel.store_id == store_id)
            .first()
        )

    def delete(self, review: ReviewModel) -> None:
        self.db.delete(review)
        self.db.flush()

    def average_for_product(self, product_id: int) -> Decimal | None:
        return (
            self.db.query(func.avg(ReviewModel.rating))
            .filter(ReviewModel.product_id == product_id)
            .scalar()
        )

    def average_for_store(self, store_id: int) -> Decimal | None:
        return (
            self.db.query(func.avg(ReviewModel.rating))
            .filter(ReviewModel.store_id == store_id)
            .scalar()
        )

    def product_reviews_query(self, product_id: int) -> Query:
        return (
            self.db.query(ReviewModel)
            .options(joinedload(ReviewModel.user))
            .filter(ReviewModel.product_id == product_id)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
        )

    def store_reviews_query(self, store_id: int) -> Query:
        return (
            self.db.query(ReviewModel)
            .options(joinedload(ReviewModel.user))
            .filter(ReviewModel.store_id == store_id)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
        )
