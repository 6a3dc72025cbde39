# marketplace/data/models/review.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from marketplace.data.database import Base


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=True, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("UserModel", back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        #a review targets a product XOR a store
        CheckConstraint(
            "(product_id IS NOT NULL AND store_id IS NULL) OR (product_id IS NULL AND store_id IS NOT NULL)",
            name="ck_reviews_single_target",
        ),
        UniqueConstraint("user_id", "product_id", name="u_review_user_product"),
        UniqueConstraint("user_id", "store_id", name="u_review_user_store"),
    )

    @property
    def target_type(self) -> str:
        return "product" if self.product_id is not None else "store"

    @property
    def target_id(self) -> int:
        return self.product_id if self.product_id is not None else self.store_id
