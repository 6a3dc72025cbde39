# marketplace/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, validates

from marketplace.data.database import Base
from marketplace.domain.errors import ValidationError


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=True, index=True)
    image_url = Column(Text, nullable=True)
    average_rating = Column(Numeric(2, 1), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    store = relationship("StoreModel", back_populates="products")

    #stock guard at the db level, any write leaving stock < 0 aborts the transaction
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price > 0", name="ck_products_price_positive"),
    )

    @validates("stock_quantity")
    def _validate_stock(self, key, value):
        if value is not None and value < 0:
            raise ValidationError("Stock cannot be negative", details={"product_id": self.id})
        return value

    @validates("price")
    def _validate_price(self, key, value):
        if value is not None and value <= 0:
            raise ValidationError("Price must be greater than 0")
        return value
