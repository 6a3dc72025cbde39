# marketplace/data/models/store.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from marketplace.data.database import Base


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True)
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    average_rating = Column(Numeric(2, 1), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    seller = relationship("UserModel", back_populates="store")
    products = relationship("ProductModel", back_populates="store", passive_deletes=True)
