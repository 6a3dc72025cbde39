# marketplace/data/models/user.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from marketplace.data.database import Base

ROLES = ("customer", "seller", "admin")


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="customer")
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    #ondelete CASCADE in the child FKs, orm only lets the db do the work
    store = relationship("StoreModel", back_populates="seller", uselist=False, passive_deletes=True)
    cart_items = relationship("CartItemModel", back_populates="user", passive_deletes=True)
    reviews = relationship("ReviewModel", back_populates="user", passive_deletes=True)
    notifications = relationship("NotificationModel", back_populates="user", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("role IN ('customer', 'seller', 'admin')", name="ck_users_role"),
    )
