# marketplace/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


# ----- users / auth -----

class UserCreate(BaseModel):
    """Registration payload."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: Literal["customer", "seller"] = "customer"


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class UserRead(BaseModel):
    id: int
    email: str
    full_name: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthOut(BaseModel):
    user: UserRead
    token: str


# ----- stores -----

class StoreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class StoreOut(BaseModel):
    id: int
    seller_id: int
    name: str
    description: Optional[str] = None
    average_rating: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StoreDashboardOut(StoreOut):
    seller_name: str
    total_products: int
    active_products: int
    out_of_stock: int
    total_orders: int
    total_revenue: Decimal
    review_count: int


class StoreListOut(BaseModel):
    stores: List[StoreDashboardOut]
    pagination: Pagination


class RevenueOut(BaseModel):
    total_revenue: Decimal
    total_orders: int
    total_items_sold: int


# ----- products -----

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    store_id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    average_rating: Decimal
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductDetailOut(ProductOut):
    store_name: str
    store_rating: Decimal
    seller_name: str
    review_count: int


class ProductListOut(BaseModel):
    products: List[ProductDetailOut]
    pagination: Pagination


class SearchResultOut(BaseModel):
    products: List[ProductDetailOut]
    pagination: Pagination


class ProductDeleteOut(BaseModel):
    message: str
    deactivated: bool


# ----- cart -----

class ItemIn(BaseModel):
    """Add-to-cart payload."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    quantity: int = Field(1, gt=0, description="Quantity (> 0)")


class ItemQuantityIn(BaseModel):
    # <= 0 removes the line
    quantity: int


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CartLineOut(BaseModel):
    id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    stock_quantity: int
    image_url: Optional[str] = None
    store_name: str
    created_at: datetime


class CartOut(BaseModel):
    items: List[CartLineOut]
    total: Decimal
    count: int


class MessageOut(BaseModel):
    message: str


# ----- orders -----

class ShippingAddress(BaseModel):
    full_name: str = Field(..., min_length=1)
    line1: str = Field(..., min_length=1)
    line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: Optional[str] = None


class CheckoutIn(BaseModel):
    shipping_address: ShippingAddress


class OrderStatusIn(BaseModel):
    status: OrderStatus


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    store_id: int
    store_name: str
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    shipping_address: Optional[Dict[str, Any]] = None
    created_at: datetime
    customer_name: Optional[str] = None
    item_count: int
    items: List[OrderItemOut]


class OrderEnvelope(BaseModel):
    order: OrderOut


class OrderPlacedOut(BaseModel):
    message: str
    order: OrderOut


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


# ----- reviews -----

class ReviewIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewOut(BaseModel):
    id: int
    user_id: int
    product_id: Optional[int] = None
    store_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    reviewer_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _single_target(self):
        if (self.product_id is None) == (self.store_id is None):
            raise ValueError("review must target exactly one of product or store")
        return self


class ReviewListOut(BaseModel):
    reviews: List[ReviewOut]
    pagination: Pagination


# ----- notifications -----

class NotificationOut(BaseModel):
    id: int
    user_id: int
    message: str
    type: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListOut(BaseModel):
    notifications: List[NotificationOut]
    unread: int
    pagination: Pagination
