# marketplace/api/routers/orders.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import get_current_user, require_seller
from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.schemas import (
    CheckoutIn,
    OrderEnvelope,
    OrderListOut,
    OrderPlacedOut,
    OrderStatus,
    OrderStatusIn,
)
from marketplace.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/checkout", response_model=OrderPlacedOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Turns the caller's cart into an order.
    Sellers are notified asynchronously after the commit.
    """
    order = get_service(db).checkout(user.id, payload.shipping_address.model_dump())
    return {"message": "Order placed successfully", "order": order}


@router.get("", response_model=OrderListOut)
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).list_user_orders(user.id, page, limit)


@router.get("/seller/list", response_model=OrderListOut)
def list_seller_orders(
    status: OrderStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return get_service(db).list_seller_orders(user.id, status, page, limit)


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(
    order_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"order": get_service(db).get_order(order_id, user.id)}


@router.patch("/{order_id}/status", response_model=OrderPlacedOut)
def update_status(
    order_id: int,
    payload: OrderStatusIn,
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    order = get_service(db).update_order_status(user.id, order_id, payload.status)
    return {"message": "Order status updated", "order": order}
