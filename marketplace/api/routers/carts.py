# marketplace/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketplace.api.deps import get_current_user
from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.schemas import (
    CartItemOut,
    CartOut,
    ItemIn,
    ItemQuantityIn,
    MessageOut,
)
from marketplace.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).get_cart(user.id)


@router.post("", response_model=CartItemOut, status_code=201)
def add_item(
    payload: ItemIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).add_item(user.id, payload.product_id, payload.quantity)


@router.put("/{item_id}", response_model=CartItemOut | MessageOut)
def update_item(
    item_id: int,
    payload: ItemQuantityIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = get_service(db).update_item(user.id, item_id, payload.quantity)
    if item is None:
        return MessageOut(message="Item removed from cart")
    return CartItemOut.model_validate(item)


# literal path first, otherwise "clear" is parsed as an item id
@router.delete("/clear", response_model=MessageOut)
def clear_cart(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).clear(user.id)


@router.delete("/{item_id}", response_model=MessageOut)
def remove_item(
    item_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).remove_item(user.id, item_id)
