# marketplace/api/routers/products.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import require_seller
from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.schemas import (
    ProductCreate,
    ProductDeleteOut,
    ProductDetailOut,
    ProductListOut,
    ProductOut,
    ProductUpdate,
)
from marketplace.services.product_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductListOut)
def list_products(
    store_id: int | None = Query(None),
    category: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return CatalogService(db).list_products(store_id, category, page, limit)


@router.get("/{product_id}", response_model=ProductDetailOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_product(product_id)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return CatalogService(db).create_product(user.id, payload.model_dump())


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return CatalogService(db).update_product(user.id, product_id, payload.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=ProductDeleteOut)
def delete_product(
    product_id: int,
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return CatalogService(db).delete_product(user.id, product_id)
