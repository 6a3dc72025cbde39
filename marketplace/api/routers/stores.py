# marketplace/api/routers/stores.py
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import require_seller
from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.schemas import (
    RevenueOut,
    StoreCreate,
    StoreDashboardOut,
    StoreListOut,
    StoreUpdate,
)
from marketplace.services.store_service import StoreService

router = APIRouter(prefix="/stores", tags=["stores"])


@router.post("", response_model=StoreDashboardOut, status_code=201)
def create_store(
    payload: StoreCreate,
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return StoreService(db).create_store(user.id, payload.name, payload.description)


@router.get("", response_model=StoreListOut)
def list_stores(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return StoreService(db).list_stores(page, limit)


# /me routes before /{store_id}
@router.get("/me", response_model=StoreDashboardOut)
def my_store(user: UserModel = Depends(require_seller), db: Session = Depends(get_db)):
    return StoreService(db).get_my_store(user.id)


@router.patch("/me", response_model=StoreDashboardOut)
def update_my_store(
    payload: StoreUpdate,
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return StoreService(db).update_store(user.id, payload.model_dump(exclude_unset=True))


@router.get("/me/revenue", response_model=RevenueOut)
def my_revenue(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    user: UserModel = Depends(require_seller),
    db: Session = Depends(get_db),
):
    return StoreService(db).store_revenue(user.id, start_date, end_date)


@router.get("/{store_id}", response_model=StoreDashboardOut)
def get_store(store_id: int, db: Session = Depends(get_db)):
    return StoreService(db).get_store(store_id)
