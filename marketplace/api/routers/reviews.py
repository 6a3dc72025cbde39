# marketplace/api/routers/reviews.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import get_current_user
from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.schemas import MessageOut, ReviewIn, ReviewListOut, ReviewOut
from marketplace.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("/products/{product_id}", response_model=ReviewOut, status_code=201)
def review_product(
    product_id: int,
    payload: ReviewIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewService(db).add_product_review(user.id, product_id, payload.rating, payload.comment)


@router.get("/products/{product_id}", response_model=ReviewListOut)
def product_reviews(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return ReviewService(db).list_product_reviews(product_id, page, limit)


@router.post("/stores/{store_id}", response_model=ReviewOut, status_code=201)
def review_store(
    store_id: int,
    payload: ReviewIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewService(db).add_store_review(user.id, store_id, payload.rating, payload.comment)


@router.get("/stores/{store_id}", response_model=ReviewListOut)
def store_reviews(
    store_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return ReviewService(db).list_store_reviews(store_id, page, limit)


@router.delete("/{review_id}", response_model=MessageOut)
def delete_review(
    review_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewService(db).delete_review(user.id, review_id)
