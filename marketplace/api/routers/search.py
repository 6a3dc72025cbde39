# marketplace/api/routers/search.py
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.data.database import get_db
from marketplace.domain.schemas import SearchResultOut
from marketplace.services.search_service import SearchService

router = APIRouter(tags=["search"])


@router.get("/search", response_model=SearchResultOut)
def search(
    q: str | None = Query(None),
    category: str | None = Query(None),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    sort_by: Literal["newest", "price_asc", "price_desc", "rating"] = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return SearchService(db).search_products(q, category, min_price, max_price, sort_by, page, limit)
