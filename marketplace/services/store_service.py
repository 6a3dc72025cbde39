# marketplace/services/store_service.py
from datetime import datetime
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.store import StoreModel
from marketplace.domain.errors import ConflictError, NotFoundError, ValidationError
from marketplace.repos.store_repo import StoreRepo
from marketplace.repos.user_repo import UserRepo
from marketplace.utils.pagination import normalize, paginate
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class StoreService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = StoreRepo(db)
        self.users = UserRepo(db)

    def _dashboard(self, store: StoreModel) -> Dict[str, Any]:
        return {
            "id": store.id,
            "seller_id": store.seller_id,
            "name": store.name,
            "description": store.description,
            "average_rating": store.average_rating,
            "created_at": store.created_at,
            "seller_name": store.seller.full_name,
            **self.repo.dashboard_stats(store.id),
        }

    #queries
    def get_store(self, store_id: int) -> Dict[str, Any]:
        store = self.repo.get_store(store_id)
        if not store:
            raise NotFoundError("Store not found")
        return self._dashboard(store)

    def get_my_store(self, seller_id: int) -> Dict[str, Any]:
        store = self.repo.get_by_seller(seller_id)
        if not store:
            raise NotFoundError("You don't have a store yet")
        return self._dashboard(store)

    def list_stores(self, page: int | None = None, limit: int | None = None) -> Dict[str, Any]:
        page, limit = normalize(page, limit)
        rows, pagination = paginate(self.repo.list_query(), page, limit)
        return {"stores": [self._dashboard(s) for s in rows], "pagination": pagination}

    def store_revenue(
        self,
        seller_id: int,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Dict[str, Any]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date cannot be after end_date")

        store = self.repo.get_by_seller(seller_id)
        if not store:
            raise NotFoundError("You don't have a store yet")
        return self.repo.revenue(store.id, start_date, end_date)

    #commands
    def create_store(self, seller_id: int, name: str, description: str | None = None) -> Dict[str, Any]:
        try:
            # seller row lock -> two parallel create_store calls serialize here
            seller = self.users.get_user_for_update(seller_id)
            if not seller:
                raise NotFoundError("User not found")

            if self.repo.get_by_seller(seller_id):
                raise ConflictError("You already have a store")

            if self.repo.get_by_name(name):
                raise ConflictError("Store name already taken")

            store = self.repo.add(StoreModel(seller_id=seller_id, name=name.strip(), description=description))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Store name already taken")
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Store {store.id} created for seller {seller_id}")
        self.db.refresh(store)
        return self._dashboard(store)

    def update_store(self, seller_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            store = self.repo.get_by_seller(seller_id)
            if not store:
                raise NotFoundError("You don't have a store yet")

            name = data.get("name")
            if name is not None:
                if self.repo.get_by_name(name, exclude_id=store.id):
                    raise ConflictError("Store name already taken")
                store.name = name.strip()

            if data.get("description") is not None:
                store.description = data["description"]

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Store name already taken")
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Store {store.id} updated")
        self.db.refresh(store)
        return self._dashboard(store)
