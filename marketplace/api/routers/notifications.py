# marketplace/api/routers/notifications.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import get_current_user
from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.schemas import MessageOut, NotificationListOut, NotificationOut
from marketplace.services.notification_service import NotificationInboxService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListOut)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationInboxService(db).list_notifications(user.id, page, limit)


@router.patch("/read-all", response_model=MessageOut)
def mark_all_read(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return NotificationInboxService(db).mark_all_read(user.id)


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationInboxService(db).mark_read(user.id, notification_id)
