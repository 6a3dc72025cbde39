# marketplace/services/notification_service.py
import uuid
from decimal import Decimal
from typing import Any, Dict

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.celery_worker import celery_app
from marketplace.data.database import SessionLocal
from marketplace.data.models.notification import NotificationModel
from marketplace.domain.errors import NotFoundError
from marketplace.repos.notification_repo import NotificationRepo
from marketplace.services.lock_service import DeliveryLockService, build_delivery_lock_service
from marketplace.utils.pagination import normalize, paginate
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Notification sink, fire-and-forget.
    Enqueues a Celery task, never raises back into the caller's transaction.
    """

    @staticmethod
    def notify(user_id: int, message: str, type: str = "general", dedup_key: str | None = None) -> bool:
        try:
            deliver_notification_task.delay(user_id, message, type, dedup_key)
            return True
        except Exception:
            # best-effort: the purchase / status change is already committed
            logger.exception(f"Failed to enqueue notification {dedup_key or type} for user {user_id}")
            return False

    @staticmethod
    def notify_seller_new_order(seller_id: int, order_id: int, store_id: int, store_name: str, amount: Decimal) -> bool:
        return NotificationService.notify(
            seller_id,
            f"New order #{order_id} received for {store_name}! Amount: ${amount}",
            "new_order",
            dedup_key=f"new_order:{order_id}:{store_id}",
        )

    @staticmethod
    def notify_order_status(customer_id: int, order_id: int, status: str) -> bool:
        #one event id per real transition, redelivery of that event stays deduplicated
        event_id = uuid.uuid4().hex
        return NotificationService.notify(
            customer_id,
            f"Your order #{order_id} status changed to: {status.upper()}",
            "order_status",
            dedup_key=f"order_status:{order_id}:{event_id}",
        )


def deliver_notification(
    db: Session,
    user_id: int,
    message: str,
    type: str = "general",
    dedup_key: str | None = None,
    lock_service: DeliveryLockService | None = None,
) -> NotificationModel | None:
    """
    Writes the inbox row. Idempotent per dedup_key:
    an existing row (or a claim held by another delivery) means nothing is written.
    """
    repo = NotificationRepo(db)
    token = uuid.uuid4().hex

    if dedup_key:
        existing = repo.get_by_dedup_key(dedup_key)
        if existing:
            logger.info(f"Notification {dedup_key} already delivered (id={existing.id})")
            return existing

        if lock_service is not None:
            try:
                claimed = lock_service.acquire_delivery_lock(dedup_key, token)
            except RedisError as e:
                # redis down -> the unique key in the db is still the final guard
                logger.warning(f"Delivery lock unavailable for {dedup_key}: {e}")
                lock_service = None
                claimed = True

            if not claimed:
                logger.info(f"Notification {dedup_key} is being delivered by another worker")
                return None

    try:
        notification = repo.add(
            NotificationModel(
                user_id=user_id,
                message=message,
                type=type,
                dedup_key=dedup_key,
            )
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = repo.get_by_dedup_key(dedup_key) if dedup_key else None
        if existing:
            logger.info(f"Notification {dedup_key} delivered concurrently (id={existing.id})")
            return existing
        _release(lock_service, dedup_key, token)
        raise
    except Exception:
        db.rollback()
        _release(lock_service, dedup_key, token)
        raise

    logger.info(f"[NOTIFICATION] user {user_id}: {type} {dedup_key or ''}".rstrip())
    return notification


def _release(lock_service: DeliveryLockService | None, dedup_key: str | None, token: str) -> None:
    if lock_service is None or not dedup_key:
        return
    try:
        lock_service.release_delivery_lock(dedup_key, token)
    except RedisError as e:
        logger.warning(f"Failed to release delivery lock for {dedup_key}: {e}")


_lock_service: DeliveryLockService | None = None


def _get_lock_service() -> DeliveryLockService | None:
    global _lock_service
    if _lock_service is None:
        _lock_service = build_delivery_lock_service()
    return _lock_service


@celery_app.task(name="marketplace.services.notification_service.deliver_notification_task")
def deliver_notification_task(user_id: int, message: str, type: str = "general", dedup_key: str | None = None):
    """Celery task - one inbox row per event."""
    db = SessionLocal()
    try:
        notification = deliver_notification(
            db,
            user_id=user_id,
            message=message,
            type=type,
            dedup_key=dedup_key,
            lock_service=_get_lock_service(),
        )
    finally:
        db.close()

    return {
        "user_id": user_id,
        "dedup_key": dedup_key,
        "status": "sent" if notification is not None else "skipped",
    }


class NotificationInboxService:
    """Recipient-side reads and read-marks."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepo(db)

    def list_notifications(self, user_id: int, page: int | None = None, limit: int | None = None) -> Dict[str, Any]:
        page, limit = normalize(page, limit, default_limit=20)
        rows, pagination = paginate(self.repo.user_query(user_id), page, limit)
        return {
            "notifications": rows,
            "unread": self.repo.unread_count(user_id),
            "pagination": pagination,
        }

    def mark_read(self, user_id: int, notification_id: int) -> NotificationModel:
        notification = self.repo.get_owned(notification_id, user_id)
        if not notification:
            raise NotFoundError("Notification not found")

        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: int) -> Dict[str, str]:
        updated = self.repo.mark_all_read(user_id)
        self.db.commit()
        logger.info(f"Marked {updated} notifications read for user {user_id}")
        return {"message": "All notifications marked as read"}
