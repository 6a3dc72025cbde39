# marketplace/repos/notification_repo.py
from sqlalchemy.orm import Session, Query

from marketplace.data.models.notification import NotificationModel


class NotificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: NotificationModel) -> NotificationModel:
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_by_dedup_key(self, dedup_key: str) -> NotificationModel | None:
        return (
            self.db.query(NotificationModel)
            .filter(NotificationModel.dedup_key == dedup_key)
            .first()
        )

    def get_owned(self, notification_id: int, user_id: int) -> NotificationModel | None:
        return (
            self.db.query(NotificationModel)
            .filter(NotificationModel.id == notification_id, NotificationModel.user_id == user_id)
            .first()
        )

    def user_query(self, user_id: int) -> Query:
        return (
            self.db.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .count()
        )

    def mark_all_read(self, user_id: int) -> int:
        return (
            self.db.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .update({NotificationModel.is_read: True}, synchronize_session=False)
        )
