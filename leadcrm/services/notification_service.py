# leadcrm/services/notification_service.py
"""
Notification service.

A bulk send writes one row per recipient, all sharing a batch_id and a
created_at. Sent notifications are listed and edited per batch. Rows that
predate batch ids (batch_id NULL) fall back to the key
(title, message, minute of created_at).
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Hashable, Iterable, List, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, col, select

from ..models import Notification

logger = logging.getLogger(__name__)


def minute_of(moment: datetime) -> datetime:
    """Truncate a timestamp to its clock minute."""
    return moment.replace(second=0, microsecond=0)


def batch_key(notification: Notification) -> Hashable:
    if notification.batch_id is not None:
        return ("batch", notification.batch_id)
    return ("legacy", notification.title, notification.message, minute_of(notification.created_at))


def group_into_batches(notifications: Iterable[Notification]) -> List[Dict[str, Any]]:
    """
    Collapse rows into batches, keeping input order. The first row seen for
    a batch is its representative.
    """
    batches: Dict[Hashable, Dict[str, Any]] = {}
    for notification in notifications:
        key = batch_key(notification)
        batch = batches.get(key)
        if batch is None:
            batch = notification.model_dump()
            batch["recipient_ids"] = []
            batches[key] = batch
        if notification.user_id not in batch["recipient_ids"]:
            batch["recipient_ids"].append(notification.user_id)
    for batch in batches.values():
        batch["recipient_count"] = len(batch["recipient_ids"])
    return list(batches.values())


class NotificationService:
    def __init__(self, session: Session):
        self.session = session

    def get_notifications_for_user(self, user_id: uuid.UUID, limit: Optional[int] = None) -> List[Notification]:
        statement = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(col(Notification.created_at).desc())
        )
        if limit:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def get_notification(self, notification_id: uuid.UUID) -> Notification:
        notification = self.session.get(Notification, notification_id)
        if not notification:
            raise FileNotFoundError(f"Notification {notification_id} not found.")
        return notification

    def mark_as_read(self, notification_id: uuid.UUID) -> None:
        notification = self.get_notification(notification_id)
        notification.read = True
        self.session.add(notification)
        self.session.commit()

    def mark_all_as_read(self, user_id: uuid.UUID) -> int:
        result = self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, col(Notification.read).is_(False))
            .values(read=True)
        )
        self.session.commit()
        return result.rowcount

    def _insert_batch(self, user_ids: List[uuid.UUID], title: str, message: str) -> List[Notification]:
        """Stage one row per recipient with a shared batch id and timestamp. Does not commit."""
        batch_id = uuid.uuid4()
        sent_at = datetime.utcnow()
        rows = [
            Notification(user_id=user_id, title=title, message=message, read=False, batch_id=batch_id, created_at=sent_at)
            for user_id in user_ids
        ]
        self.session.add_all(rows)
        return rows

    def send_custom_notification(self, user_ids: List[uuid.UUID], title: str, message: str) -> Dict[str, Any]:
        if not user_ids or not (message or "").strip() or not (title or "").strip():
            raise ValueError("User IDs, title, and message are required.")

        recipients = list(dict.fromkeys(user_ids))
        try:
            rows = self._insert_batch(recipients, title.strip(), message.strip())
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        logger.info(f"Notification '{title.strip()}' sent to {len(rows)} recipient(s)")
        return group_into_batches(rows)[0]

    def get_sent_notifications(self) -> List[Dict[str, Any]]:
        """Manually sent notifications (no lead attached), newest batch first."""
        statement = (
            select(Notification)
            .where(col(Notification.lead_id).is_(None), col(Notification.title).is_not(None))
            .order_by(col(Notification.created_at).desc())
        )
        return group_into_batches(self.session.exec(statement).all())

    def _resolve_batch(self, notification_id: uuid.UUID) -> List[Notification]:
        """Every row that belongs to the same sent batch as `notification_id`."""
        origin = self.get_notification(notification_id)
        if origin.lead_id is not None:
            raise ValueError("Only manually sent notifications can be edited as a batch.")

        if origin.batch_id is not None:
            statement = select(Notification).where(Notification.batch_id == origin.batch_id)
        else:
            start = minute_of(origin.created_at)
            statement = select(Notification).where(
                col(Notification.batch_id).is_(None),
                col(Notification.lead_id).is_(None),
                Notification.title == origin.title,
                Notification.message == origin.message,
                Notification.created_at >= start,
                Notification.created_at < start + timedelta(minutes=1),
            )
        return list(self.session.exec(statement.order_by(Notification.created_at)).all())

    def update_sent_notification(self, notification_id: uuid.UUID, title: str, message: str) -> Optional[Dict[str, Any]]:
        """
        Replace the text of a sent batch: the batch is deleted and re-sent to
        the same recipients in a single transaction.
        """
        if not (title or "").strip() or not (message or "").strip():
            raise ValueError("Title and message are required.")

        rows = self._resolve_batch(notification_id)
        if not rows:
            logger.warning("No notifications found for the group to update.")
            return None

        recipients = list(dict.fromkeys(row.user_id for row in rows))
        try:
            self.session.execute(delete(Notification).where(col(Notification.id).in_([row.id for row in rows])))
            new_rows = self._insert_batch(recipients, title.strip(), message.strip())
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Could not replace the notification batch: {e}")

        return group_into_batches(new_rows)[0]

    def delete_sent_notification(self, notification_id: uuid.UUID) -> int:
        rows = self._resolve_batch(notification_id)
        if not rows:
            return 0
        try:
            result = self.session.execute(
                delete(Notification).where(col(Notification.id).in_([row.id for row in rows]))
            )
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")
        return result.rowcount
