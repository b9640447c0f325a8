# leadcrm/services/user_service.py
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_
from sqlmodel import Session, col, select

from ..models import AdSpend, Appointment, Client, Lead, MwsMonthlyRevenue, Notification, User
from ..models.user import USER_STATUSES
from .lead_service import purge_leads

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("username", "email", "phone", "role")


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_all_users(self) -> List[User]:
        return list(self.session.exec(select(User).order_by(User.username)).all())

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.session.get(User, user_id)

    def update_user(self, user_id: uuid.UUID, updates: Dict[str, Any]) -> User:
        db_user = self.session.get(User, user_id)
        if not db_user:
            raise FileNotFoundError("User not found.")

        username = updates.get("username")
        if username:
            taken = self.session.exec(
                select(User).where(User.username == username, User.id != user_id)
            ).first()
            if taken:
                raise ValueError("Username already exists.")

        for key, value in updates.items():
            if key in PROFILE_FIELDS and value is not None:
                setattr(db_user, key, value)

        try:
            self.session.add(db_user)
            self.session.commit()
            self.session.refresh(db_user)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")
        return db_user

    def update_user_status(self, user_id: uuid.UUID, status: str) -> User:
        if status not in USER_STATUSES:
            raise ValueError(f"Invalid status: {status}")
        db_user = self.session.get(User, user_id)
        if not db_user:
            raise FileNotFoundError("User not found.")
        db_user.status = status
        self.session.add(db_user)
        self.session.commit()
        self.session.refresh(db_user)
        logger.info(f"User {db_user.username} is now {status}")
        return db_user

    def delete_user_and_data(self, user_id: uuid.UUID) -> None:
        """
        Remove a user together with their client and every row owned by it,
        in one transaction. Nothing is deleted if any step fails.
        """
        db_user = self.session.get(User, user_id)
        if not db_user:
            raise FileNotFoundError("User not found.")

        try:
            client_ids = list(self.session.exec(select(Client.id).where(Client.user_id == user_id)).all())
            if client_ids:
                lead_ids = list(self.session.exec(select(Lead.id).where(col(Lead.client_id).in_(client_ids))).all())
                purge_leads(self.session, lead_ids)
                self.session.execute(delete(Appointment).where(col(Appointment.client_id).in_(client_ids)))
                self.session.execute(delete(AdSpend).where(col(AdSpend.client_id).in_(client_ids)))
                self.session.execute(
                    delete(MwsMonthlyRevenue).where(col(MwsMonthlyRevenue.client_id).in_(client_ids))
                )

            notification_filter = Notification.user_id == user_id
            if client_ids:
                notification_filter = or_(notification_filter, col(Notification.client_id).in_(client_ids))
            self.session.execute(delete(Notification).where(notification_filter))

            if client_ids:
                self.session.execute(delete(Client).where(col(Client.id).in_(client_ids)))
            self.session.execute(delete(User).where(User.id == user_id))
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Error deleting user and data: {e}")

        logger.info(f"Deleted user {user_id} and {len(client_ids)} client record(s)")
