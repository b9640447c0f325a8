# leadcrm/core/bootstrap.py
"""
First-run setup: create the tables and, when the database has no users yet,
the first admin account from ADMIN_EMAIL / ADMIN_PASSWORD.
"""
import logging

from sqlmodel import Session, select

from ..db.engine_sync import create_sync_db_and_tables, sync_engine
from ..models.user import User
from .config import get_settings
from .users import password_helper

logger = logging.getLogger(__name__)


def bootstrap_system() -> None:
    """Idempotent: does nothing to a database that already has users."""
    create_sync_db_and_tables()

    settings = get_settings()
    with Session(sync_engine) as session:
        if session.exec(select(User)).first():
            logger.info("[Bootstrap] Users found, skipping admin creation.")
            return

        if not (settings.admin_email and settings.admin_password):
            logger.warning("[Bootstrap] ADMIN_EMAIL or ADMIN_PASSWORD not set, no admin account created.")
            return

        create_admin(session, settings.admin_email, settings.admin_username, settings.admin_password)


def create_admin(session: Session, email: str, username: str, password: str) -> User:
    try:
        admin = User(
            email=email,
            username=username,
            hashed_password=password_helper.hash(password),
            role="admin",
            status="active",
            is_active=True,
            is_superuser=True,
            is_verified=True,
        )
        session.add(admin)
        session.commit()
        session.refresh(admin)
    except Exception as e:
        logger.error(f"[Bootstrap] Failed to create admin user: {e}")
        session.rollback()
        raise
    logger.info(f"[Bootstrap] Created first admin user: {email}")
    return admin
