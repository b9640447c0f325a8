# leadcrm/db/engine_sync.py
"""
Synchronous engine used by the service layer and every domain router.
SQLite runs in WAL mode to avoid "database is locked" under concurrent requests.
"""
from typing import Generator

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from ..core.config import get_settings

settings = get_settings()

_connect_args = {"check_same_thread": False} if settings.is_sqlite else {}
sync_engine = create_engine(settings.sync_database_url, echo=False, connect_args=_connect_args)


if settings.is_sqlite:
    @event.listens_for(sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.close()


def get_sync_session() -> Generator[Session, None, None]:
    """
    Dependency for SYNC SQLModel session injection.
    Every domain router receives its services through this session.
    """
    with Session(sync_engine) as session:
        yield session


def create_sync_db_and_tables():
    """Create all tables with the sync engine."""
    import leadcrm.models  # noqa: F401

    SQLModel.metadata.create_all(sync_engine)
