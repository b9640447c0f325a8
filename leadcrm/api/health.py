from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session

from ..db.engine_sync import get_sync_session

router = APIRouter()


@router.get("/health", tags=["System"])
def get_system_health(session: Session = Depends(get_sync_session)):
    """Returns the API status and whether the database answers."""
    try:
        session.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        database = f"error: {e}"
    return {"status": "ok" if database == "ok" else "degraded", "database": database}
