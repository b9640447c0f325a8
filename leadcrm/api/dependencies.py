# leadcrm/api/dependencies.py
"""
Ownership checks shared by the domain routers. Admins reach every client;
a client user only reaches the client it owns.
"""
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from ..models import Client, Lead
from ..models.user import User


def ensure_client_access(session: Session, client_id: uuid.UUID, user: User) -> Client:
    client = session.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=404, detail=f"Client {client_id} not found.")
    if user.role != "admin" and client.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this client.")
    return client


def ensure_lead_access(session: Session, lead_id: uuid.UUID, user: User) -> Lead:
    lead = session.get(Lead, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    ensure_client_access(session, lead.client_id, user)
    return lead
