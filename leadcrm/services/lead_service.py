# leadcrm/services/lead_service.py
"""
Lead service: leads, their notes, and the new-lead notifications.
"""
import logging
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, col, select

from ..models import Appointment, Client, Lead, Note, Notification, Quote, QuoteItem, User
from ..models.lead import HISTORICAL_FLAG_KEY, LEAD_STATUSES, WON_STATUS
from .revenue_calculator import to_datetime

logger = logging.getLogger(__name__)

LEAD_UPDATABLE_FIELDS = ("data", "service", "status", "value", "created_at")
LEAD_NAME_KEYS = ("name", "full_name", "nome")


def lead_display_name(data: Dict[str, str]) -> str:
    for key in LEAD_NAME_KEYS:
        if data.get(key):
            return data[key]
    return "N/A"


def purge_leads(session: Session, lead_ids: List[uuid.UUID]) -> None:
    """
    Delete leads with everything hanging off them (notes, appointments,
    quotes and their items, lead notifications). Does not commit.
    """
    if not lead_ids:
        return
    quote_ids = list(session.exec(select(Quote.id).where(col(Quote.lead_id).in_(lead_ids))).all())
    if quote_ids:
        session.execute(delete(QuoteItem).where(col(QuoteItem.quote_id).in_(quote_ids)))
        session.execute(delete(Quote).where(col(Quote.id).in_(quote_ids)))
    session.execute(delete(Note).where(col(Note.lead_id).in_(lead_ids)))
    session.execute(delete(Appointment).where(col(Appointment.lead_id).in_(lead_ids)))
    session.execute(delete(Notification).where(col(Notification.lead_id).in_(lead_ids)))
    session.execute(delete(Lead).where(col(Lead.id).in_(lead_ids)))


class LeadService:
    """
    Service layer for Lead and Note operations using SQLModel ORM.
    Leads are returned as dicts carrying their `notes` and `appointments`.
    """

    def __init__(self, session: Session):
        self.session = session

    # --- Serialization ---
    def _with_relations(self, leads: List[Lead]) -> List[Dict[str, Any]]:
        """Attach notes and appointments to each lead, two queries for the whole list."""
        lead_ids = [lead.id for lead in leads]
        notes_by_lead: Dict[uuid.UUID, list] = defaultdict(list)
        appointments_by_lead: Dict[uuid.UUID, list] = defaultdict(list)

        if lead_ids:
            notes = self.session.exec(
                select(Note).where(col(Note.lead_id).in_(lead_ids)).order_by(Note.created_at)
            ).all()
            for note in notes:
                notes_by_lead[note.lead_id].append(note.model_dump())

            appointments = self.session.exec(
                select(Appointment)
                .where(col(Appointment.lead_id).in_(lead_ids))
                .order_by(Appointment.appointment_date, Appointment.appointment_time)
            ).all()
            for appointment in appointments:
                appointments_by_lead[appointment.lead_id].append(appointment.model_dump())

        result = []
        for lead in leads:
            lead_dict = lead.model_dump()
            lead_dict["notes"] = notes_by_lead[lead.id]
            lead_dict["appointments"] = appointments_by_lead[lead.id]
            result.append(lead_dict)
        return result

    def _get_lead_model(self, lead_id: uuid.UUID) -> Lead:
        lead = self.session.get(Lead, lead_id)
        if not lead:
            raise FileNotFoundError(f"Lead {lead_id} not found.")
        return lead

    # --- Queries ---
    def get_lead(self, lead_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        lead = self.session.get(Lead, lead_id)
        if not lead:
            return None
        return self._with_relations([lead])[0]

    def get_lead_models_for_client(self, client_id: uuid.UUID) -> List[Lead]:
        statement = select(Lead).where(Lead.client_id == client_id).order_by(col(Lead.created_at).desc())
        return list(self.session.exec(statement).all())

    def get_leads_for_client(self, client_id: uuid.UUID) -> List[Dict[str, Any]]:
        return self._with_relations(self.get_lead_models_for_client(client_id))

    def get_leads_for_clients(self, client_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, List[Dict[str, Any]]]:
        """Leads of several clients, newest first, grouped by client id."""
        client_ids = list(client_ids)
        grouped: Dict[uuid.UUID, List[Dict[str, Any]]] = {cid: [] for cid in client_ids}
        if not client_ids:
            return grouped
        leads = self.session.exec(
            select(Lead).where(col(Lead.client_id).in_(client_ids)).order_by(col(Lead.created_at).desc())
        ).all()
        for lead_dict in self._with_relations(list(leads)):
            grouped[lead_dict["client_id"]].append(lead_dict)
        return grouped

    # --- Lead mutations ---
    def add_lead(
        self,
        client_id: uuid.UUID,
        data: Dict[str, str],
        service: Optional[str] = None,
        status: Optional[str] = None,
        value: Optional[float] = None,
        created_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Create a lead, then notify the client's user and every admin.
        The notification step never makes this call fail.
        """
        client = self.session.get(Client, client_id)
        if not client:
            raise FileNotFoundError(f"Client {client_id} not found.")

        lead = Lead(client_id=client_id, data=dict(data), service=service, status=status or "New", value=value)
        if created_at is not None:
            lead.created_at = to_datetime(created_at)

        try:
            self.session.add(lead)
            self.session.commit()
            self.session.refresh(lead)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        result = self._with_relations([lead])[0]
        self._notify_new_lead(lead, client)
        return result

    def _notify_new_lead(self, lead: Lead, client: Client) -> None:
        try:
            name = lead_display_name(lead.data or {})
            admin_ids = self.session.exec(select(User.id).where(User.role == "admin")).all()

            rows = [
                Notification(
                    user_id=client.user_id,
                    client_id=client.id,
                    lead_id=lead.id,
                    title="New lead received!",
                    message=f"You received a new lead: '{name}'. Open it to see the details.",
                )
            ]
            for admin_id in admin_ids:
                rows.append(
                    Notification(
                        user_id=admin_id,
                        client_id=client.id,
                        lead_id=lead.id,
                        title=f"New lead for {client.name}",
                        message=f"A new lead '{name}' was registered for client '{client.name}'.",
                    )
                )
            self.session.add_all(rows)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to create notifications for lead {lead.id}: {e}")

    def add_historical_lead(
        self,
        client_id: uuid.UUID,
        original_data: Dict[str, str],
        service: str,
        value: float,
        date: Any,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Record a lead that was already won before it entered the CRM."""
        if not self.session.get(Client, client_id):
            raise FileNotFoundError(f"Client {client_id} not found.")

        lead = Lead(
            client_id=client_id,
            data={**original_data, HISTORICAL_FLAG_KEY: "true"},
            service=service,
            status=WON_STATUS,
            value=value,
            created_at=to_datetime(date),
        )
        try:
            self.session.add(lead)
            self.session.commit()
            self.session.refresh(lead)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        if notes and notes.strip():
            try:
                self.session.add(Note(lead_id=lead.id, content=notes))
                self.session.commit()
            except Exception as e:
                self.session.rollback()
                logger.error(f"Could not add note to historical lead {lead.id}: {e}")

        return self._with_relations([lead])[0]

    def update_historical_lead(
        self,
        lead_id: uuid.UUID,
        service: str,
        value: float,
        date: Any,
        notes: Optional[str] = None,
        existing_note_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, Any]:
        """
        Update a historical lead. `notes`: None leaves notes alone, blank text
        deletes the existing note, other text updates or creates it.
        """
        lead = self._get_lead_model(lead_id)
        lead.service = service
        lead.value = value
        lead.created_at = to_datetime(date)
        try:
            self.session.add(lead)
            self.session.commit()
            self.session.refresh(lead)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        if notes is not None:
            try:
                existing = self.session.get(Note, existing_note_id) if existing_note_id else None
                if notes.strip():
                    if existing:
                        existing.content = notes
                        self.session.add(existing)
                    else:
                        self.session.add(Note(lead_id=lead.id, content=notes))
                elif existing:
                    self.session.delete(existing)
                self.session.commit()
            except Exception as e:
                self.session.rollback()
                logger.warning(f"Could not update note of historical lead {lead.id}: {e}")

        return self._with_relations([lead])[0]

    def update_lead(self, lead_id: uuid.UUID, updates: Dict[str, Any]) -> Dict[str, Any]:
        if not updates:
            raise ValueError("No fields to update provided.")
        if "status" in updates and updates["status"] not in LEAD_STATUSES:
            raise ValueError(f"Invalid lead status: {updates['status']}")

        lead = self._get_lead_model(lead_id)
        for key, value in updates.items():
            if key not in LEAD_UPDATABLE_FIELDS:
                continue
            if key == "data":
                value = dict(value or {})
            elif key == "created_at":
                value = to_datetime(value)
            setattr(lead, key, value)

        try:
            self.session.add(lead)
            self.session.commit()
            self.session.refresh(lead)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")
        return self._with_relations([lead])[0]

    def delete_lead(self, lead_id: uuid.UUID) -> None:
        self._get_lead_model(lead_id)
        self.delete_leads([lead_id])

    def delete_leads(self, lead_ids: Iterable[uuid.UUID]) -> None:
        lead_ids = list(lead_ids)
        if not lead_ids:
            return
        try:
            purge_leads(self.session, lead_ids)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

    # --- Notes ---
    def add_note(self, lead_id: uuid.UUID, content: str) -> Dict[str, Any]:
        """Add a note and return the refreshed lead."""
        lead = self._get_lead_model(lead_id)
        try:
            self.session.add(Note(lead_id=lead_id, content=content))
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")
        return self._with_relations([lead])[0]

    def update_note(self, note_id: uuid.UUID, content: str) -> Note:
        note = self.session.get(Note, note_id)
        if not note:
            raise FileNotFoundError(f"Note {note_id} not found.")
        note.content = content
        self.session.add(note)
        self.session.commit()
        self.session.refresh(note)
        return note

    def delete_note(self, note_id: uuid.UUID) -> None:
        note = self.session.get(Note, note_id)
        if not note:
            raise FileNotFoundError(f"Note {note_id} not found.")
        self.session.delete(note)
        self.session.commit()
