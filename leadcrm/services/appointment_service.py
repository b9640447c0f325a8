# leadcrm/services/appointment_service.py
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlmodel import Session, col, select

from ..models import Appointment, Client, Lead, Note, Quote
from .base_service import BaseCRUDService
from .lead_service import LeadService

APPOINTMENT_FIELDS = ("title", "appointment_date", "appointment_time", "duration_minutes", "notes")


class AppointmentService(BaseCRUDService[Appointment]):
    def __init__(self, session: Session):
        super().__init__(session, Appointment)
        self.lead_service = LeadService(session)

    def add_appointment(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Book an appointment on a lead and return the refreshed lead."""
        lead = self.session.get(Lead, data.get("lead_id"))
        if not lead:
            raise FileNotFoundError(f"Lead {data.get('lead_id')} not found.")

        payload = {k: v for k, v in data.items() if k in APPOINTMENT_FIELDS}
        self.create({**payload, "lead_id": lead.id, "client_id": data.get("client_id") or lead.client_id})
        return self.lead_service.get_lead(lead.id)

    def add_general_appointment(self, data: Dict[str, Any]) -> Appointment:
        """An appointment that is not tied to any lead or client."""
        payload = {k: v for k, v in data.items() if k in APPOINTMENT_FIELDS}
        return self.create(payload)

    def update_appointment(self, appointment_id: uuid.UUID, updates: Dict[str, Any]) -> Appointment:
        payload = {k: v for k, v in updates.items() if k in APPOINTMENT_FIELDS}
        return self.update(appointment_id, payload)

    def get_appointments_for_calendar(self, client_id: Optional[uuid.UUID] = None) -> List[Dict[str, Any]]:
        """
        Every appointment, newest first, with its lead (notes and quotes
        included) and the owning client's name.
        """
        statement = select(Appointment).order_by(
            col(Appointment.appointment_date).desc(), col(Appointment.appointment_time).desc()
        )
        if client_id is not None:
            statement = statement.where(Appointment.client_id == client_id)
        appointments = list(self.session.exec(statement).all())

        lead_ids = {a.lead_id for a in appointments if a.lead_id}
        client_ids = {a.client_id for a in appointments if a.client_id}

        leads: Dict[uuid.UUID, Dict[str, Any]] = {}
        if lead_ids:
            notes_by_lead = defaultdict(list)
            for note in self.session.exec(select(Note).where(col(Note.lead_id).in_(lead_ids))).all():
                notes_by_lead[note.lead_id].append(note.model_dump())
            quotes_by_lead = defaultdict(list)
            for quote in self.session.exec(select(Quote).where(col(Quote.lead_id).in_(lead_ids))).all():
                quotes_by_lead[quote.lead_id].append(quote.model_dump())
            for lead in self.session.exec(select(Lead).where(col(Lead.id).in_(lead_ids))).all():
                lead_dict = lead.model_dump()
                lead_dict["notes"] = notes_by_lead[lead.id]
                lead_dict["quotes"] = quotes_by_lead[lead.id]
                leads[lead.id] = lead_dict

        clients: Dict[uuid.UUID, Dict[str, Any]] = {}
        if client_ids:
            for client in self.session.exec(select(Client).where(col(Client.id).in_(client_ids))).all():
                clients[client.id] = {"name": client.name, "user_id": client.user_id}

        result = []
        for appointment in appointments:
            item = appointment.model_dump()
            item["lead"] = leads.get(appointment.lead_id)
            item["client"] = clients.get(appointment.client_id)
            result.append(item)
        return result

    def delete_appointment(self, appointment_id: uuid.UUID) -> None:
        self.delete(appointment_id)
