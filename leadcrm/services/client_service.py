# leadcrm/services/client_service.py
"""
Client service layer using SQLModel ORM.
Clients are returned as aggregates carrying their leads and ad spends.
"""
import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlmodel import Session, col, select

from ..models import AdSpend, Client, User
from .lead_service import LeadService
from .user_service import UserService

logger = logging.getLogger(__name__)

CLIENT_UPDATABLE_FIELDS = ("name", "services", "mws_fixed_fee", "mws_profit_percentage", "quote_webhook_url")


def _generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _needs_id(value: Optional[str]) -> bool:
    return not value or str(value).startswith("new_")


def assign_service_ids(services: List[Dict[str, Any]], regenerate: bool = False) -> List[Dict[str, Any]]:
    """
    Give every service and field a stable id. Existing ids are kept; entries
    without one (or with a temporary "new_" id) get a generated one.
    `regenerate` replaces every id, used when a client is created from a template.
    """
    result = []
    for service in services:
        service = dict(service)
        if regenerate or _needs_id(service.get("id")):
            service["id"] = _generate_id("service")
        fields = []
        for field in service.get("fields") or []:
            field = dict(field)
            if regenerate or _needs_id(field.get("id")):
                field["id"] = _generate_id("field")
            fields.append(field)
        service["fields"] = fields
        result.append(service)
    return result


class ClientService:
    """
    Service layer for Client operations using SQLModel ORM.
    """

    def __init__(self, session: Session):
        """
        Initialize with a SQLModel session.

        Args:
            session: SQLModel Session instance
        """
        self.session = session
        self.lead_service = LeadService(session)
        self.user_service = UserService(session)

    def _aggregate(self, clients: List[Client]) -> List[Dict[str, Any]]:
        """Merge leads and ad spends into each client, batched per table."""
        client_ids = [c.id for c in clients]
        leads_by_client = self.lead_service.get_leads_for_clients(client_ids)

        spends_by_client: Dict[uuid.UUID, list] = defaultdict(list)
        if client_ids:
            spends = self.session.exec(
                select(AdSpend).where(col(AdSpend.client_id).in_(client_ids)).order_by(col(AdSpend.date).desc())
            ).all()
            for spend in spends:
                spends_by_client[spend.client_id].append(spend.model_dump())

        result = []
        for client in clients:
            client_dict = client.model_dump()
            client_dict["leads"] = leads_by_client.get(client.id, [])
            client_dict["ad_spends"] = spends_by_client[client.id]
            result.append(client_dict)
        return result

    def _get_client_model(self, client_id: uuid.UUID) -> Client:
        client = self.session.get(Client, client_id)
        if not client:
            raise FileNotFoundError(f"Client {client_id} not found.")
        return client

    def get_all_clients(self) -> List[Dict[str, Any]]:
        clients = self.session.exec(select(Client).order_by(Client.name)).all()
        return self._aggregate(list(clients))

    def get_client_by_id(self, client_id: uuid.UUID) -> Dict[str, Any]:
        return self._aggregate([self._get_client_model(client_id)])[0]

    def get_client_by_user_id(self, user_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        """The client owned by a user, or None for a user with no client yet."""
        clients = self.session.exec(select(Client).where(Client.user_id == user_id)).all()
        if not clients:
            return None
        if len(clients) > 1:
            logger.warning(f"Found multiple client profiles for user {user_id}. Using the first one found.")
        return self._aggregate([clients[0]])[0]

    def get_available_users(self) -> List[User]:
        """Client-role users that are not linked to a client yet."""
        linked = select(Client.user_id)
        statement = (
            select(User)
            .where(User.role == "client", col(User.id).not_in(linked))
            .order_by(User.username)
        )
        return list(self.session.exec(statement).all())

    def create_client(
        self,
        name: str,
        user_id: uuid.UUID,
        services: Optional[List[Dict[str, Any]]] = None,
        quote_webhook_url: Optional[str] = None,
        mws_fixed_fee: float = 0.0,
        mws_profit_percentage: float = 0.0,
    ) -> Dict[str, Any]:
        """Create a client for a user. A user can own at most one client."""
        if not self.session.get(User, user_id):
            raise FileNotFoundError(f"User {user_id} not found.")

        existing = self.session.exec(select(Client.id).where(Client.user_id == user_id)).first()
        if existing:
            raise ValueError("This user is already associated with a client.")

        try:
            new_client = Client(
                name=name,
                user_id=user_id,
                services=assign_service_ids(services or [], regenerate=True),
                quote_webhook_url=quote_webhook_url,
                mws_fixed_fee=mws_fixed_fee,
                mws_profit_percentage=mws_profit_percentage,
            )
            self.session.add(new_client)
            self.session.commit()
            self.session.refresh(new_client)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        result = new_client.model_dump()
        result["leads"] = []
        result["ad_spends"] = []
        return result

    def update_client(self, client_id: uuid.UUID, client_update: Dict[str, Any]) -> Dict[str, Any]:
        """Partial update. Services keep their ids; new entries get generated ones."""
        if not client_update:
            raise ValueError("No fields to update provided.")

        client = self._get_client_model(client_id)

        for key, value in client_update.items():
            if key not in CLIENT_UPDATABLE_FIELDS:
                continue
            if key == "services":
                # JSON columns are not mutation-tracked: always assign a new list
                value = assign_service_ids(value or [])
            setattr(client, key, value)

        try:
            self.session.add(client)
            self.session.commit()
            self.session.refresh(client)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        return self.get_client_by_id(client_id)

    def delete_client(self, client_id: uuid.UUID) -> None:
        """Delete a client by deleting its user, which cascades to all client data."""
        client = self._get_client_model(client_id)
        self.user_service.delete_user_and_data(client.user_id)

    def delete_client_by_user_id(self, user_id: uuid.UUID) -> None:
        self.user_service.delete_user_and_data(user_id)
