# leadcrm/services/ad_spend_service.py
import uuid
from typing import Any, Dict, Iterable, List

from sqlmodel import Session, col, select

from ..models import AdSpend, Client
from .base_service import BaseCRUDService


class AdSpendService(BaseCRUDService[AdSpend]):
    """Ad spend rows of a client. Amounts are netted against won-lead revenue."""

    def __init__(self, session: Session):
        super().__init__(session, AdSpend)

    def get_ad_spends_for_client(self, client_id: uuid.UUID) -> List[AdSpend]:
        statement = select(AdSpend).where(AdSpend.client_id == client_id).order_by(col(AdSpend.date).desc())
        return list(self.session.exec(statement).all())

    def add_ad_spend(self, client_id: uuid.UUID, data: Dict[str, Any]) -> AdSpend:
        if not self.session.get(Client, client_id):
            raise FileNotFoundError(f"Client {client_id} not found.")
        payload = {k: v for k, v in data.items() if k not in ("id", "client_id", "created_at")}
        return self.create({**payload, "client_id": client_id})

    def update_ad_spend(self, spend_id: uuid.UUID, updates: Dict[str, Any]) -> AdSpend:
        updates = {k: v for k, v in updates.items() if k not in ("client_id", "created_at")}
        return self.update(spend_id, updates)

    def delete_ad_spends(self, spend_ids: Iterable[uuid.UUID]) -> int:
        return self.delete_many(spend_ids)

    def delete_ad_spend(self, spend_id: uuid.UUID) -> None:
        self.delete(spend_id)
