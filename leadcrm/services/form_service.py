# leadcrm/services/form_service.py
from typing import Any, Dict, List

from sqlmodel import Session, select

from ..models import SavedForm
from .base_service import BaseCRUDService


class SavedFormService(BaseCRUDService[SavedForm]):
    """Form templates admins reuse when defining a client's services."""

    def __init__(self, session: Session):
        super().__init__(session, SavedForm)

    def get_forms(self) -> List[SavedForm]:
        return list(self.session.exec(select(SavedForm).order_by(SavedForm.name)).all())

    def save_form(self, data: Dict[str, Any]) -> SavedForm:
        return self.create({"name": data["name"], "fields": list(data.get("fields") or [])})

    def update_form(self, form_id, updates: Dict[str, Any]) -> SavedForm:
        if "fields" in updates:
            updates = {**updates, "fields": list(updates["fields"] or [])}
        return self.update(form_id, updates)

    def delete_form(self, form_id) -> None:
        self.delete(form_id)
