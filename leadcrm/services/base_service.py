# leadcrm/services/base_service.py
"""
Shared CRUD for the flat CRM tables (ad spends, saved forms, appointments).
Services with aggregates or multi-table transactions query the session directly.
"""
import uuid
from typing import Any, Dict, Generic, Iterable, List, Type, TypeVar

from sqlalchemy import delete
from sqlmodel import Session, col, select

ModelType = TypeVar("ModelType")


class BaseCRUDService(Generic[ModelType]):
    """
    Subclasses bind the model once:

        class AdSpendService(BaseCRUDService[AdSpend]):
            def __init__(self, session: Session):
                super().__init__(session, AdSpend)
    """

    def __init__(self, session: Session, model: Type[ModelType]):
        self.session = session
        self.model = model

    @property
    def label(self) -> str:
        return self.model.__name__

    def get_all(self) -> List[ModelType]:
        return list(self.session.exec(select(self.model)).all())

    def get_by_id(self, id: uuid.UUID) -> ModelType:
        """Raises FileNotFoundError when no row has this id."""
        record = self.session.get(self.model, id)
        if not record:
            raise FileNotFoundError(f"{self.label} {id} not found.")
        return record

    def _commit(self, record: ModelType, action: str) -> ModelType:
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error while {action} {self.label}: {e}")
        return record

    def create(self, data: Dict[str, Any]) -> ModelType:
        return self._commit(self.model(**data), "creating")

    def update(self, id: uuid.UUID, data: Dict[str, Any]) -> ModelType:
        """Partial update. The id and keys that are not attributes of the model are skipped."""
        record = self.get_by_id(id)
        for key, value in data.items():
            if key != "id" and hasattr(record, key):
                setattr(record, key, value)
        return self._commit(record, "updating")

    def delete(self, id: uuid.UUID) -> None:
        record = self.get_by_id(id)
        try:
            self.session.delete(record)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error while deleting {self.label}: {e}")

    def delete_many(self, ids: Iterable[uuid.UUID]) -> int:
        """Returns the number of rows removed. An empty id list touches nothing."""
        ids = list(ids)
        if not ids:
            return 0
        try:
            result = self.session.execute(delete(self.model).where(col(self.model.id).in_(ids)))
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error while deleting {self.label} rows: {e}")
        return result.rowcount
