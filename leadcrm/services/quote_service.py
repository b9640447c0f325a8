# leadcrm/services/quote_service.py
"""
Quotes and their line items, plus delivery of a quote to the client's
webhook (the webhook is responsible for e-mailing it to the lead).
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Union

import httpx
from sqlalchemy import delete
from sqlmodel import Session, col, select

from ..core.config import get_settings
from ..models import Client, Lead, Quote, QuoteItem
from ..models.quote import QUOTE_STATUSES

logger = logging.getLogger(__name__)

QUOTE_UPDATABLE_FIELDS = ("title", "currency", "notes", "valid_until")
ITEM_FIELDS = ("description", "quantity", "unit_price")


class WebhookDeliveryError(Exception):
    """The quote webhook could not be reached or answered with an error."""


def _sort_key(key: Any):
    text = str(key)
    return (0, int(text), "") if text.lstrip("-").isdigit() else (1, 0, text)


def items_as_list(items: Union[Dict[Any, Any], List[Any], None]) -> List[Any]:
    """
    Line items may arrive as a list or as a mapping keyed by position
    ("0", "1", ...). Mappings become their values in key order.
    """
    if not items:
        return []
    if isinstance(items, dict):
        return [items[key] for key in sorted(items.keys(), key=_sort_key)]
    return list(items)


def build_items(quote_id: uuid.UUID, items: Union[Dict[Any, Any], List[Any], None]) -> List[QuoteItem]:
    rows = []
    for position, item in enumerate(items_as_list(items)):
        if not (item.get("description") or "").strip():
            raise ValueError("Every quote item needs a description.")
        rows.append(
            QuoteItem(
                quote_id=quote_id,
                position=position,
                description=item["description"].strip(),
                quantity=float(item.get("quantity") or 0),
                unit_price=float(item.get("unit_price") or 0),
            )
        )
    return rows


class QuoteService:
    def __init__(self, session: Session):
        self.session = session

    # --- Serialization ---
    def _items_for(self, quote_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[Dict[str, Any]]]:
        grouped: Dict[uuid.UUID, List[Dict[str, Any]]] = {qid: [] for qid in quote_ids}
        if not quote_ids:
            return grouped
        items = self.session.exec(
            select(QuoteItem).where(col(QuoteItem.quote_id).in_(quote_ids)).order_by(QuoteItem.position)
        ).all()
        for item in items:
            item_dict = item.model_dump()
            item_dict["total"] = item.total
            grouped[item.quote_id].append(item_dict)
        return grouped

    def _serialize(self, quotes: List[Quote]) -> List[Dict[str, Any]]:
        items_by_quote = self._items_for([q.id for q in quotes])
        result = []
        for quote in quotes:
            quote_dict = quote.model_dump()
            quote_dict["items"] = items_by_quote[quote.id]
            result.append(quote_dict)
        return result

    def _get_quote_model(self, quote_id: uuid.UUID) -> Quote:
        quote = self.session.get(Quote, quote_id)
        if not quote:
            raise FileNotFoundError(f"Quote {quote_id} not found.")
        return quote

    # --- Queries ---
    def get_quote(self, quote_id: uuid.UUID) -> Dict[str, Any]:
        return self._serialize([self._get_quote_model(quote_id)])[0]

    def get_quotes_for_lead(self, lead_id: uuid.UUID) -> List[Dict[str, Any]]:
        statement = select(Quote).where(Quote.lead_id == lead_id).order_by(col(Quote.created_at).desc())
        return self._serialize(list(self.session.exec(statement).all()))

    def get_all_quotes(self, client_id: Optional[uuid.UUID] = None) -> List[Dict[str, Any]]:
        """Every quote with its lead's answers and its client's name, newest first."""
        statement = (
            select(Quote, Lead.data, Client.name)
            .join(Lead, Lead.id == Quote.lead_id)
            .join(Client, Client.id == Quote.client_id)
            .order_by(col(Quote.created_at).desc())
        )
        if client_id is not None:
            statement = statement.where(Quote.client_id == client_id)
        rows = self.session.exec(statement).all()

        quotes = self._serialize([row[0] for row in rows])
        for quote_dict, (_, lead_data, client_name) in zip(quotes, rows):
            quote_dict["lead_data"] = lead_data or {}
            quote_dict["client_name"] = client_name
        return quotes

    # --- Mutations ---
    def create_quote(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a draft quote and its items in a single transaction."""
        lead = self.session.get(Lead, data.get("lead_id"))
        if not lead:
            raise FileNotFoundError(f"Lead {data.get('lead_id')} not found.")
        if not (data.get("title") or "").strip():
            raise ValueError("Quote title is required.")

        quote = Quote(
            lead_id=lead.id,
            client_id=lead.client_id,
            title=data["title"].strip(),
            status="draft",
            **{k: data[k] for k in QUOTE_UPDATABLE_FIELDS if k != "title" and data.get(k) is not None},
        )
        items = build_items(quote.id, data.get("items"))
        quote.total_amount = sum(item.total for item in items)

        try:
            self.session.add(quote)
            self.session.add_all(items)
            self.session.commit()
            self.session.refresh(quote)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

        logger.info(f"Quote '{quote.title}' created for lead {lead.id}")
        return self.get_quote(quote.id)

    def update_quote(self, quote_id: uuid.UUID, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Partial update. When `items` is given it replaces every existing item."""
        quote = self._get_quote_model(quote_id)
        for key in QUOTE_UPDATABLE_FIELDS:
            if key in updates:
                setattr(quote, key, updates[key])

        try:
            if "items" in updates:
                items = build_items(quote.id, updates["items"])
                self.session.execute(delete(QuoteItem).where(QuoteItem.quote_id == quote.id))
                self.session.add_all(items)
                quote.total_amount = sum(item.total for item in items)
            self.session.add(quote)
            self.session.commit()
        except ValueError:
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")
        return self.get_quote(quote_id)

    def update_quote_status(self, quote_id: uuid.UUID, status: str) -> Dict[str, Any]:
        if status not in QUOTE_STATUSES:
            raise ValueError(f"Invalid quote status: {status}")
        quote = self._get_quote_model(quote_id)
        quote.status = status
        self.session.add(quote)
        self.session.commit()
        return self.get_quote(quote_id)

    def delete_quote(self, quote_id: uuid.UUID) -> None:
        quote = self._get_quote_model(quote_id)
        try:
            self.session.execute(delete(QuoteItem).where(QuoteItem.quote_id == quote.id))
            self.session.delete(quote)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")

    # --- Webhook ---
    def quote_payload(self, quote_id: uuid.UUID) -> Dict[str, Any]:
        quote = self._get_quote_model(quote_id)
        lead = self.session.get(Lead, quote.lead_id)
        quote_json = quote.model_dump(mode="json")
        quote_json["items"] = [
            {**item.model_dump(mode="json", exclude={"quote_id"}), "total": item.total}
            for item in self.session.exec(
                select(QuoteItem).where(QuoteItem.quote_id == quote.id).order_by(QuoteItem.position)
            ).all()
        ]
        return {
            "event": "quote_sent_by_email",
            "quote": quote_json,
            "lead_data": (lead.data if lead else None) or {},
        }

    def send_quote_by_webhook(self, quote_id: uuid.UUID) -> Dict[str, Any]:
        """
        POST the quote to the client's webhook. The quote becomes `sent`
        (unless already accepted) only after the webhook answered 2xx.
        """
        quote = self._get_quote_model(quote_id)
        client = self.session.get(Client, quote.client_id)
        if not client or not client.quote_webhook_url:
            raise ValueError("Webhook URL is not configured for this client.")

        payload = self.quote_payload(quote_id)
        try:
            response = httpx.post(
                client.quote_webhook_url,
                json=payload,
                timeout=get_settings().webhook_timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.error(f"Quote webhook for client {client.id} unreachable: {e}")
            raise WebhookDeliveryError(f"Could not reach the webhook server: {e}")

        if not response.is_success:
            logger.error(f"Quote webhook for client {client.id} answered {response.status_code}")
            raise WebhookDeliveryError(
                f"Webhook server responded with an error: {response.status_code} - {response.text}"
            )

        if quote.status != "accepted":
            try:
                quote.status = "sent"
                self.session.add(quote)
                self.session.commit()
            except Exception as e:
                self.session.rollback()
                raise ValueError(f"Quote was delivered but its status could not be updated: {e}")

        return self.get_quote(quote_id)
