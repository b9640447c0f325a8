# leadcrm/api/quotes/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from ...core.audit import log_action
from ...core.config import get_settings
from ...core.limiter import limiter
from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models import Quote as QuoteModel
from ...models.user import User
from ...services.quote_service import QuoteService, WebhookDeliveryError
from ..dependencies import ensure_client_access, ensure_lead_access
from .models import Quote, QuoteCreate, QuoteStatusUpdate, QuoteUpdate, QuoteWithDetails

router = APIRouter()


def get_quote_service(session: Session = Depends(get_sync_session)) -> QuoteService:
    return QuoteService(session)


def _ensure_quote_access(service: QuoteService, quote_id: uuid.UUID, user: User) -> None:
    quote = service.session.get(QuoteModel, quote_id)
    if not quote:
        raise HTTPException(status_code=404, detail=f"Quote {quote_id} not found.")
    ensure_client_access(service.session, quote.client_id, user)


@router.get("/quotes", response_model=list[QuoteWithDetails])
def api_get_all_quotes(
    client_id: uuid.UUID | None = None,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_any_role),
):
    if current_user.role != "admin":
        if client_id is None:
            raise HTTPException(status_code=400, detail="client_id is required.")
        ensure_client_access(service.session, client_id, current_user)
    return service.get_all_quotes(client_id)


@router.get("/leads/{lead_id}/quotes", response_model=list[Quote])
def api_get_quotes_for_lead(
    lead_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_any_role),
):
    ensure_lead_access(service.session, lead_id, current_user)
    return service.get_quotes_for_lead(lead_id)


@router.get("/quotes/{quote_id}", response_model=Quote)
def api_get_quote(
    quote_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_any_role),
):
    _ensure_quote_access(service, quote_id, current_user)
    return service.get_quote(quote_id)


@router.post("/quotes", response_model=Quote, status_code=status.HTTP_201_CREATED)
def api_create_quote(
    quote: QuoteCreate,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.create_quote(quote.model_dump())
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/quotes/{quote_id}", response_model=Quote)
def api_update_quote(
    quote_id: uuid.UUID,
    quote_update: QuoteUpdate,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.update_quote(quote_id, quote_update.model_dump(exclude_unset=True))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/quotes/{quote_id}/status", response_model=Quote)
def api_update_quote_status(
    quote_id: uuid.UUID,
    payload: QuoteStatusUpdate,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_any_role),
):
    _ensure_quote_access(service, quote_id, current_user)
    try:
        return service.update_quote_status(quote_id, payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/quotes/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_quote(
    quote_id: uuid.UUID,
    request: Request,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_admin),
):
    try:
        service.delete_quote(quote_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("DELETE", "quote", str(quote_id), user=current_user, request=request)


@router.post("/quotes/{quote_id}/send", response_model=Quote)
@limiter.limit(lambda: get_settings().send_quote_rate_limit)
def api_send_quote(
    request: Request,
    quote_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    current_user: User = Depends(require_any_role),
):
    """Delivers the quote to the client's webhook, which e-mails it to the lead."""
    _ensure_quote_access(service, quote_id, current_user)
    try:
        quote = service.send_quote_by_webhook(quote_id)
    except WebhookDeliveryError as e:
        log_action("SEND", "quote", str(quote_id), user=current_user, request=request, status="failure",
                   details={"error": str(e)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("SEND", "quote", str(quote_id), user=current_user, request=request)
    return quote
