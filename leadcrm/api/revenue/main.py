# leadcrm/api/revenue/main.py
"""
MWS commission endpoints. Past months are read-only: only the current
month can be recalculated, overwritten or paid.
"""
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlmodel import Session, select

from ...core.audit import log_action
from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models import Client
from ...models.user import User
from ...services.mws_revenue_service import MwsRevenueService
from ...services.revenue_calculator import is_month_editable, parse_month
from ..dependencies import ensure_client_access
from .models import (
    MonthlyRevenue,
    MonthRequest,
    MonthSummary,
    PaymentRequest,
    RevenueCalculation,
    RevenueUpsert,
)

router = APIRouter()


def get_revenue_service(session: Session = Depends(get_sync_session)) -> MwsRevenueService:
    return MwsRevenueService(session)


def _parse_month_or_400(value: str) -> tuple[int, int]:
    try:
        return parse_month(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _ensure_editable(year: int, month: int) -> None:
    if not is_month_editable(date(year, month, 1)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the current month can be modified.")


def _own_client_id(service: MwsRevenueService, user: User) -> uuid.UUID:
    client_id = service.session.exec(select(Client.id).where(Client.user_id == user.id)).first()
    if client_id is None:
        raise HTTPException(status_code=404, detail="No client profile is linked to this account.")
    return client_id


def _with_editable(calculation: dict, year: int, month: int) -> dict:
    return {**calculation, "editable": is_month_editable(date(year, month, 1))}


@router.get("/revenue", response_model=list[MonthlyRevenue])
def api_get_revenues(
    client_id: uuid.UUID | None = None,
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_any_role),
):
    if current_user.role != "admin":
        client_id = _own_client_id(service, current_user)
    return service.get_revenues(client_id)


@router.get("/revenue/overview", response_model=list[RevenueCalculation])
def api_get_revenue_overview(
    month: str = Query(..., description="YYYY-MM"),
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_admin),
):
    year, month_number = _parse_month_or_400(month)
    return [_with_editable(c, year, month_number) for c in service.calculate_for_all_clients(year, month_number)]


@router.get("/revenue/calculate", response_model=RevenueCalculation)
def api_calculate_revenue(
    client_id: uuid.UUID,
    month: str = Query(..., description="YYYY-MM"),
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_any_role),
):
    ensure_client_access(service.session, client_id, current_user)
    year, month_number = _parse_month_or_400(month)
    try:
        return _with_editable(service.calculate_for_client(client_id, year, month_number), year, month_number)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/revenue/summary", response_model=MonthSummary)
def api_get_month_summary(
    month: str = Query(..., description="YYYY-MM"),
    client_id: uuid.UUID | None = None,
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_any_role),
):
    if current_user.role != "admin":
        client_id = _own_client_id(service, current_user)
    year, month_number = _parse_month_or_400(month)
    return service.get_month_summary(year, month_number, client_id)


@router.get("/revenue/history", response_model=list[MonthlyRevenue])
def api_get_payment_history(
    client_id: uuid.UUID | None = None,
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_any_role),
):
    if current_user.role != "admin":
        client_id = _own_client_id(service, current_user)
    return service.get_payment_history(client_id)


@router.post("/revenue/save", response_model=MonthlyRevenue)
def api_save_calculation(
    payload: MonthRequest,
    request: Request,
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_admin),
):
    year, month_number = parse_month(payload.month)
    _ensure_editable(year, month_number)
    try:
        row = service.save_calculation(payload.client_id, year, month_number)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("UPDATE", "revenue", f"{payload.client_id}/{payload.month}", user=current_user, request=request,
               details={"revenue_amount": row.revenue_amount})
    return row


@router.post("/revenue/payment", response_model=MonthlyRevenue)
def api_register_payment(
    payload: PaymentRequest,
    request: Request,
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_admin),
):
    year, month_number = parse_month(payload.month)
    _ensure_editable(year, month_number)
    try:
        row = service.register_payment(
            payload.client_id, year, month_number, amount=payload.amount, paid_in_full=payload.paid_in_full
        )
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("PAYMENT", "revenue", f"{payload.client_id}/{payload.month}", user=current_user, request=request,
               details={"paid_amount": row.paid_amount, "status": row.status})
    return row


@router.put("/revenue", response_model=MonthlyRevenue)
def api_upsert_revenue(
    payload: RevenueUpsert,
    request: Request,
    service: MwsRevenueService = Depends(get_revenue_service),
    current_user: User = Depends(require_admin),
):
    year, month_number = parse_month(payload.month)
    _ensure_editable(year, month_number)
    try:
        row = service.upsert_revenue(
            payload.client_id, f"{payload.month}-01", payload.revenue_amount, payload.paid_amount, payload.status
        )
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("UPDATE", "revenue", f"{payload.client_id}/{payload.month}", user=current_user, request=request)
    return row
