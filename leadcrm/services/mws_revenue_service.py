# leadcrm/services/mws_revenue_service.py
"""
Persistence of the monthly MWS commission and its payments.
The arithmetic lives in revenue_calculator; this module loads the inputs
and keeps one MwsMonthlyRevenue row per (client, month).
"""
import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, col, select

from ..models import AdSpend, Client, Lead, MwsMonthlyRevenue
from ..models.revenue import REVENUE_STATUSES
from .revenue_calculator import (
    calculate_revenue,
    has_pending_changes,
    month_start,
    month_window,
    reconcile_payment,
)

logger = logging.getLogger(__name__)


class MwsRevenueService:
    def __init__(self, session: Session):
        self.session = session

    def _get_client_model(self, client_id: uuid.UUID) -> Client:
        client = self.session.get(Client, client_id)
        if not client:
            raise FileNotFoundError(f"Client {client_id} not found.")
        return client

    def _get_row(self, client_id: uuid.UUID, month: date) -> Optional[MwsMonthlyRevenue]:
        return self.session.exec(
            select(MwsMonthlyRevenue).where(
                MwsMonthlyRevenue.client_id == client_id,
                MwsMonthlyRevenue.month == month,
            )
        ).first()

    def get_revenues(self, client_id: Optional[uuid.UUID] = None) -> List[MwsMonthlyRevenue]:
        statement = select(MwsMonthlyRevenue).order_by(col(MwsMonthlyRevenue.month).desc())
        if client_id is not None:
            statement = statement.where(MwsMonthlyRevenue.client_id == client_id)
        return list(self.session.exec(statement).all())

    def upsert_revenue(
        self,
        client_id: uuid.UUID,
        month: Any,
        revenue_amount: float,
        paid_amount: float = 0.0,
        status: str = "unpaid",
    ) -> MwsMonthlyRevenue:
        """Insert or replace the row of (client, month). Any date inside the month is accepted."""
        if status not in REVENUE_STATUSES:
            raise ValueError(f"Invalid revenue status: {status}")
        self._get_client_model(client_id)
        first_day = month_start(month)

        row = self._get_row(client_id, first_day)
        if row is None:
            row = MwsMonthlyRevenue(client_id=client_id, month=first_day)
        row.revenue_amount = revenue_amount
        row.paid_amount = paid_amount
        row.status = status
        row.updated_at = datetime.utcnow()

        try:
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except Exception as e:
            self.session.rollback()
            raise ValueError(f"Database error: {e}")
        return row

    def calculate_for_client(self, client_id: uuid.UUID, year: int, month: int) -> Dict[str, Any]:
        """Commission of one client for one month, next to what is already saved."""
        client = self._get_client_model(client_id)
        start, end = month_window(year, month)

        leads = self.session.exec(select(Lead).where(Lead.client_id == client_id)).all()
        spends = self.session.exec(
            select(AdSpend).where(
                AdSpend.client_id == client_id,
                AdSpend.date >= start.date(),
                AdSpend.date <= end.date(),
            )
        ).all()

        breakdown = calculate_revenue(
            leads, spends, client.mws_fixed_fee, client.mws_profit_percentage, start=start, end=end
        )
        saved = self._get_row(client_id, start.date())

        result = breakdown.to_dict()
        result["client_id"] = client.id
        result["client_name"] = client.name
        result["month"] = start.date()
        result["saved"] = saved.model_dump() if saved else None
        result["has_pending_changes"] = has_pending_changes(
            saved.revenue_amount if saved else None, breakdown.mws_revenue
        )
        return result

    def save_calculation(self, client_id: uuid.UUID, year: int, month: int) -> MwsMonthlyRevenue:
        """Store the freshly computed amount, keeping any payment already recorded."""
        calculation = self.calculate_for_client(client_id, year, month)
        saved = calculation["saved"]
        paid_amount = saved["paid_amount"] if saved else 0.0
        total = calculation["mws_revenue"]

        if paid_amount <= 0:
            status = "unpaid"
        elif paid_amount >= total:
            status = "paid"
        else:
            status = "partially_paid"

        logger.info(f"Saving MWS revenue {total:.2f} for client {client_id} ({year}-{month:02d})")
        return self.upsert_revenue(client_id, calculation["month"], total, paid_amount, status)

    def register_payment(
        self,
        client_id: uuid.UUID,
        year: int,
        month: int,
        amount: Optional[float] = None,
        paid_in_full: bool = False,
    ) -> MwsMonthlyRevenue:
        """
        Record a payment against a month. The amount due is the saved amount, or the computed one when the
        month was never saved or was saved at zero.
        """
        calculation = self.calculate_for_client(client_id, year, month)
        saved = calculation["saved"]
        total_due = (saved and saved["revenue_amount"]) or calculation["mws_revenue"]

        reconciliation = reconcile_payment(
            total_due, saved["paid_amount"] if saved else 0.0, amount=amount, paid_in_full=paid_in_full
        )
        logger.info(
            f"Payment for client {client_id} ({year}-{month:02d}): "
            f"{reconciliation.previous_paid:.2f} -> {reconciliation.paid_amount:.2f} ({reconciliation.status})"
        )
        return self.upsert_revenue(
            client_id,
            calculation["month"],
            total_due,
            reconciliation.paid_amount,
            reconciliation.status,
        )

    def get_month_summary(self, year: int, month: int, client_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        first_day = date(year, month, 1)
        statement = select(MwsMonthlyRevenue).where(MwsMonthlyRevenue.month == first_day)
        if client_id is not None:
            statement = statement.where(MwsMonthlyRevenue.client_id == client_id)
        rows = self.session.exec(statement).all()

        total_revenue = sum(row.revenue_amount for row in rows)
        total_paid = sum(row.paid_amount for row in rows)
        return {
            "month": first_day,
            "total_revenue": total_revenue,
            "total_paid": total_paid,
            "total_unpaid": max(0.0, total_revenue - total_paid),
            "clients": len(rows),
        }

    def get_payment_history(self, client_id: Optional[uuid.UUID] = None) -> List[MwsMonthlyRevenue]:
        """Months with at least one payment recorded, newest first."""
        statement = (
            select(MwsMonthlyRevenue)
            .where(MwsMonthlyRevenue.status != "unpaid")
            .order_by(col(MwsMonthlyRevenue.month).desc())
        )
        if client_id is not None:
            statement = statement.where(MwsMonthlyRevenue.client_id == client_id)
        return list(self.session.exec(statement).all())

    def calculate_for_all_clients(self, year: int, month: int) -> List[Dict[str, Any]]:
        """The month's calculation for every client, ordered by client name."""
        client_ids = self.session.exec(select(Client.id).order_by(Client.name)).all()
        return [self.calculate_for_client(client_id, year, month) for client_id in client_ids]
