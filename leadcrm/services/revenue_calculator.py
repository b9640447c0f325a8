# leadcrm/services/revenue_calculator.py
"""
MWS commission arithmetic.

Pure functions over leads and ad spends that were already loaded for one
client. Nothing here touches the database; MwsRevenueService persists results.

    client_revenue = sum(value of Won leads in the window)
    client_profit  = client_revenue - ad spend in the window
    mws_revenue    = fixed_fee + (client_profit * percentage / 100 if client_profit > 0 else 0)
"""
import calendar
import logging
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Union

from ..models.lead import REVENUE_ATTRIBUTION_KEY, WON_STATUS

logger = logging.getLogger(__name__)

# Saved and computed amounts closer than this are considered equal
PENDING_TOLERANCE = 0.01

DateLike = Union[datetime, date, str, None]


@dataclass(frozen=True)
class RevenueBreakdown:
    client_revenue: float
    total_ad_spend: float
    client_profit: float
    fixed_fee: float
    profit_percentage: float
    profit_share: float
    mws_revenue: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PaymentReconciliation:
    total_due: float
    previous_paid: float
    paid_amount: float
    remaining_due: float
    status: str

    def to_dict(self) -> dict:
        return asdict(self)


def to_datetime(value: DateLike) -> Optional[datetime]:
    """
    Normalize a date, datetime or ISO string to a naive UTC datetime.
    Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    else:
        try:
            moment = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable date value ignored: {value!r}")
            return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def month_start(value: DateLike) -> date:
    """First day of the month containing `value`."""
    moment = to_datetime(value)
    if moment is None:
        raise ValueError(f"Invalid month: {value!r}")
    return date(moment.year, moment.month, 1)


def parse_month(value: str) -> tuple[int, int]:
    """Parse 'YYYY-MM' (or any ISO date inside the month) into (year, month)."""
    text = (value or "").strip()
    if len(text) == 7:
        text = f"{text}-01"
    first = month_start(text)
    return first.year, first.month


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    """Inclusive window covering a calendar month: day 1 00:00:00 to last day 23:59:59."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59)
    return start, end


def in_window(moment: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    if moment is None:
        return False
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True


def lead_attribution_date(lead) -> Optional[datetime]:
    """
    The moment a lead's revenue counts for: the explicit attribution date in
    its answers when present, otherwise its creation date.
    """
    data = getattr(lead, "data", None) or {}
    attributed = to_datetime(data.get(REVENUE_ATTRIBUTION_KEY))
    if attributed is not None:
        return attributed
    return to_datetime(getattr(lead, "created_at", None))


def calculate_revenue(
    leads: Iterable,
    ad_spends: Iterable,
    fixed_fee: Optional[float],
    profit_percentage: Optional[float],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> RevenueBreakdown:
    """Compute the commission for one client over an inclusive date window."""
    windowed_leads = [lead for lead in leads if in_window(lead_attribution_date(lead), start, end)]
    windowed_spends = [s for s in ad_spends if in_window(to_datetime(s.date), start, end)]

    client_revenue = sum((lead.value or 0) for lead in windowed_leads if lead.status == WON_STATUS)
    total_ad_spend = sum((s.amount or 0) for s in windowed_spends)
    client_profit = client_revenue - total_ad_spend

    fixed = fixed_fee or 0.0
    percentage = profit_percentage or 0.0
    profit_share = (client_profit * percentage) / 100 if client_profit > 0 else 0.0

    return RevenueBreakdown(
        client_revenue=client_revenue,
        total_ad_spend=total_ad_spend,
        client_profit=client_profit,
        fixed_fee=fixed,
        profit_percentage=percentage,
        profit_share=profit_share,
        mws_revenue=fixed + profit_share,
    )


def has_pending_changes(saved_amount: Optional[float], computed_amount: float) -> bool:
    """True when the computed commission differs from what is stored."""
    if saved_amount is None:
        return computed_amount > 0
    return abs(saved_amount - computed_amount) > PENDING_TOLERANCE


def reconcile_payment(
    total_due: float,
    existing_paid: Optional[float],
    amount: Optional[float] = None,
    paid_in_full: bool = False,
) -> PaymentReconciliation:
    """
    Compute the new paid amount and status after recording a payment.

    Raises:
        ValueError: invalid amount, or a partial payment above the remaining due.
    """
    previous_paid = existing_paid or 0.0
    remaining = max(0.0, total_due - previous_paid)

    if paid_in_full:
        payment = remaining
    else:
        if amount is None or math.isnan(amount) or amount < 0:
            raise ValueError("Invalid payment amount.")
        if amount > remaining:
            raise ValueError("Payment exceeds the remaining amount due.")
        payment = amount

    paid_amount = previous_paid + payment
    if paid_in_full or paid_amount >= total_due:
        status = "paid"
    elif paid_amount > 0:
        status = "partially_paid"
    else:
        status = "unpaid"

    return PaymentReconciliation(
        total_due=total_due,
        previous_paid=previous_paid,
        paid_amount=paid_amount,
        remaining_due=max(0.0, total_due - paid_amount),
        status=status,
    )


def is_month_editable(month: date, today: Optional[date] = None) -> bool:
    """Only the current calendar month can be recalculated or paid."""
    today = today or date.today()
    return (month.year, month.month) == (today.year, today.month)
