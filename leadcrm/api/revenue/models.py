# leadcrm/api/revenue/models.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...services.revenue_calculator import parse_month


class MonthRequest(BaseModel):
    client_id: uuid.UUID
    month: str = Field(description="YYYY-MM")

    @field_validator("month")
    @classmethod
    def validate_month(cls, value: str) -> str:
        year, month = parse_month(value)
        return f"{year:04d}-{month:02d}"


class PaymentRequest(MonthRequest):
    amount: float | None = None
    paid_in_full: bool = False


class RevenueUpsert(MonthRequest):
    revenue_amount: float = Field(ge=0)
    paid_amount: float = Field(default=0.0, ge=0)
    status: Literal["unpaid", "partially_paid", "paid"] = "unpaid"


class MonthlyRevenue(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    month: date
    revenue_amount: float
    paid_amount: float
    status: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RevenueCalculation(BaseModel):
    client_id: uuid.UUID
    client_name: str
    month: date
    client_revenue: float
    total_ad_spend: float
    client_profit: float
    fixed_fee: float
    profit_percentage: float
    profit_share: float
    mws_revenue: float
    saved: MonthlyRevenue | None = None
    has_pending_changes: bool
    editable: bool = False


class MonthSummary(BaseModel):
    month: date
    total_revenue: float
    total_paid: float
    total_unpaid: float
    clients: int
