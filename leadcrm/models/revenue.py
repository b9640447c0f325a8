# leadcrm/models/revenue.py
"""
Monthly MWS commission owed by a client, one row per (client_id, month).
"""
import uuid
from datetime import date, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

REVENUE_STATUSES = ("unpaid", "partially_paid", "paid")


class MwsMonthlyRevenue(SQLModel, table=True):
    __tablename__ = "mws_monthly_revenue"
    __table_args__ = (UniqueConstraint("client_id", "month", name="uq_mws_revenue_client_month"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", index=True, nullable=False)
    month: date = Field(nullable=False)  # always the first day of the month
    revenue_amount: float = Field(default=0.0)
    paid_amount: float = Field(default=0.0)
    status: str = Field(default="unpaid")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
