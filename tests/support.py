"""
Shared fixtures for the service tests: an in-memory database per test and
small factories for the rows most tests need.
"""
import unittest
import uuid
from datetime import datetime

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import leadcrm.models  # noqa: F401
from leadcrm.models import AdSpend, Client, Lead, User


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


class DatabaseTestCase(unittest.TestCase):
    """Gives every test a fresh database and a session bound to it."""

    def setUp(self):
        self.engine = make_engine()
        self.session = Session(self.engine)

    def tearDown(self):
        self.session.close()
        SQLModel.metadata.drop_all(self.engine)
        self.engine.dispose()

    def make_user(self, username=None, role="client", status="active") -> User:
        username = username or f"user-{uuid.uuid4().hex[:8]}"
        user = User(
            email=f"{username}@example.com",
            hashed_password="not-a-real-hash",
            username=username,
            role=role,
            status=status,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def make_client(self, user=None, name="Acme Roofing", fixed_fee=0.0, percentage=0.0, webhook_url=None) -> Client:
        user = user or self.make_user()
        client = Client(
            user_id=user.id,
            name=name,
            services=[],
            mws_fixed_fee=fixed_fee,
            mws_profit_percentage=percentage,
            quote_webhook_url=webhook_url,
        )
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        return client

    def make_lead(self, client, status="New", value=None, created_at=None, data=None) -> Lead:
        lead = Lead(
            client_id=client.id,
            data=data if data is not None else {"name": "Jane Doe", "email": "jane@example.com"},
            service="Roof repair",
            status=status,
            value=value,
            created_at=created_at or datetime.utcnow(),
        )
        self.session.add(lead)
        self.session.commit()
        self.session.refresh(lead)
        return lead

    def make_ad_spend(self, client, amount, on) -> AdSpend:
        spend = AdSpend(client_id=client.id, amount=amount, date=on, platform="Meta")
        self.session.add(spend)
        self.session.commit()
        self.session.refresh(spend)
        return spend
