from __future__ import annotations

from datetime import date
import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from billing_core.core.enums import SubscriptionStatus
from billing_core.models import Base, Client, Plan, Subscription
from billing_core.utils.periods import default_billing_day


@pytest.fixture
def session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def make_client(session):
    def _make_client(name: str = "Acme Ltda", **fields) -> Client:
        token = uuid.uuid4().hex[:8]
        client = Client(
            name=name,
            email=fields.pop("email", f"{token}@example.com"),
            tax_id=fields.pop("tax_id", token),
            **fields,
        )
        session.add(client)
        session.commit()
        return client

    return _make_client


@pytest.fixture
def make_plan(session):
    def _make_plan(price: int = 10000, **fields) -> Plan:
        slug = fields.pop("slug", f"plan-{uuid.uuid4().hex[:8]}")
        plan = Plan(name=fields.pop("name", slug.title()), slug=slug, price=price, **fields)
        session.add(plan)
        session.commit()
        return plan

    return _make_plan


@pytest.fixture
def make_subscription(session, make_client, make_plan):
    """Insert a subscription row directly, bypassing the creation rules."""

    def _make_subscription(
        client: Client | None = None,
        plan: Plan | None = None,
        start_date: date = date(2024, 1, 10),
        billing_day: int | None = None,
        status: str = SubscriptionStatus.ACTIVE.value,
    ) -> Subscription:
        client = client or make_client()
        plan = plan or make_plan()
        subscription = Subscription(
            client_id=client.id,
            plan_id=plan.id,
            start_date=start_date,
            billing_day=billing_day or default_billing_day(start_date),
            status=status,
        )
        session.add(subscription)
        session.commit()
        return subscription

    return _make_subscription
