from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import sessionmaker

from billing_core.core.clock import fixed_clock
from billing_core.core.enums import InvoiceStatus
from billing_core.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from billing_core.models import Base, Client, Invoice, Plan, Subscription
from billing_core.services.invoice_generator import InvoiceGenerator
from billing_core.services.subscription_service import SubscriptionService


def _generator(session, today: date, **kwargs) -> InvoiceGenerator:
    kwargs.setdefault("allow_future_billing", False)
    return InvoiceGenerator(db=session, clock=fixed_clock(today), **kwargs)


def _invoice_count(session, subscription_id: str) -> int:
    return session.scalar(select(func.count(Invoice.id)).where(Invoice.subscription_id == subscription_id))


def test_generate_for_period_is_idempotent(session, make_subscription):
    subscription = make_subscription(start_date=date(2024, 1, 10))
    generator = _generator(session, date(2024, 3, 20))

    first = generator.generate_for_period(subscription.id, "2024-03")
    second = generator.generate_for_period(subscription.id, "2024-03")

    assert first.id == second.id
    assert first.amount == 10000
    assert first.due_date == date(2024, 3, 10)
    assert first.status == InvoiceStatus.PENDING.value
    assert _invoice_count(session, subscription.id) == 1


def test_invoice_amount_is_a_snapshot_of_plan_price(session, make_plan, make_subscription):
    plan = make_plan(price=10000)
    subscription = make_subscription(plan=plan)
    generator = _generator(session, date(2024, 3, 20))
    invoice = generator.generate_for_period(subscription, "2024-02")

    plan.price = 25000
    session.commit()

    assert generator.generate_for_period(subscription.id, "2024-02").amount == 10000
    assert generator.generate_for_period(subscription.id, "2024-03").amount == 25000
    assert session.get(Invoice, invoice.id).amount == 10000


def test_billing_day_past_month_end_is_clamped(session, make_subscription):
    subscription = make_subscription(start_date=date(2024, 1, 5), billing_day=28)
    subscription.billing_day = 31
    session.commit()

    invoice = _generator(session, date(2024, 2, 10)).generate_for_period(subscription.id, "2024-02")
    assert invoice.due_date == date(2024, 2, 29)


def test_free_plan_invoice_is_paid_on_generation(session, make_plan, make_subscription):
    subscription = make_subscription(plan=make_plan(price=0))

    invoice = _generator(session, date(2024, 3, 20)).generate_for_period(subscription.id, "2024-03")

    assert invoice.amount == 0
    assert invoice.status == InvoiceStatus.PAID.value
    assert invoice.paid_at is not None


def test_generation_rejects_months_outside_the_billable_window(session, make_subscription):
    subscription = make_subscription(start_date=date(2024, 1, 10))
    generator = _generator(session, date(2024, 3, 20))

    with pytest.raises(ValidationError):
        generator.generate_for_period(subscription.id, "2023-12")
    with pytest.raises(ValidationError):
        generator.generate_for_period(subscription.id, "2024-05")
    with pytest.raises(ValidationError):
        generator.generate_for_period(subscription.id, "2024-3")
    assert _invoice_count(session, subscription.id) == 0

    future = _generator(session, date(2024, 3, 20), allow_future_billing=True)
    assert future.generate_for_period(subscription.id, "2024-05").reference_month == "2024-05"


def test_generation_requires_active_subscription(session, make_subscription):
    subscription = make_subscription(status="Suspended")

    with pytest.raises(InvalidTransitionError):
        _generator(session, date(2024, 3, 20)).generate_for_period(subscription.id, "2024-03")
    with pytest.raises(NotFoundError):
        _generator(session, date(2024, 3, 20)).generate_for_period("missing", "2024-03")


def test_existing_invoice_is_returned_even_after_cancellation(session, make_subscription):
    subscription = make_subscription(start_date=date(2024, 1, 1))
    invoice = _generator(session, date(2024, 3, 2)).generate_for_period(subscription.id, "2024-03")
    SubscriptionService(db=session, clock=fixed_clock(date(2024, 3, 15))).cancel_subscription(subscription.id)

    again = _generator(session, date(2024, 3, 20)).generate_for_period(subscription.id, "2024-03")
    assert again.id == invoice.id


def test_cancelled_subscription_gets_no_further_invoices(session, make_subscription):
    subscription = make_subscription(start_date=date(2024, 1, 1))
    SubscriptionService(db=session, clock=fixed_clock(date(2024, 3, 15))).cancel_subscription(subscription.id)

    result = _generator(session, date(2024, 4, 1)).generate_due_invoices(date(2024, 4, 1))

    assert result.processed == 0
    assert result.affected_ids == []
    assert _invoice_count(session, subscription.id) == 0


def test_generate_due_invoices_is_safe_to_rerun(session, make_subscription):
    billed = make_subscription(start_date=date(2024, 1, 10))
    make_subscription(start_date=date(2024, 4, 2))
    generator = _generator(session, date(2024, 3, 5))

    first = generator.generate_due_invoices(date(2024, 3, 5))
    second = generator.generate_due_invoices(date(2024, 3, 5))

    assert first.processed == 1
    assert len(first.affected_ids) == 1
    assert second.skipped == 1
    assert second.affected_ids == []
    invoice = session.get(Invoice, first.affected_ids[0])
    assert invoice.subscription_id == billed.id
    assert invoice.reference_month == "2024-03"


def test_generate_due_invoices_isolates_failures(session, make_subscription):
    healthy = make_subscription(start_date=date(2024, 1, 10))
    broken = make_subscription(start_date=date(2024, 1, 12))
    broken.plan_id = "missing-plan"
    session.commit()

    result = _generator(session, date(2024, 3, 5)).generate_due_invoices(date(2024, 3, 5))

    assert result.processed == 2
    assert result.ok is False
    assert len(result.affected_ids) == 1
    assert session.get(Invoice, result.affected_ids[0]).subscription_id == healthy.id
    assert [(f.item_id, f.error_code) for f in result.failures] == [(broken.id, "not_found")]
    assert result.to_dict()["failures"][0]["item_id"] == broken.id


def test_losing_the_insert_race_returns_the_winner(tmp_path, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")

    # pysqlite only handles SAVEPOINT correctly when SQLAlchemy owns BEGIN.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

    with SessionFactory() as setup:
        client = Client(name="Race Client", email="race@example.com", tax_id="race-1")
        plan = Plan(name="Pro", slug="pro", price=4990)
        setup.add_all([client, plan])
        setup.flush()
        subscription = Subscription(
            client_id=client.id, plan_id=plan.id, start_date=date(2024, 1, 10), billing_day=10
        )
        setup.add(subscription)
        setup.commit()
        subscription_id = subscription.id

    with SessionFactory() as winner_session:
        winner_id = _generator(winner_session, date(2024, 3, 20)).generate_for_period(subscription_id, "2024-03").id

    loser_session = SessionFactory()
    try:
        loser = _generator(loser_session, date(2024, 3, 20))
        real_find_existing = loser.find_existing
        calls = {"count": 0}

        def _stale_find_existing(sub_id, reference_month):
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return real_find_existing(sub_id, reference_month)

        monkeypatch.setattr(loser, "find_existing", _stale_find_existing)
        result = loser.generate_for_period(subscription_id, "2024-03")

        assert result.id == winner_id
        assert calls["count"] == 2
        assert _invoice_count(loser_session, subscription_id) == 1
    finally:
        loser_session.close()
        engine.dispose()


def test_generate_due_invoices_does_not_prebill_a_future_as_of(session, make_subscription):
    subscription = make_subscription(start_date=date(2024, 1, 10))
    generator = _generator(session, date(2024, 3, 20))

    result = generator.generate_due_invoices(date(2024, 9, 1))

    assert result.affected_ids == []
    assert [(f.item_id, f.error_code) for f in result.failures] == [(subscription.id, "validation_error")]
    assert _invoice_count(session, subscription.id) == 0

    prebilled = _generator(session, date(2024, 3, 20), allow_future_billing=True).generate_due_invoices(date(2024, 9, 1))
    assert session.get(Invoice, prebilled.affected_ids[0]).reference_month == "2024-09"
