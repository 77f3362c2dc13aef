from __future__ import annotations

from contextlib import contextmanager
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import billing_core.tasks.billing_tasks as billing_tasks
from billing_core.models import Base, Client, Invoice, Plan, Subscription
from billing_core.services.batch import BatchResult
from billing_core.tasks.celery_app import celery_app
from billing_core.tasks.registry import JobRegistry, default_registry


@pytest.fixture
def isolated_session_factory(tmp_path, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    @contextmanager
    def _get_db_session():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(billing_tasks, "get_db_session", _get_db_session)
    yield TestingSessionLocal
    engine.dispose()


def _seed_subscription(session_factory) -> str:
    with session_factory() as db:
        client = Client(name="Job Client", email="jobs@example.com", tax_id="job-1")
        plan = Plan(name="Pro", slug="pro", price=10000)
        db.add_all([client, plan])
        db.flush()
        subscription = Subscription(client_id=client.id, plan_id=plan.id, start_date=date(2024, 1, 10), billing_day=10)
        db.add(subscription)
        db.commit()
        return subscription.id


def test_default_registry_exposes_billing_jobs():
    assert default_registry.keys() == [
        "billing.generate_due_invoices",
        "billing.suspend_delinquent",
        "billing.sweep_overdue",
    ]
    with pytest.raises(KeyError):
        default_registry.get("billing.missing")


def test_job_registry_register_and_get():
    registry = JobRegistry()

    def _noop(db, as_of):
        return BatchResult(job="test.noop", as_of=as_of)

    registry.register("test.noop", _noop)
    assert registry.get("test.noop") is _noop
    assert registry.keys() == ["test.noop"]


def test_run_job_generates_then_sweeps(isolated_session_factory):
    subscription_id = _seed_subscription(isolated_session_factory)

    generated = billing_tasks.run_job("billing.generate_due_invoices", "2024-03-05")
    rerun = billing_tasks.run_job("billing.generate_due_invoices", date(2024, 3, 5))
    swept = billing_tasks.run_job("billing.sweep_overdue", "2024-03-20")

    assert generated["as_of"] == "2024-03-05"
    assert len(generated["affected_ids"]) == 1
    assert rerun["affected_ids"] == []
    assert rerun["skipped"] == 1
    assert swept["affected_ids"] == generated["affected_ids"]
    with isolated_session_factory() as db:
        invoice = db.get(Invoice, generated["affected_ids"][0])
        assert invoice.subscription_id == subscription_id
        assert invoice.status == "Overdue"


def test_celery_task_wraps_run_job(isolated_session_factory):
    _seed_subscription(isolated_session_factory)

    result = billing_tasks.generate_due_invoices_task.apply(args=("2024-03-05",)).get()

    assert result["job"] == "billing.generate_due_invoices"
    assert len(result["affected_ids"]) == 1


def test_beat_schedule_registers_daily_jobs():
    tasks = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}
    assert {"billing.generate_due_invoices", "billing.sweep_overdue"}.issubset(tasks)
