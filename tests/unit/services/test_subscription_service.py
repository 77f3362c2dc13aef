from __future__ import annotations

from datetime import date

import pytest

from billing_core.core.clock import fixed_clock
from billing_core.core.enums import ClientStatus, InvoiceStatus, SubscriptionStatus
from billing_core.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from billing_core.models import Invoice
from billing_core.services.subscription_service import SubscriptionService


def _service(session, today: date = date(2024, 3, 1), **kwargs) -> SubscriptionService:
    kwargs.setdefault("block_delinquent", True)
    return SubscriptionService(db=session, clock=fixed_clock(today), **kwargs)


def test_create_subscription_defaults_billing_day_from_start(session, make_client, make_plan):
    client, plan = make_client(), make_plan()

    subscription = _service(session).create_subscription(client.id, plan.id, start_date="2024-01-31")

    assert subscription.status == SubscriptionStatus.ACTIVE.value
    assert subscription.start_date == date(2024, 1, 31)
    assert subscription.billing_day == 28
    assert subscription.end_date is None


def test_create_subscription_uses_clock_when_start_omitted(session, make_client, make_plan):
    client, plan = make_client(), make_plan()

    subscription = _service(session, date(2024, 5, 12)).create_subscription(client.id, plan.id, billing_day=5)

    assert subscription.start_date == date(2024, 5, 12)
    assert subscription.billing_day == 5


@pytest.mark.parametrize("billing_day", [0, 29, 31, True, "10"])
def test_create_subscription_rejects_out_of_range_billing_day(session, make_client, make_plan, billing_day):
    client, plan = make_client(), make_plan()

    with pytest.raises(ValidationError) as exc:
        _service(session).create_subscription(client.id, plan.id, billing_day=billing_day)
    assert exc.value.field == "billing_day"


def test_create_subscription_requires_known_client_and_active_plan(session, make_client, make_plan):
    client = make_client()
    plan = make_plan()
    retired = make_plan(is_active=False)
    service = _service(session)

    with pytest.raises(NotFoundError):
        service.create_subscription("missing", plan.id)
    with pytest.raises(NotFoundError):
        service.create_subscription(client.id, "missing")
    with pytest.raises(ValidationError):
        service.create_subscription(client.id, retired.id)


def test_create_subscription_rejects_overlap_on_same_plan(session, make_client, make_plan):
    client, plan = make_client(), make_plan()
    service = _service(session)
    first = service.create_subscription(client.id, plan.id, start_date="2024-01-10")

    with pytest.raises(ValidationError) as exc:
        service.create_subscription(client.id, plan.id, start_date="2024-02-10")
    assert exc.value.entity_id == first.id

    other_plan = make_plan()
    assert service.create_subscription(client.id, other_plan.id, start_date="2024-02-10").plan_id == other_plan.id


def test_resubscribe_after_cancellation(session, make_client, make_plan):
    client, plan = make_client(), make_plan()
    first = _service(session).create_subscription(client.id, plan.id, start_date="2024-01-10")
    _service(session, date(2024, 2, 15)).cancel_subscription(first.id)

    again = _service(session, date(2024, 3, 1)).create_subscription(client.id, plan.id, start_date="2024-03-01")
    assert again.id != first.id


def test_delinquent_client_cannot_subscribe_when_blocked(session, make_client, make_plan):
    client = make_client(status=ClientStatus.DELINQUENT.value)
    plan = make_plan()

    with pytest.raises(ValidationError):
        _service(session).create_subscription(client.id, plan.id)

    allowed = _service(session, block_delinquent=False).create_subscription(client.id, plan.id)
    assert allowed.status == SubscriptionStatus.ACTIVE.value


def test_cancel_is_terminal_and_idempotent(session, make_subscription):
    subscription = make_subscription()
    cancelled = _service(session, date(2024, 3, 15)).cancel_subscription(subscription.id)
    assert cancelled.status == SubscriptionStatus.CANCELLED.value
    assert cancelled.end_date.date() == date(2024, 3, 15)

    repeated = _service(session, date(2024, 4, 1)).cancel_subscription(subscription.id)
    assert repeated.end_date.date() == date(2024, 3, 15)

    with pytest.raises(InvalidTransitionError):
        _service(session).activate_subscription(subscription.id)
    with pytest.raises(InvalidTransitionError):
        _service(session).suspend_subscription(subscription.id)


def test_suspend_and_reactivate(session, make_subscription):
    subscription = make_subscription()
    service = _service(session)

    assert service.suspend_subscription(subscription.id).status == SubscriptionStatus.SUSPENDED.value
    assert service.activate_subscription(subscription.id).status == SubscriptionStatus.ACTIVE.value
    assert service.suspend_subscription(subscription.id).status == SubscriptionStatus.SUSPENDED.value
    assert service.cancel_subscription(subscription.id).status == SubscriptionStatus.CANCELLED.value

    with pytest.raises(NotFoundError):
        service.cancel_subscription("missing")


def test_list_subscriptions_filters(session, make_client, make_subscription):
    client = make_client()
    active = make_subscription(client=client)
    make_subscription(client=client, status=SubscriptionStatus.CANCELLED.value)
    make_subscription()
    service = _service(session)

    assert len(service.list_subscriptions(client_id=client.id)) == 2
    assert [row.id for row in service.list_subscriptions(client_id=client.id, status="Active")] == [active.id]
    with pytest.raises(ValidationError):
        service.list_subscriptions(status="Paused")


def test_suspend_delinquent_subscriptions_honours_grace_period(session, make_client, make_subscription):
    late = make_client(status=ClientStatus.DELINQUENT.value)
    recent = make_client(status=ClientStatus.DELINQUENT.value)
    late_sub = make_subscription(client=late)
    recent_sub = make_subscription(client=recent)
    session.add_all(
        [
            Invoice(
                subscription_id=late_sub.id,
                client_id=late.id,
                amount=10000,
                due_date=date(2024, 2, 10),
                reference_month="2024-02",
                status=InvoiceStatus.OVERDUE.value,
            ),
            Invoice(
                subscription_id=recent_sub.id,
                client_id=recent.id,
                amount=10000,
                due_date=date(2024, 3, 10),
                reference_month="2024-03",
                status=InvoiceStatus.OVERDUE.value,
            ),
        ]
    )
    session.commit()
    service = _service(session, date(2024, 3, 20))

    assert service.suspend_delinquent_subscriptions(date(2024, 3, 20), grace_days=0).processed == 0

    result = service.suspend_delinquent_subscriptions(date(2024, 3, 20), grace_days=15)
    assert result.affected_ids == [late_sub.id]
    assert service.get_subscription(late_sub.id).status == SubscriptionStatus.SUSPENDED.value
    assert service.get_subscription(recent_sub.id).status == SubscriptionStatus.ACTIVE.value

    rerun = service.suspend_delinquent_subscriptions(date(2024, 3, 20), grace_days=15)
    assert rerun.processed == 0
