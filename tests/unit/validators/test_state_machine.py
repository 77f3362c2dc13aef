from __future__ import annotations

import pytest

from billing_core.core.exceptions import InvalidTransitionError
from billing_core.orchestration.state_machine import INVOICE_LIFECYCLE, SUBSCRIPTION_LIFECYCLE, StateMachine


def test_state_machine_allows_valid_transition():
    sm = StateMachine("job", {"new": {"running"}, "running": {"completed"}})
    assert sm.can_transition("new", "running") is True
    sm.assert_transition("new", "running")


def test_state_machine_rejects_invalid_transition():
    sm = StateMachine("job", {"new": {"running"}})
    with pytest.raises(InvalidTransitionError) as exc:
        sm.assert_transition("new", "completed", entity_id="j-1")
    assert exc.value.current == "new"
    assert exc.value.target == "completed"
    assert exc.value.to_dict()["entity_id"] == "j-1"


def test_cancelled_subscription_is_terminal():
    assert SUBSCRIPTION_LIFECYCLE.is_terminal("Cancelled") is True
    for target in ("Active", "Suspended"):
        assert SUBSCRIPTION_LIFECYCLE.can_transition("Cancelled", target) is False


def test_suspended_subscription_can_resume_or_cancel():
    assert SUBSCRIPTION_LIFECYCLE.can_transition("Active", "Suspended") is True
    assert SUBSCRIPTION_LIFECYCLE.can_transition("Suspended", "Active") is True
    assert SUBSCRIPTION_LIFECYCLE.can_transition("Suspended", "Cancelled") is True


def test_invoice_lifecycle_edges():
    assert INVOICE_LIFECYCLE.can_transition("Pending", "Overdue") is True
    assert INVOICE_LIFECYCLE.can_transition("Overdue", "Paid") is True
    assert INVOICE_LIFECYCLE.can_transition("Paid", "Pending") is True
    assert INVOICE_LIFECYCLE.can_transition("Paid", "Overdue") is True
    assert INVOICE_LIFECYCLE.can_transition("Overdue", "Pending") is False
    assert INVOICE_LIFECYCLE.is_terminal("Paid") is False
