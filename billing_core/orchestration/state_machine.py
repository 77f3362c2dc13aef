"""Canonical state transition tables for billing entities."""

from __future__ import annotations

from billing_core.core.enums import InvoiceStatus, SubscriptionStatus
from billing_core.core.exceptions import InvalidTransitionError


class StateMachine:
    """Transition-table state machine shared by the subscription and invoice lifecycles."""

    def __init__(self, name: str, transitions: dict[str, set[str]]) -> None:
        self.name = name
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def is_terminal(self, state: str) -> bool:
        return not self._transitions.get(state)

    def assert_transition(self, current: str, target: str, entity_id: str | None = None) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(
                f"{self.name} transition not allowed: {current} -> {target}",
                current=current,
                target=target,
                entity=self.name,
                entity_id=entity_id,
            )


SUBSCRIPTION_LIFECYCLE = StateMachine(
    "subscription",
    {
        SubscriptionStatus.ACTIVE.value: {SubscriptionStatus.CANCELLED.value, SubscriptionStatus.SUSPENDED.value},
        SubscriptionStatus.SUSPENDED.value: {SubscriptionStatus.ACTIVE.value, SubscriptionStatus.CANCELLED.value},
        SubscriptionStatus.CANCELLED.value: set(),
    },
)

# Paid -> Pending/Overdue is reachable only through a payment reversal.
INVOICE_LIFECYCLE = StateMachine(
    "invoice",
    {
        InvoiceStatus.PENDING.value: {InvoiceStatus.OVERDUE.value, InvoiceStatus.PAID.value},
        InvoiceStatus.OVERDUE.value: {InvoiceStatus.PAID.value},
        InvoiceStatus.PAID.value: {InvoiceStatus.PENDING.value, InvoiceStatus.OVERDUE.value},
    },
)
