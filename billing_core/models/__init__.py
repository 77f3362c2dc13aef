"""SQLAlchemy model package for the billing schema."""

from billing_core.models.base import Base
from billing_core.models.client import Client
from billing_core.models.invoice import Invoice
from billing_core.models.payment import Payment
from billing_core.models.plan import Plan
from billing_core.models.subscription import Subscription

__all__ = [
    "Base",
    "Client",
    "Invoice",
    "Payment",
    "Plan",
    "Subscription",
]
