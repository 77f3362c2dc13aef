"""Canonical status values for billing entities."""

from __future__ import annotations

import enum


class ClientStatus(str, enum.Enum):
    ACTIVE = "Active"
    DELINQUENT = "Delinquent"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"
    SUSPENDED = "Suspended"


class InvoiceStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentStatus(str, enum.Enum):
    APPROVED = "Approved"
    FAILED = "Failed"
    REVERSED = "Reversed"


class PaymentMethod(str, enum.Enum):
    MANUAL = "manual"
    PIX = "pix"
    CARD = "card"
    BOLETO = "boleto"

