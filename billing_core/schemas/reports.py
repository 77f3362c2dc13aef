"""Report schemas."""

from __future__ import annotations

from pydantic import BaseModel


class FinancialMonth(BaseModel):
    reference_month: str
    invoice_count: int
    total_invoiced: int
    total_paid: int
    total_pending: int
    total_overdue: int


class FinancialTotals(BaseModel):
    invoice_count: int
    total_invoiced: int
    total_paid: int
    total_pending: int
    total_overdue: int


class FinancialSummaryResponse(BaseModel):
    months: list[FinancialMonth]
    totals: FinancialTotals


class ClientStandingItem(BaseModel):
    client_id: str
    name: str
    email: str
    status: str
    overdue_count: int
    overdue_amount: int
