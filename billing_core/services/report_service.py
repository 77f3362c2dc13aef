"""Back-office reporting over invoices and client standing."""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, select

from billing_core.core.enums import ClientStatus, InvoiceStatus, SubscriptionStatus
from billing_core.core.exceptions import ValidationError
from billing_core.models import Client, Invoice, Subscription
from billing_core.services.base_service import BaseService
from billing_core.utils.periods import parse_reference_month


def _sum_when(status: str):
    return func.coalesce(func.sum(case((Invoice.status == status, Invoice.amount), else_=0)), 0)


class ReportService(BaseService):
    """Read-only aggregates; amounts are minor units."""

    def financial_summary(self, reference_month: str | None = None) -> dict[str, Any]:
        stmt = select(
            Invoice.reference_month,
            func.count(Invoice.id),
            func.coalesce(func.sum(Invoice.amount), 0),
            _sum_when(InvoiceStatus.PAID.value),
            _sum_when(InvoiceStatus.PENDING.value),
            _sum_when(InvoiceStatus.OVERDUE.value),
        ).group_by(Invoice.reference_month)
        if reference_month is not None:
            parse_reference_month(reference_month)
            stmt = stmt.where(Invoice.reference_month == reference_month)

        months = []
        totals = {"invoice_count": 0, "total_invoiced": 0, "total_paid": 0, "total_pending": 0, "total_overdue": 0}
        for month, count, invoiced, paid, pending, overdue in self.db.execute(stmt.order_by(Invoice.reference_month)):
            row = {
                "reference_month": month,
                "invoice_count": int(count),
                "total_invoiced": int(invoiced),
                "total_paid": int(paid),
                "total_pending": int(pending),
                "total_overdue": int(overdue),
            }
            months.append(row)
            for key in totals:
                totals[key] += row[key]
        return {"months": months, "totals": totals}

    def client_standing_report(
        self,
        status: str = ClientStatus.DELINQUENT.value,
        plan_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            status = ClientStatus(status).value
        except ValueError as exc:
            raise ValidationError(f"Unknown client status: {status}", field="status") from exc

        overdue = (
            select(
                Invoice.client_id.label("client_id"),
                func.count(Invoice.id).label("overdue_count"),
                func.sum(Invoice.amount).label("overdue_amount"),
            )
            .where(Invoice.status == InvoiceStatus.OVERDUE.value)
            .group_by(Invoice.client_id)
            .subquery()
        )
        stmt = (
            select(Client, overdue.c.overdue_count, overdue.c.overdue_amount)
            .outerjoin(overdue, overdue.c.client_id == Client.id)
            .where(Client.status == status)
            .order_by(Client.name)
        )
        if plan_ids:
            subscribed = select(Subscription.client_id).where(
                Subscription.plan_id.in_(plan_ids),
                Subscription.status != SubscriptionStatus.CANCELLED.value,
            )
            stmt = stmt.where(Client.id.in_(subscribed))

        return [
            {
                "client_id": client.id,
                "name": client.name,
                "email": client.email,
                "status": client.status,
                "overdue_count": int(overdue_count or 0),
                "overdue_amount": int(overdue_amount or 0),
            }
            for client, overdue_count, overdue_amount in self.db.execute(stmt)
        ]
