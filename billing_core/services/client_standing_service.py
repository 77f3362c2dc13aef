"""Client standing aggregation: Delinquent iff the client holds an Overdue invoice."""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from billing_core.core.enums import ClientStatus, InvoiceStatus
from billing_core.core.exceptions import NotFoundError
from billing_core.core.logging import LogContext, build_log_event
from billing_core.models import Client, Invoice
from billing_core.services.base_service import BaseService

logger = logging.getLogger(__name__)


class ClientStandingService(BaseService):
    """Derives ``Client.status``; the only writer of that column."""

    def derive_status(self, client_id: str) -> str:
        overdue_count = self.db.scalar(
            select(func.count(Invoice.id)).where(
                Invoice.client_id == client_id,
                Invoice.status == InvoiceStatus.OVERDUE.value,
            )
        )
        return ClientStatus.DELINQUENT.value if overdue_count else ClientStatus.ACTIVE.value

    def refresh(self, client_id: str) -> Client:
        """Recompute inside the caller's transaction. Pending invoice writes must be flushed first."""
        client = self.db.get(Client, client_id, with_for_update=True, populate_existing=True)
        if client is None:
            raise NotFoundError(f"Client not found: {client_id}", entity="client", entity_id=client_id)

        self.db.flush()
        derived = self.derive_status(client_id)
        if client.status != derived:
            logger.info(
                "client.standing_changed",
                extra=build_log_event(
                    "client.standing_changed",
                    LogContext(client_id=client_id),
                    previous=client.status,
                    current=derived,
                ),
            )
            client.status = derived
            self.db.flush()
        return client

    def recompute(self, client_id: str) -> Client:
        with self.atomic():
            return self.refresh(client_id)
