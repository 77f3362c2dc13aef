"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from billing_core.api.v1 import health, invoices, jobs, payments, reports, subscriptions
from billing_core.core.config import get_config


def get_api_router() -> APIRouter:
    api_router = APIRouter(prefix=get_config().API_PREFIX)
    api_router.include_router(health.router)
    api_router.include_router(subscriptions.router)
    api_router.include_router(invoices.router)
    api_router.include_router(payments.router)
    api_router.include_router(jobs.router)
    api_router.include_router(reports.router)
    return api_router
