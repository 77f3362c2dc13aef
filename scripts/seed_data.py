"""Seed a local database with the default plans and a demo client."""

from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import select

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from billing_core.database.db import get_db_session
from billing_core.database.init_db import create_schema
from billing_core.models import Client, Plan

DEFAULT_PLANS = (
    {"name": "Free", "slug": "free", "price": 0, "max_artifacts_per_month": 3},
    {"name": "Pro", "slug": "pro", "price": 4990, "max_artifacts_per_month": 50},
    {"name": "Business", "slug": "business", "price": 14990, "max_artifacts_per_month": 500},
)


def seed() -> None:
    create_schema()
    with get_db_session() as db:
        for plan_fields in DEFAULT_PLANS:
            if db.scalar(select(Plan).where(Plan.slug == plan_fields["slug"])) is None:
                db.add(Plan(**plan_fields))
                print(f"Seeded plan: {plan_fields['slug']}")
        if db.scalar(select(Client).where(Client.email == "demo@example.com")) is None:
            db.add(Client(name="Demo Client", email="demo@example.com", tax_id="000.000.000-00"))
            print("Seeded client: demo@example.com")
        db.commit()


if __name__ == "__main__":
    seed()
