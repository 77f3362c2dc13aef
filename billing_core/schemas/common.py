"""Common schema module."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ErrorEnvelope(BaseModel):
    """Body of every billing error response; transition errors add ``current``/``target``."""

    model_config = ConfigDict(extra="allow")

    status: str = "error"
    error_code: str
    detail: str
    entity: str | None = None
    entity_id: str | None = None
    field: str | None = None
