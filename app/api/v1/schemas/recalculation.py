"""Pydantic schemas for recalculation endpoints."""
from datetime import datetime
from pydantic import BaseModel

from app.api.v1.schemas.history import EditorRequest


class RecalculationRequest(BaseModel):
    """Request body for confirming a recalculation."""
    editor: EditorRequest | None = None
    save_snapshot: bool = True


class RecalculationResponse(BaseModel):
    """Response from running the bulk recalculation."""
    message: str
    total_customers: int
    scored: int
    failed: int
    status_counts: dict[str, int]
    snapshot_id: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    errors: list[str]
