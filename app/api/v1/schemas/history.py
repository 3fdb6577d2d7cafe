"""Pydantic schemas for rule history endpoints."""
from datetime import datetime
from pydantic import BaseModel


class EditorRequest(BaseModel):
    """Who is saving the configuration."""
    name: str
    email: str
    avatar_url: str | None = None


class SnapshotRule(BaseModel):
    id: str
    category: str
    rule_name: str
    label: str
    min_value: float | None = None
    max_value: float | None = None
    weight_pct: float


class SnapshotThreshold(BaseModel):
    id: str
    min_value: float
    color_code: str
    label: str
    sort_order: int


class SnapshotResponse(BaseModel):
    """Single history snapshot."""
    id: str
    created_at: datetime
    editor_name: str
    editor_email: str
    editor_avatar_url: str | None = None
    rules_snapshot: list[SnapshotRule]
    thresholds_snapshot: list[SnapshotThreshold]


class SnapshotListResponse(BaseModel):
    total: int
    snapshots: list[SnapshotResponse]


class RestoreResponse(BaseModel):
    message: str
    snapshot_id: str
    rules_restored: int
    thresholds_restored: int
