"""Pydantic schemas for threshold endpoints."""
from datetime import datetime
from pydantic import BaseModel


class ThresholdResponse(BaseModel):
    id: str
    min_value: float
    color_code: str
    label: str
    sort_order: int
    updated_at: datetime | None = None


class ThresholdListResponse(BaseModel):
    total: int
    thresholds: list[ThresholdResponse]


class ThresholdUpdateRequest(BaseModel):
    min_value: float | None = None
    color_code: str | None = None
    label: str | None = None
    sort_order: int | None = None


class ClassifyRequest(BaseModel):
    score: float


class ClassifyResponse(BaseModel):
    score: float
    label: str
    color_code: str
