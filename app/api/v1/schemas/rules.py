"""Pydantic schemas for rule endpoints."""
from datetime import datetime
from pydantic import BaseModel


class RuleResponse(BaseModel):
    """Single rule band."""
    id: str
    category: str
    rule_name: str
    label: str
    min_value: float | None = None
    max_value: float | None = None
    weight_pct: float
    updated_at: datetime | None = None


class RuleListResponse(BaseModel):
    total: int
    rules: list[RuleResponse]


class RuleUpdateRequest(BaseModel):
    """Fields to change. Send null for min_value/max_value to unbound that side."""
    label: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    weight_pct: float | None = None


class WeightDistributionResponse(BaseModel):
    categories: dict[str, float]
    total: float


class PartitionIssue(BaseModel):
    category: str
    rule_name: str
    kind: str
    detail: str
    rule_ids: list[str]


class CatalogValidationResponse(BaseModel):
    """Rule family consistency report for validation tooling."""
    consistent: bool
    issues: list[PartitionIssue]
    weights: WeightDistributionResponse
