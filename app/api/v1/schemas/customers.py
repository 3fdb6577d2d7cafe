"""Pydantic schemas for customer endpoints."""
from datetime import datetime
from typing import Any
from pydantic import BaseModel


class CustomerSummary(BaseModel):
    id: str
    full_name: str
    national_id: str | None = None
    account_number: str | None = None
    branch: str | None = None
    final_score: float | None = None
    eligibility_status: str | None = None
    scored_at: datetime | None = None


class CustomerDetail(CustomerSummary):
    attributes: dict[str, Any]


class CustomerListResponse(BaseModel):
    total: int
    page: int
    page_size: int
    customers: list[CustomerSummary]


class RuleScoreDetail(BaseModel):
    category: str
    rule_name: str
    raw_value: Any = None
    value: float
    rule_id: str
    label: str
    weight_pct: float
    max_weight: float
    missing: bool


class CustomerScoreResponse(BaseModel):
    """Live score from the current catalog; not stored."""
    customer_id: str
    total_score: float
    max_possible: float
    status: str
    stored_score: float | None = None
    stored_status: str | None = None
    rules: list[RuleScoreDetail]


class StatusShare(BaseModel):
    count: int
    percentage: float


class DistributionResponse(BaseModel):
    total: int
    statuses: dict[str, StatusShare]


class CustomerUploadResponse(BaseModel):
    message: str
    file_name: str
    customers_count: int
    attribute_columns: list[str]


class PortfolioMetricsResponse(BaseModel):
    """Portfolio totals; eligible excludes the floor tier."""
    total_customers: int
    scored_customers: int
    eligible_customers: int
    tiers: dict[str, int]
    average_score: float
    portfolio_balance: float
    average_success_rate: float


class TopCustomer(CustomerSummary):
    balance: float | None = None


class TopCustomersResponse(BaseModel):
    tier: str
    customers: list[TopCustomer]


class BranchInsight(BaseModel):
    branch: str
    count: int


class BranchInsightsResponse(BaseModel):
    branches: list[BranchInsight]
