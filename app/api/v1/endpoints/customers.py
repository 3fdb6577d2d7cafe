"""Customer endpoints: listing, dashboard aggregates, live scores, import and export."""

import io

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

import pandas as pd

from app.config import get_settings
from app.db.session import get_db
from app.exceptions import EligibilityError
from app.models.customer import Customer
from app.parsers.customer_import import parse_customer_file
from app.scoring.classifier import classify
from app.scoring.evaluator import evaluate
from app.services.scoring_store import ScoringStore, CUSTOMER_SORT_FIELDS
from app.api.v1.errors import http_error
from app.api.v1.schemas.customers import (
    CustomerSummary,
    CustomerDetail,
    CustomerListResponse,
    CustomerScoreResponse,
    RuleScoreDetail,
    DistributionResponse,
    CustomerUploadResponse,
    PortfolioMetricsResponse,
    TopCustomer,
    TopCustomersResponse,
    BranchInsight,
    BranchInsightsResponse,
)

router = APIRouter(prefix="/customers", tags=["Customers"])


def _customer_summary(customer: Customer) -> CustomerSummary:
    return CustomerSummary(
        id=str(customer.id),
        full_name=customer.full_name,
        national_id=customer.national_id,
        account_number=customer.account_number,
        branch=customer.branch,
        final_score=customer.final_score,
        eligibility_status=customer.eligibility_status,
        scored_at=customer.scored_at,
    )


@router.get("", response_model=CustomerListResponse)
def list_customers(
    status: str | None = Query(None, description="Filter by eligibility status, e.g. Green"),
    search: str | None = Query(None, description="Search by name, or national ID if numeric"),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=1000),
    sort_field: str = Query("final_score", description="final_score, full_name or branch"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """List customers with their last stored score and status."""
    if sort_field not in CUSTOMER_SORT_FIELDS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid sort_field '{sort_field}'. Use: {', '.join(CUSTOMER_SORT_FIELDS)}",
        )
    page_size = page_size or get_settings().customer_page_size
    # "all" mirrors the dashboard filter
    if status and status.lower() == "all":
        status = None

    try:
        customers, total = ScoringStore(db).list_customers(
            status=status,
            search=search,
            page=page,
            page_size=page_size,
            sort_field=sort_field,
            descending=sort_order == "desc",
        )
    except EligibilityError as e:
        raise http_error(e)

    return CustomerListResponse(
        total=total,
        page=page,
        page_size=page_size,
        customers=[_customer_summary(c) for c in customers],
    )


@router.get("/distribution", response_model=DistributionResponse)
def get_distribution(db: Session = Depends(get_db)):
    """Customer count and share per eligibility status."""
    try:
        return DistributionResponse(**ScoringStore(db).eligibility_distribution())
    except EligibilityError as e:
        raise http_error(e)


@router.get("/metrics", response_model=PortfolioMetricsResponse)
def get_portfolio_metrics(db: Session = Depends(get_db)):
    """Customer totals, eligible count, average score, balance and success rate."""
    try:
        return PortfolioMetricsResponse(**ScoringStore(db).portfolio_metrics())
    except EligibilityError as e:
        raise http_error(e)


@router.get("/top", response_model=TopCustomersResponse)
def get_top_customers(
    tier: str | None = Query(None, description="Status tier; defaults to the best tier"),
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Customers of a tier with the highest balances."""
    try:
        tier, ranked = ScoringStore(db).top_customers(tier=tier, limit=limit)
    except EligibilityError as e:
        raise http_error(e)

    return TopCustomersResponse(
        tier=tier,
        customers=[
            TopCustomer(**_customer_summary(c).model_dump(), balance=balance)
            for c, balance in ranked
        ],
    )


@router.get("/branches", response_model=BranchInsightsResponse)
def get_branch_insights(
    limit: int | None = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Branches ranked by customer count."""
    try:
        rows = ScoringStore(db).branch_insights(limit=limit)
    except EligibilityError as e:
        raise http_error(e)

    return BranchInsightsResponse(branches=[BranchInsight(**row) for row in rows])


@router.get("/export")
def export_customers(
    status: str | None = Query(None, description="Filter by eligibility status"),
    db: Session = Depends(get_db),
):
    """Export stored customer scores to Excel."""
    try:
        customers = ScoringStore(db).export_customers(status=status)
    except EligibilityError as e:
        raise http_error(e)

    rows = []
    for c in customers:
        rows.append({
            "Full Name": c.full_name,
            "National ID": c.national_id,
            "Reg No": c.account_number,
            "Branch": c.branch,
            "Final Score": c.final_score,
            "Eligibility Status": c.eligibility_status,
            "Scored At": c.scored_at,
        })

    df = pd.DataFrame(rows, columns=[
        "Full Name", "National ID", "Reg No", "Branch",
        "Final Score", "Eligibility Status", "Scored At",
    ])

    buffer = io.BytesIO()
    df.to_excel(buffer, index=False, sheet_name="Customer Scores")
    buffer.seek(0)

    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": "attachment; filename=customer_scores.xlsx"
        },
    )


@router.post("/upload", response_model=CustomerUploadResponse)
async def upload_customers(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """Import customers from an Excel or CSV export. Scores are set by the next recalculation."""
    if not file.filename.lower().endswith((".xlsx", ".xls", ".csv")):
        raise HTTPException(status_code=400, detail="File must be an Excel (.xlsx, .xls) or CSV file")

    content = await file.read()

    try:
        parsed = parse_customer_file(content, file.filename)
    except Exception as e:
        raise HTTPException(status_code=422, detail=f"Failed to parse customer file: {str(e)}")

    customers = [
        Customer(
            full_name=c.full_name,
            national_id=c.national_id,
            account_number=c.account_number,
            branch=c.branch,
            attributes=c.attributes,
        )
        for c in parsed
    ]

    try:
        ScoringStore(db).add_customers(customers)
    except EligibilityError as e:
        raise http_error(e)

    attribute_columns = sorted({key for c in parsed for key in c.attributes})
    return CustomerUploadResponse(
        message=f"Successfully imported {len(customers)} customers",
        file_name=file.filename,
        customers_count=len(customers),
        attribute_columns=attribute_columns,
    )


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    """Get a single customer with raw attributes."""
    try:
        customer = ScoringStore(db).get_customer(customer_id)
    except EligibilityError as e:
        raise http_error(e)

    return CustomerDetail(
        **_customer_summary(customer).model_dump(),
        attributes=customer.attributes or {},
    )


@router.get("/{customer_id}/score", response_model=CustomerScoreResponse)
def get_customer_score(customer_id: str, db: Session = Depends(get_db)):
    """
    Score a customer live against the current rules and thresholds.

    Nothing is stored; compare with stored_score to see the effect of
    edits that have not been recalculated yet.
    """
    store = ScoringStore(db)
    try:
        customer = store.get_customer(customer_id)
        result = evaluate(store.load_catalog(), customer.attributes or {})
        status = classify(store.load_ladder(), result.total_score)
    except EligibilityError as e:
        raise http_error(e)

    return CustomerScoreResponse(
        customer_id=str(customer.id),
        total_score=result.total_score,
        max_possible=result.max_possible,
        status=status,
        stored_score=customer.final_score,
        stored_status=customer.eligibility_status,
        rules=[RuleScoreDetail(**r) for r in result.rule_scores],
    )
