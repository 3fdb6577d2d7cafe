"""Rule endpoints: list, edit, weight distribution and consistency check."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db.session import get_db
from app.exceptions import EligibilityError
from app.models.eligibility_rule import EligibilityRule
from app.scoring.catalog import check_partition
from app.scoring.weights import weight_distribution
from app.services.config_editor import update_rule
from app.services.scoring_store import ScoringStore
from app.api.v1.errors import http_error
from app.api.v1.schemas.rules import (
    RuleResponse,
    RuleListResponse,
    RuleUpdateRequest,
    WeightDistributionResponse,
    CatalogValidationResponse,
    PartitionIssue,
)

router = APIRouter(prefix="/rules", tags=["Rules"])


def _rule_to_response(rule: EligibilityRule) -> RuleResponse:
    return RuleResponse(
        id=str(rule.id),
        category=rule.category.value,
        rule_name=rule.rule_name,
        label=rule.label.value,
        min_value=rule.min_value,
        max_value=rule.max_value,
        weight_pct=rule.weight_pct,
        updated_at=rule.updated_at,
    )


@router.get("", response_model=RuleListResponse)
def list_rules(
    search: str | None = Query(None, description="Filter by rule name, category or label"),
    db: Session = Depends(get_db),
):
    """List rules by category, rule name, then Weak -> Strong."""
    try:
        rules = ScoringStore(db).list_rules(search=search)
    except EligibilityError as e:
        raise http_error(e)

    return RuleListResponse(total=len(rules), rules=[_rule_to_response(r) for r in rules])


@router.get("/weights", response_model=WeightDistributionResponse)
def get_weight_distribution(db: Session = Depends(get_db)):
    """Best achievable weight per category (max band weight per rule, summed)."""
    try:
        catalog = ScoringStore(db).load_catalog()
    except EligibilityError as e:
        raise http_error(e)

    return WeightDistributionResponse(**weight_distribution(catalog))


@router.get("/validation", response_model=CatalogValidationResponse)
def validate_catalog(db: Session = Depends(get_db)):
    """
    Check that every rule family covers the number line exactly once.

    Reports overlaps, gaps, open ends and malformed bands, plus the
    per-category weight totals.
    """
    try:
        catalog = ScoringStore(db).load_catalog()
    except EligibilityError as e:
        raise http_error(e)

    issues = check_partition(catalog, resolution=get_settings().band_resolution)

    return CatalogValidationResponse(
        consistent=not issues,
        issues=[PartitionIssue(**issue.to_dict()) for issue in issues],
        weights=WeightDistributionResponse(**weight_distribution(catalog)),
    )


@router.patch("/{rule_id}", response_model=RuleResponse)
def patch_rule(
    rule_id: str,
    request: RuleUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    Update one rule band.

    Only the fields present in the body are changed. Customer scores are
    not recalculated; confirm a recalculation to apply the change.
    """
    try:
        rule = update_rule(ScoringStore(db), rule_id, request.model_dump(exclude_unset=True))
    except EligibilityError as e:
        raise http_error(e)

    return _rule_to_response(rule)
