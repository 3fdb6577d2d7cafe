"""Threshold endpoints: list, edit and classify."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.exceptions import EligibilityError
from app.models.score_threshold import ScoreThreshold
from app.scoring.classifier import classify_step
from app.services.config_editor import update_threshold
from app.services.scoring_store import ScoringStore
from app.api.v1.errors import http_error
from app.api.v1.schemas.thresholds import (
    ThresholdResponse,
    ThresholdListResponse,
    ThresholdUpdateRequest,
    ClassifyRequest,
    ClassifyResponse,
)

router = APIRouter(prefix="/thresholds", tags=["Thresholds"])


def _threshold_to_response(threshold: ScoreThreshold) -> ThresholdResponse:
    return ThresholdResponse(
        id=str(threshold.id),
        min_value=threshold.min_value,
        color_code=threshold.color_code,
        label=threshold.label,
        sort_order=threshold.sort_order,
        updated_at=threshold.updated_at,
    )


@router.get("", response_model=ThresholdListResponse)
def list_thresholds(db: Session = Depends(get_db)):
    """List thresholds, best tier first."""
    try:
        thresholds = ScoringStore(db).list_thresholds()
    except EligibilityError as e:
        raise http_error(e)

    return ThresholdListResponse(
        total=len(thresholds),
        thresholds=[_threshold_to_response(t) for t in thresholds],
    )


@router.patch("/{threshold_id}", response_model=ThresholdResponse)
def patch_threshold(
    threshold_id: str,
    request: ThresholdUpdateRequest,
    db: Session = Depends(get_db),
):
    """Update one threshold. The ladder must keep strictly decreasing minimums."""
    try:
        threshold = update_threshold(
            ScoringStore(db), threshold_id, request.model_dump(exclude_unset=True)
        )
    except EligibilityError as e:
        raise http_error(e)

    return _threshold_to_response(threshold)


@router.post("/classify", response_model=ClassifyResponse)
def classify_score(request: ClassifyRequest, db: Session = Depends(get_db)):
    """Classify a score against the current ladder."""
    try:
        step = classify_step(ScoringStore(db).load_ladder(), request.score)
    except EligibilityError as e:
        raise http_error(e)

    return ClassifyResponse(score=request.score, label=step.label, color_code=step.color_code)
