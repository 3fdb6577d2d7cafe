"""Recalculation endpoint: re-score all customers and save the version."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.exceptions import EligibilityError
from app.services.history_service import EditorInfo
from app.services.recalculation_service import confirm_recalculation
from app.services.scoring_store import ScoringStore
from app.api.v1.errors import http_error
from app.api.v1.schemas.recalculation import (
    RecalculationRequest,
    RecalculationResponse,
)

router = APIRouter(prefix="/recalculation", tags=["Recalculation"])


@router.post("", response_model=RecalculationResponse)
def recalculate_all(
    request: RecalculationRequest = RecalculationRequest(),
    db: Session = Depends(get_db),
):
    """
    Recalculate every customer's score and status from the current rules:
    1. Bulk recalculation in the database
    2. Save the configuration to history (when an editor is given)

    Call this after editing or restoring rules and thresholds.
    """
    editor = None
    if request.editor:
        editor = EditorInfo(
            name=request.editor.name,
            email=request.editor.email,
            avatar_url=request.editor.avatar_url,
        )

    try:
        outcome = confirm_recalculation(
            ScoringStore(db),
            editor=editor,
            save_snapshot=request.save_snapshot,
        )
    except EligibilityError as e:
        raise http_error(e)

    result = outcome.recalculation
    return RecalculationResponse(
        message=f"Recalculation complete: {result.scored} customers scored, {result.failed} failed",
        total_customers=result.total_customers,
        scored=result.scored,
        failed=result.failed,
        status_counts=result.status_counts,
        snapshot_id=outcome.snapshot_id,
        started_at=result.started_at,
        completed_at=result.completed_at,
        errors=result.errors,
    )
