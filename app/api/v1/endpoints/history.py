"""Rule history endpoints: list, snapshot and restore configuration versions."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.exceptions import EligibilityError
from app.models.rule_history import RuleHistory
from app.services.history_service import EditorInfo, HistoryManager
from app.services.scoring_store import ScoringStore
from app.api.v1.errors import http_error
from app.api.v1.schemas.history import (
    EditorRequest,
    SnapshotResponse,
    SnapshotListResponse,
    SnapshotRule,
    SnapshotThreshold,
    RestoreResponse,
)

router = APIRouter(prefix="/history", tags=["History"])


def _snapshot_to_response(record: RuleHistory) -> SnapshotResponse:
    return SnapshotResponse(
        id=str(record.id),
        created_at=record.created_at,
        editor_name=record.editor_name,
        editor_email=record.editor_email,
        editor_avatar_url=record.editor_avatar_url,
        rules_snapshot=[SnapshotRule(**r) for r in record.rules_snapshot or []],
        thresholds_snapshot=[SnapshotThreshold(**t) for t in record.thresholds_snapshot or []],
    )


@router.get("", response_model=SnapshotListResponse)
def list_snapshots(
    limit: int | None = Query(None, ge=1, le=500, description="Maximum snapshots to return"),
    db: Session = Depends(get_db),
):
    """List configuration snapshots, newest first."""
    try:
        records = HistoryManager(ScoringStore(db)).list_snapshots(limit=limit)
    except EligibilityError as e:
        raise http_error(e)

    return SnapshotListResponse(
        total=len(records),
        snapshots=[_snapshot_to_response(r) for r in records],
    )


@router.post("", response_model=SnapshotResponse, status_code=201)
def create_snapshot(request: EditorRequest, db: Session = Depends(get_db)):
    """Save the current rules and thresholds as a new version."""
    editor = EditorInfo(name=request.name, email=request.email, avatar_url=request.avatar_url)
    try:
        record = HistoryManager(ScoringStore(db)).create_snapshot(editor)
    except EligibilityError as e:
        raise http_error(e)

    return _snapshot_to_response(record)


@router.post("/{snapshot_id}/restore", response_model=RestoreResponse)
def restore_snapshot(snapshot_id: str, db: Session = Depends(get_db)):
    """
    Write a saved version back onto the live rules and thresholds.

    Stored customer scores are unchanged until a recalculation is confirmed.
    """
    store = ScoringStore(db)
    try:
        record = store.get_snapshot(snapshot_id)
        result = HistoryManager(store).restore(record)
    except EligibilityError as e:
        raise http_error(e)

    return RestoreResponse(
        message="Configuration restored. Confirm a recalculation to apply it to customer scores.",
        **result.to_dict(),
    )
