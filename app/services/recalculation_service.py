"""
Recalculation service: the confirmed "recalculate all" flow.

Runs in sequence:
  1. Bulk recalculation in the persistence backend
  2. History snapshot of the configuration that produced the new scores

Keeps the API layer thin by encapsulating the flow here.
"""

import logging
from dataclasses import dataclass

from app.config import get_settings
from app.services.history_service import EditorInfo, HistoryManager
from app.services.scoring_store import BulkRecalculationResult, ScoringStore

logger = logging.getLogger(__name__)


@dataclass
class RecalculationOutcome:
    """Bulk recalculation result plus the snapshot saved for it, if any."""

    recalculation: BulkRecalculationResult
    snapshot_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "recalculation": self.recalculation.to_dict(),
            "snapshot_id": self.snapshot_id,
        }


def trigger_bulk_recalculation(store: ScoringStore) -> BulkRecalculationResult:
    """Fire-and-await the backend's bulk recalculation."""
    logger.info("Triggering bulk recalculation")
    return store.recalculate_all_customer_scores()


def confirm_recalculation(
    store: ScoringStore,
    editor: EditorInfo | None = None,
    save_snapshot: bool | None = None,
) -> RecalculationOutcome:
    """
    Recalculate every customer's score, then snapshot the configuration.

    The snapshot is taken only after the recalculation succeeded, and only
    when an editor is known and snapshots are enabled. A supplied editor is
    checked first, so a bad one leaves every stored score untouched.

    Args:
        store: Persistence backend
        editor: Who confirmed the recalculation
        save_snapshot: Override settings.snapshot_on_recalculation

    Raises:
        ValidationError: editor name or email is blank.
    """
    if save_snapshot is None:
        save_snapshot = get_settings().snapshot_on_recalculation
    if editor is not None:
        editor.check()

    outcome = RecalculationOutcome(recalculation=trigger_bulk_recalculation(store))

    if save_snapshot and editor is not None:
        record = HistoryManager(store).create_snapshot(editor)
        outcome.snapshot_id = str(record.id)
    elif save_snapshot:
        logger.info("No editor supplied; recalculation not saved to history")

    return outcome
