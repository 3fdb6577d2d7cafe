"""
History manager: versioned snapshots of the rule catalog and threshold ladder.

States: Idle -> Snapshotting -> Idle and Idle -> Restoring -> Idle.

A snapshot reads the catalog first and the ladder second inside the same
session. On PostgreSQL at READ COMMITTED this leaves a small window in
which an edit committed between the two reads lands in the ladder half
but not the catalog half; the fixed read order keeps that window
predictable.

A restore writes back min_value, max_value, weight_pct and label for each
snapshot rule, then min_value, color_code, label and sort_order for each
snapshot threshold, matching live rows by id. It never recalculates scores.
With settings.restore_atomic (default) the writes share one transaction
and a failure rolls all of them back; otherwise each entity is committed
as it goes and a failure reports exactly which ones made it.
"""

import enum
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass

from app.config import get_settings
from app.exceptions import (
    BackendUnavailable,
    HistoryBusy,
    NotFoundError,
    PartialRestoreFailure,
    ValidationError,
)
from app.models.rule_history import RuleHistory
from app.scoring.catalog import RuleBand, ThresholdStep
from app.services.scoring_store import ScoringStore

logger = logging.getLogger(__name__)


class HistoryState(str, enum.Enum):
    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    RESTORING = "restoring"


@dataclass
class EditorInfo:
    """Who confirmed the configuration being snapshotted."""

    name: str
    email: str
    avatar_url: str | None = None

    def check(self) -> None:
        """Raise ValidationError unless both name and email are present."""
        if not self.name or not self.name.strip():
            raise ValidationError("editor name is required", field="editor_name")
        if not self.email or not self.email.strip():
            raise ValidationError("editor email is required", field="editor_email")


@dataclass
class RestoreResult:
    snapshot_id: str
    rules_restored: int = 0
    thresholds_restored: int = 0

    def to_dict(self) -> dict:
        return {
            "snapshot_id": self.snapshot_id,
            "rules_restored": self.rules_restored,
            "thresholds_restored": self.thresholds_restored,
        }


class HistoryManager:
    """Creates, lists and restores configuration snapshots.

    The state is shared by every manager in the process, so a snapshot or
    restore started by one request makes the others raise HistoryBusy until
    it finishes. Separate worker processes do not see each other's state.
    """

    _lock = threading.Lock()
    _active = HistoryState.IDLE

    def __init__(self, store: ScoringStore, atomic: bool | None = None):
        self.store = store
        self.atomic = get_settings().restore_atomic if atomic is None else atomic

    @property
    def state(self) -> HistoryState:
        return HistoryManager._active

    @contextmanager
    def _enter(self, state: HistoryState):
        if not HistoryManager._lock.acquire(blocking=False):
            raise HistoryBusy(f"History manager is {HistoryManager._active.value}")
        HistoryManager._active = state
        try:
            yield
        finally:
            HistoryManager._active = HistoryState.IDLE
            HistoryManager._lock.release()

    def create_snapshot(self, editor: EditorInfo) -> RuleHistory:
        """Capture the full current catalog and ladder as one immutable record."""
        editor.check()

        with self._enter(HistoryState.SNAPSHOTTING):
            catalog = self.store.load_catalog()
            ladder = self.store.load_ladder()

            record = self.store.add_snapshot(
                editor_name=editor.name.strip(),
                editor_email=editor.email.strip(),
                editor_avatar_url=editor.avatar_url,
                rules_snapshot=catalog.to_records(),
                thresholds_snapshot=ladder.to_records(),
            )

        logger.info(
            "Saved configuration snapshot %s by %s (%d rules, %d thresholds)",
            record.id,
            record.editor_email,
            len(catalog),
            len(ladder),
        )
        return record

    def list_snapshots(self, limit: int | None = None) -> list[RuleHistory]:
        """Snapshots, newest first."""
        if limit is None:
            limit = get_settings().history_page_size
        return self.store.list_snapshots(limit=limit)

    def restore(self, snapshot: RuleHistory) -> RestoreResult:
        """
        Write a snapshot's values back onto the live rules and thresholds.

        Raises:
            ValidationError: the snapshot holds a malformed record; nothing
                             is written.
            PartialRestoreFailure: a write failed; carries the entities that
                                   were and were not restored.
        """
        try:
            bands = [RuleBand.from_record(r) for r in snapshot.rules_snapshot or []]
            steps = [ThresholdStep.from_record(t) for t in snapshot.thresholds_snapshot or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Snapshot %s is malformed: %s", snapshot.id, str(e))
            raise ValidationError(
                f"Snapshot {snapshot.id} holds a malformed record: {e}", field="snapshot"
            ) from e

        writes = [
            (
                f"rule:{band.id}",
                self.store.write_rule_values,
                band.id,
                {
                    "min_value": band.min_value,
                    "max_value": band.max_value,
                    "weight_pct": band.weight_pct,
                    "label": band.label,
                },
            )
            for band in bands
        ] + [
            (
                f"threshold:{step.id}",
                self.store.write_threshold_values,
                step.id,
                {
                    "min_value": step.min_value,
                    "color_code": step.color_code,
                    "label": step.label,
                    "sort_order": step.sort_order,
                },
            )
            for step in steps
        ]

        result = RestoreResult(snapshot_id=str(snapshot.id))
        keys = [key for key, *_ in writes]
        committed: list[str] = []

        with self._enter(HistoryState.RESTORING):
            logger.info(
                "Restoring snapshot %s (%d writes, %s)",
                snapshot.id,
                len(writes),
                "atomic" if self.atomic else "sequential",
            )

            for key, write, entity_id, values in writes:
                try:
                    write(entity_id, values)
                    if not self.atomic:
                        self.store.commit()
                        committed.append(key)
                except (NotFoundError, BackendUnavailable) as e:
                    self.store.rollback()
                    self._fail(snapshot, key, committed, keys, e)

                if key.startswith("rule:"):
                    result.rules_restored += 1
                else:
                    result.thresholds_restored += 1

            if self.atomic:
                try:
                    self.store.commit()
                except BackendUnavailable as e:
                    self._fail(snapshot, None, [], keys, e)

        logger.info(
            "Restored snapshot %s: %d rules, %d thresholds",
            snapshot.id,
            result.rules_restored,
            result.thresholds_restored,
        )
        return result

    def _fail(self, snapshot, failed_key, committed, keys, error):
        not_restored = [key for key in keys if key not in committed]
        logger.error(
            "Restore of snapshot %s failed at %s: %s (%d restored, %d not restored)",
            snapshot.id,
            failed_key or "commit",
            str(error),
            len(committed),
            len(not_restored),
        )
        raise PartialRestoreFailure(
            f"Restore of snapshot {snapshot.id} failed at {failed_key or 'commit'}: {error}",
            restored=list(committed),
            not_restored=not_restored,
            failed_id=failed_key,
        ) from error
