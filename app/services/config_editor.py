"""
Configuration editor: validated single-entity updates to rules and thresholds.

The only writer of live configuration apart from a history restore. An
update is validated in full before anything is written; on success the
entity is committed and returned. Edits never trigger a recalculation:
stored customer scores change only when a recalculation is confirmed.
"""

import logging
import math
from dataclasses import replace

from app.exceptions import ValidationError
from app.models.eligibility_rule import EligibilityRule, RuleLabel
from app.models.score_threshold import ScoreThreshold
from app.scoring.catalog import ThresholdLadder
from app.scoring.classifier import check_ladder
from app.services.scoring_store import ScoringStore

logger = logging.getLogger(__name__)

RULE_FIELDS = {"label", "min_value", "max_value", "weight_pct"}
THRESHOLD_FIELDS = {"min_value", "color_code", "label", "sort_order"}


def update_rule(store: ScoringStore, rule_id, fields: dict) -> EligibilityRule:
    """
    Validate and apply an update to one rule band.

    Args:
        store: Persistence backend
        rule_id: Id of the rule to update
        fields: Subset of label, min_value, max_value, weight_pct.
                min_value/max_value may be None (unbounded).

    Raises:
        NotFoundError: unknown rule id.
        ValidationError: unknown field, non-finite number, negative weight,
                         both bounds null, or min_value > max_value.
    """
    values = _check_fields(fields, RULE_FIELDS)
    rule = store.get_rule(rule_id)

    clean = {}
    for name, value in values.items():
        if name == "label":
            clean[name] = _rule_label(value)
        elif name == "weight_pct":
            weight = _finite_number(name, value, nullable=False)
            if weight < 0:
                raise ValidationError("weight_pct must be >= 0", field=name)
            clean[name] = weight
        else:
            clean[name] = _finite_number(name, value, nullable=True)

    min_value = clean.get("min_value", rule.min_value)
    max_value = clean.get("max_value", rule.max_value)
    if min_value is None and max_value is None:
        raise ValidationError("min_value and max_value cannot both be null", field="min_value")
    if min_value is not None and max_value is not None and min_value > max_value:
        raise ValidationError(
            f"min_value {min_value} is greater than max_value {max_value}", field="min_value"
        )

    updated = store.save_rule(rule, clean)
    logger.info(
        "Updated rule %s (%s/%s %s): %s",
        updated.id,
        updated.category.value,
        updated.rule_name,
        updated.label.value,
        clean,
    )
    return updated


def update_threshold(store: ScoringStore, threshold_id, fields: dict) -> ScoreThreshold:
    """
    Validate and apply an update to one threshold.

    The ladder as it would look after the update must still have unique
    sort_order values and strictly decreasing min_value from the best tier
    down; otherwise nothing is written.

    Raises:
        NotFoundError: unknown threshold id.
        ValidationError: unknown field, bad value, or a broken ladder order.
    """
    values = _check_fields(fields, THRESHOLD_FIELDS)
    threshold = store.get_threshold(threshold_id)

    clean = {}
    for name, value in values.items():
        if name == "min_value":
            clean[name] = _finite_number(name, value, nullable=False)
        elif name == "sort_order":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError("sort_order must be an integer", field=name)
            clean[name] = value
        else:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} must be a non-empty string", field=name)
            clean[name] = value.strip()

    current = store.load_ladder()
    steps = [
        replace(step, **clean) if step.id == str(threshold.id) else step
        for step in current.steps
    ]
    problems = check_ladder(ThresholdLadder(tuple(steps)))
    if problems:
        raise ValidationError("; ".join(problems), field="min_value")

    updated = store.save_threshold(threshold, clean)
    logger.info("Updated threshold %s (%s): %s", updated.id, updated.label, clean)
    return updated


def _check_fields(fields: dict, allowed: set) -> dict:
    if not fields:
        raise ValidationError("No fields to update")
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(
            f"Cannot update field(s) {sorted(unknown)}; allowed: {sorted(allowed)}",
            field=sorted(unknown)[0],
        )
    return dict(fields)


def _finite_number(name: str, value, nullable: bool) -> float | None:
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{name} cannot be null", field=name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", field=name)
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite", field=name)
    return float(value)


def _rule_label(value) -> RuleLabel:
    try:
        return RuleLabel(value)
    except ValueError:
        raise ValidationError(
            f"label must be one of {[label.value for label in RuleLabel]}", field="label"
        )
