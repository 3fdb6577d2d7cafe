"""
Score evaluator: the per-customer scoring formula.

For every (category, rule_name) family in the catalog, the customer's raw
attribute for that rule name is coerced to a number, the matching band is
found, and its weight_pct is added to the total. The final score is the
plain sum of matched weights across all categories; it is not clamped, so
a catalog whose best bands add up past 100 produces scores past 100.

Missing attributes score as `missing_attribute_value` (0 by default), which
lands them in the family's lowest band. Evaluation is pure: it reads the
catalog it is given and nothing else, so bulk recalculation may run it for
many customers in parallel.
"""

import math
from dataclasses import dataclass, field

from app.config import get_settings
from app.exceptions import InvalidAttributeValue
from app.scoring.catalog import RuleCatalog
from app.scoring.matcher import match_band


@dataclass
class ScoreResult:
    """Final score with the matched band of every rule family."""

    total_score: float
    rule_scores: list = field(default_factory=list)

    @property
    def max_possible(self) -> float:
        return round(sum(r["max_weight"] for r in self.rule_scores), 2)

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "max_possible": self.max_possible,
            "rules": self.rule_scores,
        }


def coerce_attribute(
    raw,
    missing_value: float = 0.0,
    precision: int = 2,
) -> float:
    """
    Turn a raw customer attribute into a number for band matching.

    None, empty strings and blanks become missing_value. Strings may carry
    thousands separators and a trailing percent sign ("1,250", "87.5%").

    Raises:
        InvalidAttributeValue: booleans, non-numeric strings, NaN or infinity.
    """
    if raw is None:
        return round(float(missing_value), precision)

    if isinstance(raw, bool):
        raise InvalidAttributeValue(f"Boolean attribute value {raw!r} is not numeric")

    if isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if text.endswith("%"):
            text = text[:-1].strip()
        if not text:
            return round(float(missing_value), precision)
        try:
            value = float(text)
        except ValueError:
            raise InvalidAttributeValue(f"Attribute value {raw!r} is not numeric")
    elif isinstance(raw, (int, float)):
        value = float(raw)
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise InvalidAttributeValue(f"Attribute value {raw!r} is not numeric")

    if not math.isfinite(value):
        raise InvalidAttributeValue(f"Attribute value {raw!r} is not finite")

    return round(value, precision)


def evaluate(
    catalog: RuleCatalog,
    attributes: dict,
    missing_value: float | None = None,
    precision: int | None = None,
) -> ScoreResult:
    """
    Score one customer against the catalog.

    Args:
        catalog: Current rule catalog
        attributes: Mapping of rule name -> raw attribute value
        missing_value: Value used for absent attributes (defaults to settings)
        precision: Decimals kept on attribute values (defaults to settings)

    Returns:
        ScoreResult with total score and per-family breakdown.

    Raises:
        NoMatchingRule: a family has no band, or several bands, for the value.
        InvalidAttributeValue: an attribute cannot be read as a number.
    """
    settings = get_settings()
    if missing_value is None:
        missing_value = settings.missing_attribute_value
    if precision is None:
        precision = settings.value_precision

    attributes = attributes or {}
    rule_scores = []
    total_score = 0.0

    for (category, rule_name), bands in catalog.families().items():
        raw = attributes.get(rule_name)
        value = coerce_attribute(raw, missing_value=missing_value, precision=precision)
        band = match_band(bands, category, rule_name, value)

        total_score += band.weight_pct
        rule_scores.append(
            {
                "category": category.value,
                "rule_name": rule_name,
                "raw_value": raw,
                "value": value,
                "rule_id": band.id,
                "label": band.label.value,
                "weight_pct": band.weight_pct,
                "max_weight": max(b.weight_pct for b in bands),
                "missing": raw is None or (isinstance(raw, str) and not raw.strip()),
            }
        )

    return ScoreResult(
        total_score=round(total_score, 2),
        rule_scores=rule_scores,
    )
