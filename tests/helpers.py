"""In-memory catalog builders for the pure scoring tests."""
import uuid

from app.models.eligibility_rule import RuleCategory, RuleLabel
from app.scoring.catalog import RuleBand, RuleCatalog, ThresholdLadder, ThresholdStep

AVERAGE_BALANCE = "Average Balance"

LABELS = [RuleLabel.WEAK, RuleLabel.FAIR, RuleLabel.GOOD, RuleLabel.STRONG]


def band(label, min_value, max_value, weight_pct, rule_name=AVERAGE_BALANCE,
         category=RuleCategory.FINANCIAL, band_id=None) -> RuleBand:
    return RuleBand(
        id=band_id or str(uuid.uuid4()),
        category=category,
        rule_name=rule_name,
        label=RuleLabel(label),
        min_value=min_value,
        max_value=max_value,
        weight_pct=weight_pct,
    )


def balance_bands(strong_weight: float = 40) -> list[RuleBand]:
    return [
        band("Weak", None, 9.99, 5, band_id="weak"),
        band("Fair", 10, 49.99, 15, band_id="fair"),
        band("Good", 50, 99.99, 25, band_id="good"),
        band("Strong", 100, None, strong_weight, band_id="strong"),
    ]


def example_catalog(strong_weight: float = 40) -> RuleCatalog:
    return RuleCatalog(tuple(balance_bands(strong_weight)))


def example_ladder() -> ThresholdLadder:
    return ThresholdLadder((
        ThresholdStep(id="amber", min_value=0, color_code="#F59E0B", label="Amber", sort_order=3),
        ThresholdStep(id="green", min_value=70, color_code="#22C55E", label="Green", sort_order=1),
        ThresholdStep(id="yellow", min_value=40, color_code="#EAB308", label="Yellow", sort_order=2),
    ))


def partition_bands(cuts: list[int], rule_name=AVERAGE_BALANCE, category=RuleCategory.FINANCIAL):
    """Contiguous bands split at the given integer cut points (one more band than cuts)."""
    cuts = sorted(cuts)
    bounds = [None] + cuts
    bands = []
    for i, lower in enumerate(bounds):
        upper = round(cuts[i] - 0.01, 2) if i < len(cuts) else None
        bands.append(
            band(LABELS[i], None if lower is None else float(lower), upper, float(5 * (i + 1)),
                 rule_name=rule_name, category=category)
        )
    return bands
