"""
Rule catalog and threshold ladder data model.

Read-only views of the live configuration that the matcher, aggregator,
evaluator and classifier operate on. They are built fresh from the
persistence layer for every operation and never cached, so an edit is
always visible to the next evaluation.

Snapshot records (rules_history) store the same shape via to_record();
from_record() rebuilds them for a restore.
"""

from dataclasses import dataclass, field

from app.models.eligibility_rule import (
    EligibilityRule,
    RuleCategory,
    RuleLabel,
    LABEL_RANK,
    CATEGORY_ORDER,
)
from app.models.score_threshold import ScoreThreshold


@dataclass(frozen=True)
class RuleBand:
    """One labeled band [min_value, max_value] of a rule family. None = unbounded."""

    id: str
    category: RuleCategory
    rule_name: str
    label: RuleLabel
    min_value: float | None
    max_value: float | None
    weight_pct: float

    @property
    def family(self) -> tuple[RuleCategory, str]:
        return (self.category, self.rule_name)

    def contains(self, value: float) -> bool:
        """Inclusive on both ends."""
        if self.min_value is not None and value < self.min_value:
            return False
        if self.max_value is not None and value > self.max_value:
            return False
        return True

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "rule_name": self.rule_name,
            "label": self.label.value,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "weight_pct": self.weight_pct,
        }

    @classmethod
    def from_record(cls, record: dict) -> "RuleBand":
        return cls(
            id=str(record["id"]),
            category=RuleCategory(record["category"]),
            rule_name=record["rule_name"],
            label=RuleLabel(record["label"]),
            min_value=_optional_float(record.get("min_value")),
            max_value=_optional_float(record.get("max_value")),
            weight_pct=float(record.get("weight_pct") or 0),
        )

    @classmethod
    def from_model(cls, rule: EligibilityRule) -> "RuleBand":
        return cls(
            id=str(rule.id),
            category=rule.category,
            rule_name=rule.rule_name,
            label=rule.label,
            min_value=_optional_float(rule.min_value),
            max_value=_optional_float(rule.max_value),
            weight_pct=float(rule.weight_pct or 0),
        )


@dataclass(frozen=True)
class ThresholdStep:
    """One rung of the threshold ladder."""

    id: str
    min_value: float
    color_code: str
    label: str
    sort_order: int

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "min_value": self.min_value,
            "color_code": self.color_code,
            "label": self.label,
            "sort_order": self.sort_order,
        }

    @classmethod
    def from_record(cls, record: dict) -> "ThresholdStep":
        return cls(
            id=str(record["id"]),
            min_value=float(record["min_value"]),
            color_code=record["color_code"],
            label=record["label"],
            sort_order=int(record["sort_order"]),
        )

    @classmethod
    def from_model(cls, threshold: ScoreThreshold) -> "ThresholdStep":
        return cls(
            id=str(threshold.id),
            min_value=float(threshold.min_value),
            color_code=threshold.color_code,
            label=threshold.label,
            sort_order=threshold.sort_order,
        )


@dataclass(frozen=True)
class RuleCatalog:
    """Ordered collection of rule bands."""

    rules: tuple[RuleBand, ...] = ()

    @classmethod
    def from_models(cls, rules) -> "RuleCatalog":
        return cls(tuple(sorted((RuleBand.from_model(r) for r in rules), key=rule_sort_key)))

    @classmethod
    def from_records(cls, records: list[dict]) -> "RuleCatalog":
        return cls(tuple(sorted((RuleBand.from_record(r) for r in records), key=rule_sort_key)))

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def families(self) -> dict[tuple[RuleCategory, str], list[RuleBand]]:
        """Bands grouped by (category, rule_name), in catalog order."""
        grouped: dict[tuple[RuleCategory, str], list[RuleBand]] = {}
        for band in self.rules:
            grouped.setdefault(band.family, []).append(band)
        return grouped

    def family(self, category: RuleCategory, rule_name: str) -> list[RuleBand]:
        return [b for b in self.rules if b.category == category and b.rule_name == rule_name]

    def in_category(self, category: RuleCategory) -> list[RuleBand]:
        return [b for b in self.rules if b.category == category]

    def to_records(self) -> list[dict]:
        return [band.to_record() for band in self.rules]


@dataclass(frozen=True)
class ThresholdLadder:
    """Thresholds ordered by sort_order ascending (best tier first)."""

    steps: tuple[ThresholdStep, ...] = ()

    def __post_init__(self):
        ordered = tuple(sorted(self.steps, key=lambda s: s.sort_order))
        object.__setattr__(self, "steps", ordered)

    @classmethod
    def from_models(cls, thresholds) -> "ThresholdLadder":
        return cls(tuple(ThresholdStep.from_model(t) for t in thresholds))

    @classmethod
    def from_records(cls, records: list[dict]) -> "ThresholdLadder":
        return cls(tuple(ThresholdStep.from_record(r) for r in records))

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def labels(self) -> list[str]:
        return [step.label for step in self.steps]

    def rank(self, label: str) -> int:
        """Position of a tier in the ladder, 0 = best."""
        return self.labels().index(label)

    def to_records(self) -> list[dict]:
        return [step.to_record() for step in self.steps]


# ── Catalog consistency ──


@dataclass
class FamilyIssue:
    category: RuleCategory
    rule_name: str
    kind: str
    detail: str
    rule_ids: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "rule_name": self.rule_name,
            "kind": self.kind,
            "detail": self.detail,
            "rule_ids": self.rule_ids,
        }


def check_partition(catalog: RuleCatalog, resolution: float = 0.01) -> list[FamilyIssue]:
    """
    Check that every rule family partitions the number line.

    Bands are inclusive on both ends, so two bands sharing a boundary value
    overlap. Two bands are contiguous when the next band starts no more than
    `resolution` above the previous band's end.

    Returns:
        List of issues, empty when every family is a clean partition.
    """
    issues: list[FamilyIssue] = []

    for (category, rule_name), bands in catalog.families().items():

        def issue(kind, detail, *offenders):
            issues.append(
                FamilyIssue(category, rule_name, kind, detail, [b.id for b in offenders])
            )

        labels_seen: dict[RuleLabel, RuleBand] = {}
        valid: list[RuleBand] = []
        for band in bands:
            if band.label in labels_seen:
                issue("duplicate_label", f"label {band.label.value} used twice", labels_seen[band.label], band)
            labels_seen[band.label] = band

            if band.min_value is None and band.max_value is None:
                issue("unbounded_band", f"{band.label.value} has no bounds", band)
                continue
            if (
                band.min_value is not None
                and band.max_value is not None
                and band.min_value > band.max_value
            ):
                issue("inverted_band", f"{band.label.value} has min {band.min_value} > max {band.max_value}", band)
                continue
            valid.append(band)

        if not valid:
            continue

        valid.sort(key=_band_start)

        if valid[0].min_value is not None:
            issue("open_low_end", f"values below {valid[0].min_value} match no band", valid[0])
        if all(b.max_value is not None for b in valid):
            highest = max(valid, key=lambda b: b.max_value)
            issue("open_high_end", f"values above {highest.max_value} match no band", highest)

        # reach: the band extending furthest to the right so far
        reach = valid[0]
        for nxt in valid[1:]:
            if reach.max_value is None or nxt.min_value is None or nxt.min_value <= reach.max_value:
                issue(
                    "overlap",
                    f"{reach.label.value} [..{reach.max_value}] and {nxt.label.value} [{nxt.min_value}..] overlap",
                    reach,
                    nxt,
                )
            elif round(nxt.min_value - reach.max_value, 10) > resolution:
                issue(
                    "gap",
                    f"values between {reach.max_value} and {nxt.min_value} match no band",
                    reach,
                    nxt,
                )
            if reach.max_value is not None and (nxt.max_value is None or nxt.max_value > reach.max_value):
                reach = nxt

    return issues


def rule_sort_key(band) -> tuple:
    """Category order, then rule name, then Weak -> Strong."""
    return (
        CATEGORY_ORDER.get(band.category, 99),
        band.rule_name,
        LABEL_RANK.get(band.label, 0),
    )


def _band_start(band: RuleBand) -> float:
    return float("-inf") if band.min_value is None else band.min_value


def _optional_float(value) -> float | None:
    if value is None:
        return None
    return float(value)
