from app.models.eligibility_rule import (
    EligibilityRule,
    RuleCategory,
    RuleLabel,
    LABEL_RANK,
    CATEGORY_ORDER,
)
from app.models.score_threshold import ScoreThreshold
from app.models.rule_history import RuleHistory
from app.models.customer import Customer

__all__ = [
    "EligibilityRule",
    "RuleCategory",
    "RuleLabel",
    "LABEL_RANK",
    "CATEGORY_ORDER",
    "ScoreThreshold",
    "RuleHistory",
    "Customer",
]
