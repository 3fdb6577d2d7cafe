from app.scoring.catalog import RuleBand, RuleCatalog, ThresholdStep, ThresholdLadder, check_partition
from app.scoring.matcher import match
from app.scoring.weights import category_total, weight_distribution
from app.scoring.evaluator import evaluate, ScoreResult
from app.scoring.classifier import classify

__all__ = [
    "RuleBand",
    "RuleCatalog",
    "ThresholdStep",
    "ThresholdLadder",
    "check_partition",
    "match",
    "category_total",
    "weight_distribution",
    "evaluate",
    "ScoreResult",
    "classify",
]
