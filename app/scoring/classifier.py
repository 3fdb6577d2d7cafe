"""
Threshold classifier.

Walks the ladder best tier first and returns the first tier whose
min_value the score reaches. Equal min_values resolve to the lower
sort_order. A score below every tier falls to the last tier, which acts
as the floor.
"""

from app.exceptions import NoThresholdMatch
from app.scoring.catalog import ThresholdLadder, ThresholdStep


def classify_step(ladder: ThresholdLadder, score: float) -> ThresholdStep:
    if not ladder.steps:
        raise NoThresholdMatch("Threshold ladder is empty")

    for step in ladder.steps:
        if step.min_value <= score:
            return step

    return ladder.steps[-1]


def classify(ladder: ThresholdLadder, score: float) -> str:
    """Return the status label for a final score."""
    return classify_step(ladder, score).label


def check_ladder(ladder: ThresholdLadder) -> list[str]:
    """Problems with the ladder ordering; empty when min_value strictly decreases."""
    problems = []
    steps = ladder.steps

    orders = [s.sort_order for s in steps]
    if len(set(orders)) != len(orders):
        problems.append("sort_order values must be unique")

    for better, worse in zip(steps, steps[1:]):
        if worse.min_value >= better.min_value:
            problems.append(
                f"{worse.label} (min {worse.min_value}) must have a lower minimum "
                f"than {better.label} (min {better.min_value})"
            )

    return problems
