"""
Weight aggregator.

A category's total is the sum, over each distinct rule name in the
category, of the highest weight among that rule's labeled bands: the
best contribution a customer can earn from the category.
"""

from app.models.eligibility_rule import RuleCategory
from app.scoring.catalog import RuleCatalog


def category_total(catalog: RuleCatalog, category: RuleCategory) -> float:
    best_by_rule: dict[str, float] = {}

    for band in catalog.in_category(category):
        current = best_by_rule.get(band.rule_name)
        if current is None or band.weight_pct > current:
            best_by_rule[band.rule_name] = band.weight_pct

    return round(sum(best_by_rule.values()), 2)


def weight_distribution(catalog: RuleCatalog) -> dict:
    """Per-category totals in category order, plus the grand total.

    Categories without rules report 0. The grand total is the best
    achievable score and is expected, but not required, to be 100.
    """
    categories = {category.value: category_total(catalog, category) for category in RuleCategory}
    return {
        "categories": categories,
        "total": round(sum(categories.values()), 2),
    }
