"""Tests for the weight aggregator."""
from app.models.eligibility_rule import RuleCategory
from app.scoring.catalog import RuleCatalog
from app.scoring.weights import category_total, weight_distribution

from tests.helpers import balance_bands, band, example_catalog


def test_category_total_takes_best_band_per_rule():
    assert category_total(example_catalog(), RuleCategory.FINANCIAL) == 40


def test_category_total_ignores_number_of_bands():
    two_bands = RuleCatalog((band("Weak", None, 9.99, 5), band("Strong", 10, None, 40)))
    assert category_total(two_bands, RuleCategory.FINANCIAL) == 40


def test_category_total_sums_distinct_rule_names():
    success_rate = [
        band("Weak", None, 49.99, 0, rule_name="Success Rate"),
        band("Strong", 50, None, 10, rule_name="Success Rate"),
    ]
    catalog = RuleCatalog(tuple(balance_bands() + success_rate))

    assert category_total(catalog, RuleCategory.FINANCIAL) == 50


def test_best_band_need_not_be_strong():
    age = [
        band("Weak", None, 24, 2, rule_name="Age", category=RuleCategory.PERSONAL),
        band("Strong", 25, 60, 10, rule_name="Age", category=RuleCategory.PERSONAL),
        band("Fair", 61, None, 12.5, rule_name="Age", category=RuleCategory.PERSONAL),
    ]
    catalog = RuleCatalog(tuple(age))
    assert category_total(catalog, RuleCategory.PERSONAL) == 12.5


def test_empty_category_is_zero():
    assert category_total(example_catalog(), RuleCategory.FAMILY) == 0


def test_weight_distribution_lists_every_category():
    children = [
        band("Weak", None, 0, 0, rule_name="Number of Children", category=RuleCategory.FAMILY),
        band("Strong", 1, None, 5, rule_name="Number of Children", category=RuleCategory.FAMILY),
    ]
    catalog = RuleCatalog(tuple(balance_bands() + children))

    distribution = weight_distribution(catalog)

    assert distribution == {
        "categories": {"Financial": 40, "Employment": 0, "Personal": 0, "Family": 5},
        "total": 45,
    }
    assert list(distribution["categories"]) == ["Financial", "Employment", "Personal", "Family"]
