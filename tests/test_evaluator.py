"""Tests for the per-customer score evaluator."""
import math

import pytest

from app.exceptions import InvalidAttributeValue, NoMatchingRule
from app.models.eligibility_rule import RuleCategory
from app.scoring.catalog import RuleCatalog
from app.scoring.evaluator import coerce_attribute, evaluate

from tests.helpers import AVERAGE_BALANCE, balance_bands, band, example_catalog


class TestEvaluate:

    def test_example_customer_scores_strong_weight(self):
        result = evaluate(example_catalog(), {AVERAGE_BALANCE: 120})

        assert result.total_score == 40
        assert len(result.rule_scores) == 1
        detail = result.rule_scores[0]
        assert detail["rule_id"] == "strong"
        assert detail["label"] == "Strong"
        assert detail["value"] == 120
        assert detail["missing"] is False

    def test_updated_weight_changes_score(self):
        assert evaluate(example_catalog(strong_weight=75), {AVERAGE_BALANCE: 120}).total_score == 75

    def test_missing_attribute_scores_as_zero(self):
        result = evaluate(example_catalog(), {}, missing_value=0)

        assert result.total_score == 5
        assert result.rule_scores[0]["label"] == "Weak"
        assert result.rule_scores[0]["missing"] is True

    def test_null_attribute_scores_as_missing(self):
        result = evaluate(example_catalog(), {AVERAGE_BALANCE: None}, missing_value=0)
        assert result.total_score == 5

    def test_missing_value_is_configurable(self):
        result = evaluate(example_catalog(), {}, missing_value=60)
        assert result.total_score == 25

    def test_sums_across_categories(self):
        age = [
            band("Weak", None, 24, 2, rule_name="Age", category=RuleCategory.PERSONAL),
            band("Strong", 25, None, 10, rule_name="Age", category=RuleCategory.PERSONAL),
        ]
        catalog = RuleCatalog(tuple(balance_bands() + age))

        result = evaluate(catalog, {AVERAGE_BALANCE: "55", "Age": 31})

        assert result.total_score == 35
        assert result.max_possible == 50
        assert [r["rule_name"] for r in result.rule_scores] == [AVERAGE_BALANCE, "Age"]

    def test_score_is_not_clamped(self):
        extra = [band("Strong", None, None, 80, rule_name="Bonus")]
        catalog = RuleCatalog(tuple(balance_bands() + extra))

        assert evaluate(catalog, {AVERAGE_BALANCE: 120}).total_score == 120

    def test_attributes_without_rules_are_ignored(self):
        result = evaluate(example_catalog(), {AVERAGE_BALANCE: 12, "Mobile": "0912345678"})
        assert result.total_score == 15

    def test_values_are_rounded_to_band_precision(self):
        catalog = example_catalog()

        assert evaluate(catalog, {AVERAGE_BALANCE: 9.991}, precision=2).rule_scores[0]["label"] == "Weak"
        assert evaluate(catalog, {AVERAGE_BALANCE: 49.999}, precision=2).rule_scores[0]["label"] == "Good"

    def test_broken_family_is_raised_not_defaulted(self):
        catalog = RuleCatalog((band("Weak", None, 10, 5), band("Strong", 20, None, 40)))

        with pytest.raises(NoMatchingRule):
            evaluate(catalog, {AVERAGE_BALANCE: 15})

    def test_empty_catalog_scores_zero(self):
        assert evaluate(RuleCatalog(), {AVERAGE_BALANCE: 120}).total_score == 0


class TestCoerceAttribute:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, 0),
            ("", 0),
            ("   ", 0),
            (42, 42),
            (42.129, 42.13),
            ("1,250.5", 1250.5),
            ("87.5%", 87.5),
            (" 12 % ", 12),
            ("-3", -3),
        ],
    )
    def test_coercion(self, raw, expected):
        assert coerce_attribute(raw, missing_value=0, precision=2) == expected

    @pytest.mark.parametrize("raw", ["n/a", "twelve", True, False, math.nan, math.inf, "inf", [1]])
    def test_non_numeric_values_raise(self, raw):
        with pytest.raises(InvalidAttributeValue):
            coerce_attribute(raw)

    def test_invalid_attribute_fails_evaluation(self):
        with pytest.raises(InvalidAttributeValue):
            evaluate(example_catalog(), {AVERAGE_BALANCE: "unknown"})
