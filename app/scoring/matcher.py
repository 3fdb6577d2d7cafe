"""
Rule matcher.

Selects the single band of a rule family whose [min_value, max_value]
range contains a value. Both bounds are inclusive and a None bound is
unbounded on that side. Anything other than exactly one matching band
means the family no longer partitions the number line, which is raised
rather than scored.
"""

from app.exceptions import NoMatchingRule
from app.models.eligibility_rule import RuleCategory
from app.scoring.catalog import RuleBand, RuleCatalog


def match(
    catalog: RuleCatalog,
    category: RuleCategory,
    rule_name: str,
    value: float,
) -> RuleBand:
    """
    Return the band of (category, rule_name) that contains value.

    Args:
        catalog: Rule catalog to search
        category: Rule category
        rule_name: Attribute name the family scores
        value: Numeric attribute value

    Raises:
        NoMatchingRule: zero or more than one band contains the value.
    """
    return match_band(catalog.family(category, rule_name), category, rule_name, value)


def match_band(
    bands: list[RuleBand],
    category: RuleCategory,
    rule_name: str,
    value: float,
) -> RuleBand:
    """Same as match() for an already-selected family."""
    hits = [band for band in bands if band.contains(value)]

    if len(hits) != 1:
        raise NoMatchingRule(category, rule_name, value, candidates=[b.id for b in hits])

    return hits[0]
