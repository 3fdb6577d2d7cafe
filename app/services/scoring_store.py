"""
Persistence backend for eligibility configuration, history and customers.

All reads go to the database on every call; nothing here caches the rule
catalog or threshold ladder between calls. Every SQLAlchemy failure is
rolled back and re-raised as BackendUnavailable, with no retry.

The bulk recalculation (recalculate_all_customer_scores) runs here, next to
the data, and applies the same per-customer formula as app.scoring.evaluator.
"""

import logging
import uuid
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import (
    BackendUnavailable,
    EligibilityError,
    InvalidAttributeValue,
    NotFoundError,
    NoThresholdMatch,
)
from app.models.customer import Customer
from app.models.eligibility_rule import EligibilityRule, LABEL_RANK, CATEGORY_ORDER
from app.models.rule_history import RuleHistory
from app.models.score_threshold import ScoreThreshold
from app.scoring.catalog import RuleCatalog, ThresholdLadder
from app.scoring.classifier import classify
from app.scoring.evaluator import coerce_attribute, evaluate

logger = logging.getLogger(__name__)

CUSTOMER_SORT_FIELDS = {
    "final_score": Customer.final_score,
    "full_name": Customer.full_name,
    "branch": Customer.branch,
}


@dataclass
class BulkRecalculationResult:
    """Summary of a bulk recalculation run."""

    total_customers: int = 0
    scored: int = 0
    failed: int = 0
    status_counts: dict = field(default_factory=dict)
    errors: list = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "total_customers": self.total_customers,
            "scored": self.scored,
            "failed": self.failed,
            "status_counts": self.status_counts,
            "errors": self.errors,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


class ScoringStore:
    """Database access for rules, thresholds, history snapshots and customers."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _backend(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Persistence backend failed during %s: %s", action, str(e))
            raise BackendUnavailable(f"Persistence backend failed during {action}: {e}") from e

    def commit(self) -> None:
        with self._backend("commit"):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # ── Rules ──

    def list_rules(self, search: str | None = None) -> list[EligibilityRule]:
        """All rules by category, rule name, then Weak -> Strong."""
        with self._backend("list rules"):
            rules = self.db.query(EligibilityRule).all()

        if search:
            term = search.strip().lower()
            rules = [
                r
                for r in rules
                if term in r.rule_name.lower()
                or term in r.category.value.lower()
                or term in r.label.value.lower()
            ]

        return sorted(
            rules,
            key=lambda r: (CATEGORY_ORDER.get(r.category, 99), r.rule_name, LABEL_RANK.get(r.label, 0)),
        )

    def get_rule(self, rule_id) -> EligibilityRule:
        key = _parse_id("Rule", rule_id)
        with self._backend("load rule"):
            rule = self.db.get(EligibilityRule, key)
        if rule is None:
            raise NotFoundError("Rule", rule_id)
        return rule

    def load_catalog(self) -> RuleCatalog:
        with self._backend("load rule catalog"):
            return RuleCatalog.from_models(self.db.query(EligibilityRule).all())

    def save_rule(self, rule: EligibilityRule, values: dict) -> EligibilityRule:
        """Apply field values to a rule and commit."""
        for name, value in values.items():
            setattr(rule, name, value)
        with self._backend("update rule"):
            self.db.commit()
            self.db.refresh(rule)
        return rule

    # ── Thresholds ──

    def list_thresholds(self) -> list[ScoreThreshold]:
        with self._backend("list thresholds"):
            return (
                self.db.query(ScoreThreshold)
                .order_by(ScoreThreshold.sort_order, ScoreThreshold.min_value.desc())
                .all()
            )

    def get_threshold(self, threshold_id) -> ScoreThreshold:
        key = _parse_id("Threshold", threshold_id)
        with self._backend("load threshold"):
            threshold = self.db.get(ScoreThreshold, key)
        if threshold is None:
            raise NotFoundError("Threshold", threshold_id)
        return threshold

    def load_ladder(self) -> ThresholdLadder:
        with self._backend("load threshold ladder"):
            return ThresholdLadder.from_models(self.db.query(ScoreThreshold).all())

    def save_threshold(self, threshold: ScoreThreshold, values: dict) -> ScoreThreshold:
        """Apply field values to a threshold and commit."""
        for name, value in values.items():
            setattr(threshold, name, value)
        with self._backend("update threshold"):
            self.db.commit()
            self.db.refresh(threshold)
        return threshold

    # ── Restore writes (caller commits) ──

    def write_rule_values(self, rule_id, values: dict) -> None:
        rule = self.get_rule(rule_id)
        for name, value in values.items():
            setattr(rule, name, value)
        with self._backend("write rule"):
            self.db.flush()

    def write_threshold_values(self, threshold_id, values: dict) -> None:
        threshold = self.get_threshold(threshold_id)
        for name, value in values.items():
            setattr(threshold, name, value)
        with self._backend("write threshold"):
            self.db.flush()

    # ── History ──

    def add_snapshot(
        self,
        editor_name: str,
        editor_email: str,
        editor_avatar_url: str | None,
        rules_snapshot: list[dict],
        thresholds_snapshot: list[dict],
    ) -> RuleHistory:
        record = RuleHistory(
            editor_name=editor_name,
            editor_email=editor_email,
            editor_avatar_url=editor_avatar_url,
            rules_snapshot=rules_snapshot,
            thresholds_snapshot=thresholds_snapshot,
        )
        with self._backend("create snapshot"):
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        return record

    def list_snapshots(self, limit: int | None = None) -> list[RuleHistory]:
        """Snapshots, newest first."""
        with self._backend("list snapshots"):
            query = self.db.query(RuleHistory).order_by(RuleHistory.created_at.desc())
            if limit:
                query = query.limit(limit)
            return query.all()

    def get_snapshot(self, snapshot_id) -> RuleHistory:
        key = _parse_id("Snapshot", snapshot_id)
        with self._backend("load snapshot"):
            record = self.db.get(RuleHistory, key)
        if record is None:
            raise NotFoundError("Snapshot", snapshot_id)
        return record

    # ── Customers ──

    def get_customer(self, customer_id) -> Customer:
        key = _parse_id("Customer", customer_id)
        with self._backend("load customer"):
            customer = self.db.get(Customer, key)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def get_customer_attributes(self, customer_id) -> dict:
        """Raw attribute values keyed by rule name."""
        return dict(self.get_customer(customer_id).attributes or {})

    def add_customers(self, customers: list[Customer]) -> list[Customer]:
        with self._backend("import customers"):
            self.db.add_all(customers)
            self.db.commit()
            for customer in customers:
                self.db.refresh(customer)
        return customers

    def list_customers(
        self,
        status: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 100,
        sort_field: str = "final_score",
        descending: bool = True,
    ) -> tuple[list[Customer], int]:
        """One page of customers and the total count matching the filters."""
        query = self.db.query(Customer)

        if status:
            query = query.filter(func.lower(Customer.eligibility_status) == status.lower())

        if search:
            term = search.strip()
            if term.isdigit():
                query = query.filter(
                    or_(Customer.full_name.ilike(f"%{term}%"), Customer.national_id == term)
                )
            else:
                query = query.filter(Customer.full_name.ilike(f"%{term}%"))

        column = CUSTOMER_SORT_FIELDS.get(sort_field, Customer.final_score)
        ordering = column.desc().nulls_last() if descending else column.asc().nulls_last()

        with self._backend("list customers"):
            total = query.count()
            items = (
                query.order_by(ordering, Customer.full_name)
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
        return items, total

    def eligibility_distribution(self) -> dict:
        """Customer count and percentage per status tier."""
        ladder = self.load_ladder()
        with self._backend("count statuses"):
            rows = (
                self.db.query(Customer.eligibility_status, func.count(Customer.id))
                .group_by(Customer.eligibility_status)
                .all()
            )

        counts = {status: count for status, count in rows}
        total = sum(counts.values())

        def entry(count: int) -> dict:
            pct = round(count / total * 100, 1) if total else 0.0
            return {"count": count, "percentage": pct}

        distribution = {label: entry(counts.pop(label, 0)) for label in ladder.labels()}
        unscored = counts.pop(None, 0)
        # statuses written under labels that have since been renamed
        for label, count in sorted(counts.items()):
            distribution[label] = entry(count)
        distribution["Unscored"] = entry(unscored)

        return {"total": total, "statuses": distribution}

    def export_customers(self, status: str | None = None) -> list[Customer]:
        """Every customer (optionally one status), best stored score first."""
        with self._backend("export customers"):
            query = self.db.query(Customer)
            if status:
                query = query.filter(Customer.eligibility_status == status)
            return query.order_by(Customer.final_score.desc().nulls_last(), Customer.full_name).all()

    # ── Dashboard aggregates ──

    def portfolio_metrics(
        self,
        balance_attribute: str | None = None,
        success_rate_attribute: str | None = None,
    ) -> dict:
        """
        Portfolio-wide totals for the dashboard.

        Eligible customers are those in any tier except the floor (the last
        threshold). Balances and success rates come from raw attributes;
        values that cannot be read as numbers are left out of the sums.
        """
        settings = get_settings()
        balance_attribute = balance_attribute or settings.balance_attribute
        success_rate_attribute = success_rate_attribute or settings.success_rate_attribute

        ladder = self.load_ladder()
        with self._backend("load portfolio"):
            customers = self.db.query(Customer).all()

        tiers = Counter(c.eligibility_status for c in customers if c.eligibility_status)
        scores = [c.final_score for c in customers if c.final_score is not None]

        portfolio_balance = 0.0
        rates = []
        for customer in customers:
            balance = _attribute_number(customer.attributes, balance_attribute)
            if balance is not None:
                portfolio_balance += balance
            rate = _attribute_number(customer.attributes, success_rate_attribute)
            if rate is not None:
                rates.append(rate)

        labels = ladder.labels()
        eligible_labels = labels[:-1]

        return {
            "total_customers": len(customers),
            "scored_customers": sum(tiers.values()),
            "eligible_customers": sum(tiers.get(label, 0) for label in eligible_labels),
            "tiers": {label: tiers.get(label, 0) for label in labels},
            "average_score": round(sum(scores) / len(scores), 2) if scores else 0.0,
            "portfolio_balance": round(portfolio_balance, 2),
            "average_success_rate": round(sum(rates) / len(rates), 2) if rates else 0.0,
        }

    def top_customers(
        self,
        tier: str | None = None,
        limit: int | None = None,
        balance_attribute: str | None = None,
    ) -> tuple[str, list[tuple[Customer, float | None]]]:
        """
        Customers of one tier (the best tier by default), highest balance
        first, then highest final score.

        Returns:
            The tier label and (customer, balance) pairs.

        Raises:
            NoThresholdMatch: no tier was given and the ladder is empty.
        """
        settings = get_settings()
        limit = limit or settings.top_customers_limit
        balance_attribute = balance_attribute or settings.balance_attribute

        if tier is None:
            ladder = self.load_ladder()
            if not ladder.steps:
                raise NoThresholdMatch("Threshold ladder is empty; there is no best tier")
            tier = ladder.steps[0].label

        with self._backend("load top customers"):
            customers = (
                self.db.query(Customer)
                .filter(func.lower(Customer.eligibility_status) == tier.lower())
                .all()
            )

        ranked = [(c, _attribute_number(c.attributes, balance_attribute)) for c in customers]
        ranked.sort(
            key=lambda pair: (
                pair[1] if pair[1] is not None else float("-inf"),
                pair[0].final_score if pair[0].final_score is not None else float("-inf"),
            ),
            reverse=True,
        )
        return tier, ranked[:limit]

    def branch_insights(self, limit: int | None = None) -> list[dict]:
        """Branches with the most customers."""
        limit = limit or get_settings().branch_insights_limit
        customer_count = func.count(Customer.id)

        with self._backend("count branches"):
            rows = (
                self.db.query(Customer.branch, customer_count)
                .filter(Customer.branch.isnot(None))
                .group_by(Customer.branch)
                .order_by(customer_count.desc(), Customer.branch)
                .limit(limit)
                .all()
            )

        return [{"branch": branch, "count": count} for branch, count in rows]

    # ── Bulk recalculation ──

    def recalculate_all_customer_scores(self) -> BulkRecalculationResult:
        """
        Re-score every customer against the current catalog and ladder.

        Reads the catalog, then the ladder, once for the whole run. A
        customer whose attributes cannot be scored keeps its previous stored
        score and is reported in result.errors.

        Raises:
            NoThresholdMatch: the ladder is empty, so nothing can be classified.
            BackendUnavailable: a read or the final commit failed.
        """
        result = BulkRecalculationResult()

        catalog = self.load_catalog()
        ladder = self.load_ladder()
        if not ladder.steps:
            raise NoThresholdMatch("Threshold ladder is empty; cannot classify customers")

        with self._backend("load customers"):
            customers = self.db.query(Customer).all()

        result.total_customers = len(customers)
        logger.info(
            "Starting bulk recalculation: %d customers, %d rules, %d thresholds",
            len(customers),
            len(catalog),
            len(ladder),
        )

        statuses: Counter = Counter()
        scored_at = datetime.utcnow()

        for customer in customers:
            try:
                score_result = evaluate(catalog, customer.attributes)
                status = classify(ladder, score_result.total_score)
            except EligibilityError as e:
                logger.error("Could not score customer %s: %s", customer.id, str(e))
                result.failed += 1
                result.errors.append(f"Customer {customer.id}: {str(e)}")
                continue

            customer.final_score = score_result.total_score
            customer.eligibility_status = status
            customer.scored_at = scored_at
            statuses[status] += 1
            result.scored += 1

        with self._backend("store recalculated scores"):
            self.db.commit()

        result.status_counts = {label: statuses.get(label, 0) for label in ladder.labels()}
        result.completed_at = datetime.utcnow()

        logger.info(
            "Bulk recalculation complete: %d scored, %d failed",
            result.scored,
            result.failed,
        )

        return result


def _parse_id(entity: str, value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError(entity, value)


def _attribute_number(attributes: dict | None, name: str) -> float | None:
    """A raw attribute as a number, or None when absent or unreadable."""
    raw = (attributes or {}).get(name)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        return coerce_attribute(raw)
    except InvalidAttributeValue:
        return None
