"""Tests for bulk recalculation, customer listing and the status distribution."""
import pytest

from app.exceptions import NoThresholdMatch, ValidationError
from app.models import Customer
from app.services.history_service import EditorInfo
from app.services.recalculation_service import confirm_recalculation, trigger_bulk_recalculation

from tests.helpers import AVERAGE_BALANCE


@pytest.fixture
def customers(db_session):
    records = [
        Customer(full_name="Layla Hassan", national_id="1987001", branch="Amman", attributes={AVERAGE_BALANCE: 120}),
        Customer(full_name="Karim Nasser", national_id="1987002", branch="Irbid", attributes={AVERAGE_BALANCE: "75"}),
        Customer(full_name="Noor Haddad", national_id="1987003", branch="Amman", attributes={}),
        Customer(full_name="Sami Odeh", national_id="1987004", branch="Zarqa", attributes={AVERAGE_BALANCE: 5000}),
    ]
    db_session.add_all(records)
    db_session.commit()
    return {c.full_name: c for c in records}


class TestBulkRecalculation:

    def test_scores_and_classifies_every_customer(self, store, example_config, customers):
        result = trigger_bulk_recalculation(store)

        assert result.total_customers == 4
        assert result.scored == 4
        assert result.failed == 0
        assert result.status_counts == {"Green": 0, "Yellow": 2, "Amber": 2}
        assert result.completed_at is not None

        layla = store.get_customer(customers["Layla Hassan"].id)
        assert (layla.final_score, layla.eligibility_status) == (40, "Yellow")
        karim = store.get_customer(customers["Karim Nasser"].id)
        assert (karim.final_score, karim.eligibility_status) == (25, "Amber")
        noor = store.get_customer(customers["Noor Haddad"].id)
        assert (noor.final_score, noor.eligibility_status) == (5, "Amber")
        assert noor.scored_at is not None

    def test_unscorable_customer_keeps_previous_score(self, store, db_session, example_config, customers):
        broken = Customer(
            full_name="Rana Khoury",
            attributes={AVERAGE_BALANCE: "n/a"},
            final_score=33,
            eligibility_status="Amber",
        )
        db_session.add(broken)
        db_session.commit()

        result = store.recalculate_all_customer_scores()

        assert result.scored == 4
        assert result.failed == 1
        assert str(broken.id) in result.errors[0]
        reloaded = store.get_customer(broken.id)
        assert (reloaded.final_score, reloaded.eligibility_status) == (33, "Amber")

    def test_empty_ladder_is_rejected(self, store, example_rules, customers):
        with pytest.raises(NoThresholdMatch):
            store.recalculate_all_customer_scores()

        assert store.get_customer(customers["Layla Hassan"].id).final_score is None

    def test_new_weights_apply_on_next_run(self, store, example_config, customers):
        rules, _ = example_config
        rules["Strong"].weight_pct = 75
        store.commit()

        store.recalculate_all_customer_scores()

        layla = store.get_customer(customers["Layla Hassan"].id)
        assert (layla.final_score, layla.eligibility_status) == (75, "Green")

    def test_result_serializes(self, store, example_config, customers):
        data = store.recalculate_all_customer_scores().to_dict()
        assert data["scored"] == 4
        assert data["errors"] == []
        assert isinstance(data["started_at"], str)


class TestConfirmRecalculation:

    def test_saves_snapshot_after_recalculation(self, store, example_config, customers):
        outcome = confirm_recalculation(
            store, editor=EditorInfo(name="Amira Saleh", email="amira.saleh@example.com")
        )

        assert outcome.recalculation.scored == 4
        assert outcome.snapshot_id is not None
        snapshot = store.get_snapshot(outcome.snapshot_id)
        assert len(snapshot.rules_snapshot) == 4
        assert len(snapshot.thresholds_snapshot) == 3

    def test_without_editor_no_snapshot_is_saved(self, store, example_config, customers):
        outcome = confirm_recalculation(store)

        assert outcome.snapshot_id is None
        assert store.list_snapshots() == []

    def test_snapshot_can_be_disabled(self, store, example_config, customers):
        outcome = confirm_recalculation(
            store,
            editor=EditorInfo(name="Amira Saleh", email="amira.saleh@example.com"),
            save_snapshot=False,
        )
        assert outcome.snapshot_id is None

    def test_failed_recalculation_saves_nothing(self, store, example_rules, customers):
        with pytest.raises(NoThresholdMatch):
            confirm_recalculation(store, editor=EditorInfo(name="Amira", email="amira@example.com"))

        assert store.list_snapshots() == []


class TestCustomers:

    def test_distribution_follows_ladder_order(self, store, example_config, customers):
        store.recalculate_all_customer_scores()

        distribution = store.eligibility_distribution()

        assert distribution["total"] == 4
        assert list(distribution["statuses"]) == ["Green", "Yellow", "Amber", "Unscored"]
        assert distribution["statuses"]["Yellow"] == {"count": 2, "percentage": 50.0}
        assert distribution["statuses"]["Unscored"] == {"count": 0, "percentage": 0.0}

    def test_distribution_counts_unscored(self, store, example_config, customers):
        distribution = store.eligibility_distribution()
        assert distribution["statuses"]["Unscored"] == {"count": 4, "percentage": 100.0}

    def test_list_sorted_by_score(self, store, example_config, customers):
        store.recalculate_all_customer_scores()

        items, total = store.list_customers()

        assert total == 4
        assert [c.final_score for c in items] == [40, 40, 25, 5]

    def test_list_filters_and_pages(self, store, example_config, customers):
        store.recalculate_all_customer_scores()

        amber, total = store.list_customers(status="amber")
        assert total == 2
        assert {c.full_name for c in amber} == {"Karim Nasser", "Noor Haddad"}

        by_id, _ = store.list_customers(search="1987004")
        assert [c.full_name for c in by_id] == ["Sami Odeh"]

        page, total = store.list_customers(page=2, page_size=3, sort_field="full_name", descending=False)
        assert total == 4
        assert [c.full_name for c in page] == ["Sami Odeh"]


class TestConfirmRecalculationEditor:

    @pytest.mark.parametrize(
        "editor",
        [
            EditorInfo(name="", email="amira@example.com"),
            EditorInfo(name=" ", email="amira@example.com"),
            EditorInfo(name="Amira", email=" "),
        ],
    )
    def test_blank_editor_stores_nothing(self, store, example_config, customers, editor):
        with pytest.raises(ValidationError):
            confirm_recalculation(store, editor=editor)

        layla = store.get_customer(customers["Layla Hassan"].id)
        assert (layla.final_score, layla.eligibility_status) == (None, None)
        assert store.list_snapshots() == []


class TestDashboardAggregates:

    @pytest.fixture
    def portfolio(self, db_session, example_config):
        records = [
            Customer(full_name="Layla Hassan", branch="Amman",
                     attributes={AVERAGE_BALANCE: 120, "Last Balance": 9000, "Success Rate": "90%"}),
            Customer(full_name="Omar Fathi", branch="Amman",
                     attributes={AVERAGE_BALANCE: 150, "Last Balance": "12,500", "Success Rate": 80}),
            Customer(full_name="Karim Nasser", branch="Irbid",
                     attributes={AVERAGE_BALANCE: 75, "Last Balance": "n/a"}),
            Customer(full_name="Noor Haddad", branch=None, attributes={AVERAGE_BALANCE: 5}),
        ]
        db_session.add_all(records)
        db_session.commit()
        return {c.full_name: c for c in records}

    def test_portfolio_metrics(self, store, portfolio):
        store.recalculate_all_customer_scores()

        metrics = store.portfolio_metrics()

        assert metrics["total_customers"] == 4
        assert metrics["scored_customers"] == 4
        # Yellow counts as eligible, the Amber floor does not
        assert metrics["eligible_customers"] == 2
        assert metrics["tiers"] == {"Green": 0, "Yellow": 2, "Amber": 2}
        assert metrics["average_score"] == 27.5
        assert metrics["portfolio_balance"] == 21500
        assert metrics["average_success_rate"] == 85

    def test_portfolio_metrics_before_scoring(self, store, portfolio):
        metrics = store.portfolio_metrics()

        assert metrics["scored_customers"] == 0
        assert metrics["eligible_customers"] == 0
        assert metrics["average_score"] == 0.0

    def test_top_customers_default_to_best_tier(self, store, portfolio, example_config):
        rules, _ = example_config
        rules["Strong"].weight_pct = 75
        store.commit()
        store.recalculate_all_customer_scores()

        tier, ranked = store.top_customers()

        assert tier == "Green"
        assert [(c.full_name, balance) for c, balance in ranked] == [
            ("Omar Fathi", 12500),
            ("Layla Hassan", 9000),
        ]
        assert [c.full_name for c, _ in store.top_customers(limit=1)[1]] == ["Omar Fathi"]

    def test_top_customers_of_named_tier(self, store, portfolio):
        store.recalculate_all_customer_scores()

        tier, ranked = store.top_customers(tier="amber")

        assert tier == "amber"
        # neither balance is readable, so final score decides
        assert [c.full_name for c, _ in ranked] == ["Karim Nasser", "Noor Haddad"]

    def test_top_customers_need_a_ladder(self, store, db_session, example_rules):
        with pytest.raises(NoThresholdMatch):
            store.top_customers()

    def test_branch_insights(self, store, portfolio):
        assert store.branch_insights() == [
            {"branch": "Amman", "count": 2},
            {"branch": "Irbid", "count": 1},
        ]
        assert store.branch_insights(limit=1) == [{"branch": "Amman", "count": 2}]
