"""
Shared pytest fixtures.

Provides:
- An isolated in-memory SQLite database per test
- The example rule catalog and threshold ladder
- A FastAPI test client bound to the test database
"""
import os

# Must be set before app.config settings are first loaded
os.environ["DATABASE_URL"] = "sqlite://"

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  registers tables on Base.metadata
from app.db.base import Base
from app.db.session import get_db
from app.models import Customer, EligibilityRule, RuleCategory, RuleLabel, ScoreThreshold
from app.services.scoring_store import ScoringStore

from tests.helpers import AVERAGE_BALANCE


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory database with all tables created."""
    engine = create_engine(
        "sqlite://", echo=False, poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSession()

    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store(db_session: Session) -> ScoringStore:
    return ScoringStore(db_session)


def make_rule(category, rule_name, label, min_value, max_value, weight_pct) -> EligibilityRule:
    return EligibilityRule(
        category=category,
        rule_name=rule_name,
        label=label,
        min_value=min_value,
        max_value=max_value,
        weight_pct=weight_pct,
    )


@pytest.fixture
def example_rules(db_session: Session) -> dict[str, EligibilityRule]:
    """Financial / Average Balance: [..9.99] 5, [10..49.99] 15, [50..99.99] 25, [100..] 40."""
    rules = {
        "Weak": make_rule(RuleCategory.FINANCIAL, AVERAGE_BALANCE, RuleLabel.WEAK, None, 9.99, 5),
        "Fair": make_rule(RuleCategory.FINANCIAL, AVERAGE_BALANCE, RuleLabel.FAIR, 10, 49.99, 15),
        "Good": make_rule(RuleCategory.FINANCIAL, AVERAGE_BALANCE, RuleLabel.GOOD, 50, 99.99, 25),
        "Strong": make_rule(RuleCategory.FINANCIAL, AVERAGE_BALANCE, RuleLabel.STRONG, 100, None, 40),
    }
    db_session.add_all(rules.values())
    db_session.commit()
    return rules


@pytest.fixture
def example_thresholds(db_session: Session) -> dict[str, ScoreThreshold]:
    """Green >= 70, Yellow >= 40, Amber >= 0."""
    thresholds = {
        "Green": ScoreThreshold(min_value=70, color_code="#22C55E", label="Green", sort_order=1),
        "Yellow": ScoreThreshold(min_value=40, color_code="#EAB308", label="Yellow", sort_order=2),
        "Amber": ScoreThreshold(min_value=0, color_code="#F59E0B", label="Amber", sort_order=3),
    }
    db_session.add_all(thresholds.values())
    db_session.commit()
    return thresholds


@pytest.fixture
def example_config(example_rules, example_thresholds):
    return example_rules, example_thresholds


@pytest.fixture
def customer(db_session: Session) -> Customer:
    record = Customer(full_name="Layla Hassan", national_id="1987001", attributes={AVERAGE_BALANCE: 120})
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """FastAPI test client using the test database."""
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
