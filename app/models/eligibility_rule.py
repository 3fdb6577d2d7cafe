import uuid
import enum
from datetime import datetime
from sqlalchemy import String, DateTime, Numeric, Enum
from sqlalchemy.orm import Mapped, mapped_column
from app.db.compat import GUID

from app.db.base import Base


class RuleCategory(str, enum.Enum):
    FINANCIAL = "Financial"
    EMPLOYMENT = "Employment"
    PERSONAL = "Personal"
    FAMILY = "Family"


class RuleLabel(str, enum.Enum):
    WEAK = "Weak"
    FAIR = "Fair"
    GOOD = "Good"
    STRONG = "Strong"


# Display order, Weak -> Strong
LABEL_RANK = {
    RuleLabel.WEAK: 1,
    RuleLabel.FAIR: 2,
    RuleLabel.GOOD: 3,
    RuleLabel.STRONG: 4,
}

CATEGORY_ORDER = {
    RuleCategory.FINANCIAL: 1,
    RuleCategory.EMPLOYMENT: 2,
    RuleCategory.PERSONAL: 3,
    RuleCategory.FAMILY: 4,
}


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class EligibilityRule(Base):
    """One scoring band of a named attribute within a category."""

    __tablename__ = "eligibility_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        GUID(), primary_key=True, default=uuid.uuid4
    )
    category: Mapped[RuleCategory] = mapped_column(
        Enum(RuleCategory, name="rulecategory", values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    rule_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    label: Mapped[RuleLabel] = mapped_column(
        Enum(RuleLabel, name="rulelabel", values_callable=_enum_values),
        nullable=False,
    )
    min_value: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)
    max_value: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)
    weight_pct: Mapped[float] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=False, default=0)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<EligibilityRule {self.category.value}/{self.rule_name} {self.label.value}: "
            f"[{self.min_value}, {self.max_value}] -> {self.weight_pct}%>"
        )
