import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from app.db.compat import GUID, JSONDocument

from app.db.base import Base


class Customer(Base):
    """Customer record with raw scoring attributes and the last stored score."""

    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        GUID(), primary_key=True, default=uuid.uuid4
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    national_id: Mapped[str] = mapped_column(String(50), nullable=True, index=True)
    account_number: Mapped[str] = mapped_column(String(50), nullable=True)
    branch: Mapped[str] = mapped_column(String(255), nullable=True)

    # Raw attribute values keyed by rule name, e.g. {"Average Balance": 120}
    attributes: Mapped[dict] = mapped_column(JSONDocument, nullable=False, default=dict)

    # Written by bulk recalculation
    final_score: Mapped[float] = mapped_column(Numeric(8, 2, asdecimal=False), nullable=True)
    eligibility_status: Mapped[str] = mapped_column(String(50), nullable=True, index=True)
    scored_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Customer {self.full_name}: {self.final_score} ({self.eligibility_status})>"
