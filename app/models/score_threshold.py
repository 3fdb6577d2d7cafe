import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Numeric, Integer
from sqlalchemy.orm import Mapped, mapped_column
from app.db.compat import GUID

from app.db.base import Base


class ScoreThreshold(Base):
    """Minimum final score for a status tier. Lower sort_order is the better tier."""

    __tablename__ = "score_thresholds"

    id: Mapped[uuid.UUID] = mapped_column(
        GUID(), primary_key=True, default=uuid.uuid4
    )
    min_value: Mapped[float] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=False)
    color_code: Mapped[str] = mapped_column(String(20), nullable=False)
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<ScoreThreshold {self.label}: >= {self.min_value} (order {self.sort_order})>"
