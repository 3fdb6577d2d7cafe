import uuid
from datetime import datetime
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from app.db.compat import GUID, JSONDocument

from app.db.base import Base


class RuleHistory(Base):
    """Immutable snapshot of the full rule catalog and threshold ladder."""

    __tablename__ = "rules_history"

    id: Mapped[uuid.UUID] = mapped_column(
        GUID(), primary_key=True, default=uuid.uuid4
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
    editor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    editor_email: Mapped[str] = mapped_column(String(255), nullable=False)
    editor_avatar_url: Mapped[str] = mapped_column(String(1024), nullable=True)
    rules_snapshot: Mapped[list] = mapped_column(JSONDocument, nullable=False)
    thresholds_snapshot: Mapped[list] = mapped_column(JSONDocument, nullable=False)

    def __repr__(self) -> str:
        return f"<RuleHistory {self.id} by {self.editor_email} at {self.created_at}>"
