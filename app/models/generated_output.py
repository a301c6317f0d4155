from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, String, Text

from app.db.base import Base, JSONType


OWNER_USER = "user"
OWNER_SESSION = "session"
OWNER_NONE = "none"


class GeneratedOutput(Base):
    __tablename__ = "generated_outputs"
    __table_args__ = (
        # Exactly one owner variant. session_id survives on user rows as a correlation tag after migration.
        CheckConstraint(
            "(owner_kind = 'user' AND user_id IS NOT NULL)"
            " OR (owner_kind = 'session' AND session_id IS NOT NULL AND user_id IS NULL)"
            " OR (owner_kind = 'none' AND user_id IS NULL AND session_id IS NULL)",
            name="ck_generated_outputs_owner",
        ),
        # Anonymous outputs never carry the full text
        CheckConstraint(
            "owner_kind != 'session' OR output_full IS NULL",
            name="ck_generated_outputs_session_no_full",
        ),
        Index("ix_generated_outputs_user_created", "user_id", "created_at"),
    )

    output_id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    output_type = Column(String, nullable=False)
    output_full = Column(Text, nullable=True)
    output_preview = Column(Text, nullable=False)
    is_truncated = Column(Boolean, nullable=False, default=False)
    owner_kind = Column(String, nullable=False)  # "user" | "session" | "none"
    user_id = Column(String, nullable=True)
    session_id = Column(String, nullable=True, index=True)
    meta = Column("metadata", JSONType, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    @property
    def is_anonymous(self) -> bool:
        return self.owner_kind == OWNER_SESSION
