from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    email = Column(String, nullable=True)

    # Entitlement. is_pro is authoritative for gating; subscription_status is advisory
    # (last status string reported by Stripe).
    is_pro = Column(Boolean, nullable=False, default=False)
    subscription_status = Column(String, nullable=True)
    billing_customer_ref = Column(String, nullable=True, index=True)  # Stripe cus_...
    billing_subscription_ref = Column(String, nullable=True)  # Stripe sub_...

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
