"""
Audit of full-content grants: record_full_access is called by OutputService
each time decide_access hands out the full text.
"""
from __future__ import annotations

import logging
from typing import Literal

logger = logging.getLogger(__name__)

GrantReason = Literal["pro_owner", "override"]


def record_full_access(
    output_id: str,
    reason: GrantReason,
    *,
    user_id: str | None = None,
    session_id: str | None = None,
    output_type: str | None = None,
) -> None:
    """
    Record a full-content delivery for analytics/abuse review.
    override grants are logged at WARNING: they must never show up in production.
    """
    level = logging.WARNING if reason == "override" else logging.INFO
    logger.log(
        level,
        "paywall_full_access",
        extra={
            "output_id": output_id,
            "reason": reason,
            "user_id": user_id,
            "session_id": session_id,
            "output_type": output_type,
        },
    )
