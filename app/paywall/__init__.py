"""
Paywall core (internal library): truncation, ownership model, access decision.
Decision (access) is pure; persistence lives in app.services.outputs.
"""
from app.paywall.access import decide_access
from app.paywall.audit import record_full_access
from app.paywall.models import (
    AccessResult,
    NewOutput,
    NoOwner,
    OutputRecord,
    OutputResult,
    Requester,
    SessionOwner,
    TruncationResult,
    UserOwner,
)
from app.paywall.override import resolve_override
from app.paywall.truncation import count_words, strip_banner, truncate

__all__ = [
    "AccessResult",
    "NewOutput",
    "NoOwner",
    "OutputRecord",
    "OutputResult",
    "Requester",
    "SessionOwner",
    "TruncationResult",
    "UserOwner",
    "count_words",
    "decide_access",
    "record_full_access",
    "resolve_override",
    "strip_banner",
    "truncate",
]
