"""
Override policy: decides once per request whether paywall gating is bypassed.
Lives outside decide_access so the decision itself stays pure.

Fails closed: only the environments listed here bypass. Anything else,
including a typo or an unset APP_ENV, is gated.
"""
from __future__ import annotations

BYPASS_ENVS = frozenset({"local", "development", "dev", "test"})


def resolve_override(app_env: str | None, operator_flag: bool = False) -> bool:
    """True for a known non-production deployment or an explicit operator flag."""
    if operator_flag:
        return True
    return (app_env or "").lower().strip() in BYPASS_ENVS
