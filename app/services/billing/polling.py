"""
Bounded entitlement polling for the payment/webhook race: the user may come back
from checkout before Stripe's event has been applied. Poll a fixed number of
times at a fixed interval, then report "processing" instead of blocking.
"""
from __future__ import annotations

import time
from typing import Callable

from app.core.config import settings
from app.services.billing.models import BillingStatus, EntitlementPoll


def wait_for_entitlement(
    fetch_status: Callable[[], BillingStatus],
    attempts: int | None = None,
    interval_seconds: float | None = None,
    sleep: Callable[[float], None] | None = None,
) -> EntitlementPoll:
    sleep = sleep or time.sleep
    attempts = max(1, attempts if attempts is not None else settings.billing_poll_attempts)
    interval = interval_seconds if interval_seconds is not None else settings.billing_poll_interval_seconds

    status = fetch_status()
    for attempt in range(1, attempts + 1):
        if status.is_pro:
            return EntitlementPoll(state="active", attempts=attempt, status=status)
        if attempt == attempts:
            break
        sleep(interval)
        status = fetch_status()
    return EntitlementPoll(state="processing", attempts=attempts, status=status)
