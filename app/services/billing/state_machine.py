"""
Subscription state machine: none -> active -> canceled -> active ...

Transitions are driven only by the three Stripe lifecycle events in
BillingEventKind. Every transition writes the status the event reports (absolute
set, never increment/decrement), so duplicated or reordered deliveries converge.
"""
from __future__ import annotations

import logging

from app.models.user import User
from app.services.billing.models import (
    ACTIVE_STATUS,
    CANCELED_STATUS,
    BillingEvent,
    BillingEventKind,
    Entitlement,
    TransitionResult,
)
from app.services.users.service import UserService

logger = logging.getLogger(__name__)


def is_stale(current: Entitlement, event: BillingEvent) -> bool:
    """
    Update/delete for a subscription other than the one on record, e.g. a late
    "deleted" for the old subscription after the customer re-subscribed.
    """
    if event.kind == BillingEventKind.CHECKOUT_COMPLETED:
        return False
    return bool(
        event.subscription_ref
        and current.billing_subscription_ref
        and event.subscription_ref != current.billing_subscription_ref
    )


def next_entitlement(current: Entitlement, event: BillingEvent) -> Entitlement:
    """Pure transition function. Stale events leave the entitlement as it is."""
    if is_stale(current, event):
        return current

    if event.kind == BillingEventKind.CHECKOUT_COMPLETED:
        return Entitlement(
            is_pro=True,
            subscription_status=ACTIVE_STATUS,
            billing_customer_ref=event.customer_ref,
            billing_subscription_ref=event.subscription_ref,
        )

    if event.kind == BillingEventKind.SUBSCRIPTION_UPDATED:
        # Only Stripe's "active" grants; trialing, past_due, unpaid, incomplete... all revoke
        return Entitlement(
            is_pro=event.status == ACTIVE_STATUS,
            subscription_status=event.status,
            billing_customer_ref=current.billing_customer_ref,
            billing_subscription_ref=event.subscription_ref or current.billing_subscription_ref,
        )

    if event.kind == BillingEventKind.SUBSCRIPTION_DELETED:
        return Entitlement(
            is_pro=False,
            subscription_status=CANCELED_STATUS,
            billing_customer_ref=current.billing_customer_ref,
            billing_subscription_ref=current.billing_subscription_ref,
        )

    raise ValueError(f"Unsupported billing event kind: {event.kind}")


class SubscriptionStateMachine:
    def __init__(self, users: UserService):
        self.users = users

    def apply(self, event: BillingEvent) -> TransitionResult:
        user = self._resolve_subscriber(event)
        if user is None:
            reason = "missing_correlation" if self._missing_correlation(event) else "unknown_subscriber"
            logger.warning(
                "subscription_event_ignored",
                extra={
                    "event_id": event.event_id,
                    "event_type": event.kind.value,
                    "customer_ref": event.customer_ref,
                    "user_id": event.user_id,
                    "reason": reason,
                },
            )
            return TransitionResult(
                event_id=event.event_id,
                event_type=event.kind.value,
                applied=False,
                reason=reason,
            )

        current = Entitlement.from_user(user)
        if is_stale(current, event):
            logger.warning(
                "subscription_event_ignored",
                extra={
                    "event_id": event.event_id,
                    "event_type": event.kind.value,
                    "user_id": user.id,
                    "customer_ref": event.customer_ref,
                    "reason": "stale_subscription",
                },
            )
            return TransitionResult(
                event_id=event.event_id,
                event_type=event.kind.value,
                applied=False,
                user_id=user.id,
                reason="stale_subscription",
            )

        target = next_entitlement(current, event)
        changed = target != current
        if changed:
            self.users.update_subscription(
                user,
                is_pro=target.is_pro,
                subscription_status=target.subscription_status,
                billing_customer_ref=target.billing_customer_ref,
                billing_subscription_ref=target.billing_subscription_ref,
            )

        logger.info(
            "subscription_transition",
            extra={
                "event_id": event.event_id,
                "event_type": event.kind.value,
                "user_id": user.id,
                "from_state": current.state.value,
                "to_state": target.state.value,
                "is_pro": target.is_pro,
                "subscription_status": target.subscription_status,
            },
        )
        return TransitionResult(
            event_id=event.event_id,
            event_type=event.kind.value,
            applied=True,
            changed=changed,
            user_id=user.id,
            from_state=current.state,
            to_state=target.state,
            is_pro=target.is_pro,
        )

    def _resolve_subscriber(self, event: BillingEvent) -> User | None:
        if self._missing_correlation(event):
            return None
        if event.kind == BillingEventKind.CHECKOUT_COMPLETED:
            return self.users.get(event.user_id)
        return self.users.get_by_billing_customer_ref(event.customer_ref)

    @staticmethod
    def _missing_correlation(event: BillingEvent) -> bool:
        if event.kind == BillingEventKind.CHECKOUT_COMPLETED:
            return not (event.user_id and event.customer_ref and event.subscription_ref)
        return not event.customer_ref
