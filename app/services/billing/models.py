"""
DTO billing: BillingEvent (normalized Stripe event), Entitlement (state machine
state), TransitionResult, BillingStatus, EntitlementPoll.
"""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel

from app.models.user import User

ACTIVE_STATUS = "active"
CANCELED_STATUS = "canceled"


class BillingEventKind(str, Enum):
    CHECKOUT_COMPLETED = "checkout.session.completed"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class SubscriptionState(str, Enum):
    NONE = "none"  # never subscribed
    ACTIVE = "active"  # entitlement granted
    CANCELED = "canceled"  # entitlement revoked (canceled, past_due, unpaid, ...)


class BillingEvent(BaseModel):
    event_id: str
    kind: BillingEventKind
    user_id: str | None = None  # checkout metadata.userId
    customer_ref: str | None = None
    subscription_ref: str | None = None
    status: str | None = None  # subscription status as reported by Stripe

    model_config = {"frozen": True}


class Entitlement(BaseModel):
    is_pro: bool = False
    subscription_status: str | None = None
    billing_customer_ref: str | None = None
    billing_subscription_ref: str | None = None

    model_config = {"frozen": True}

    @property
    def state(self) -> SubscriptionState:
        if self.is_pro:
            return SubscriptionState.ACTIVE
        if self.subscription_status is None:
            return SubscriptionState.NONE
        return SubscriptionState.CANCELED

    @classmethod
    def from_user(cls, user: User) -> "Entitlement":
        return cls(
            is_pro=bool(user.is_pro),
            subscription_status=user.subscription_status,
            billing_customer_ref=user.billing_customer_ref,
            billing_subscription_ref=user.billing_subscription_ref,
        )


class TransitionResult(BaseModel):
    event_id: str
    event_type: str
    applied: bool
    changed: bool = False
    user_id: str | None = None
    from_state: SubscriptionState | None = None
    to_state: SubscriptionState | None = None
    is_pro: bool | None = None
    reason: str | None = None  # why not applied


class BillingStatus(BaseModel):
    is_pro: bool
    subscription_status: str | None = None
    billing_customer_ref: str | None = None


class EntitlementPoll(BaseModel):
    state: Literal["active", "processing"]
    attempts: int
    status: BillingStatus
