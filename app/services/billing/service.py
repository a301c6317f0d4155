"""
BillingService: Stripe subscription billing.

Responsibilities:
- Webhook intake: verify -> normalize -> drop exact duplicates -> state machine
- Billing status for the current user (with optional bounded polling)
- Checkout session creation for the Pro subscription
"""
import logging

import stripe
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.user import User
from app.paywall.errors import NotAuthenticatedError
from app.services.billing.errors import (
    BillingNotConfiguredError,
    BillingProviderError,
    WebhookVerificationError,
)
from app.services.billing.models import BillingStatus, EntitlementPoll, TransitionResult
from app.services.billing.polling import wait_for_entitlement
from app.services.billing.state_machine import SubscriptionStateMachine
from app.services.billing.webhook import parse_event, verify_event
from app.services.idempotency import IdempotencyStore
from app.services.users.service import UserService
from app.utils.metrics import billing_events_total

logger = logging.getLogger(__name__)


class BillingService:
    def __init__(self, db: Session, idempotency: IdempotencyStore | None = None):
        self.db = db
        self.users = UserService(db)
        self.state_machine = SubscriptionStateMachine(self.users)
        self._idempotency = idempotency

    @property
    def idempotency(self) -> IdempotencyStore:
        if self._idempotency is None:
            self._idempotency = IdempotencyStore()
        return self._idempotency

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    def handle_webhook(self, payload: bytes, signature: str | None) -> TransitionResult | None:
        """
        Returns the applied transition, or None when the event was verified but
        not for us (unhandled type) or an exact duplicate.
        Raises WebhookVerificationError before any state change for bad envelopes.
        """
        if not settings.stripe_webhook_secret:
            raise BillingNotConfiguredError("Stripe webhook secret is not configured")

        try:
            raw = verify_event(
                payload,
                signature,
                settings.stripe_webhook_secret,
                tolerance=settings.stripe_webhook_tolerance_seconds,
            )
            event = parse_event(raw)
        except WebhookVerificationError as e:
            billing_events_total.labels(event_type="unknown", outcome="rejected").inc()
            logger.warning("webhook_rejected", extra={"error": str(e)})
            raise

        if event is None:
            billing_events_total.labels(event_type=str(raw.get("type")), outcome="ignored").inc()
            logger.info("webhook_event_ignored", extra={"event_id": raw.get("id"), "event_type": raw.get("type")})
            return None

        key = f"stripe_event:{event.event_id}"
        if not self.idempotency.check_and_set(key):
            billing_events_total.labels(event_type=event.kind.value, outcome="duplicate").inc()
            logger.info("webhook_event_duplicate", extra={"event_id": event.event_id, "event_type": event.kind.value})
            return None

        try:
            result = self.state_machine.apply(event)
        except Exception:
            # let Stripe's retry reach the state machine again
            self.idempotency.release(key)
            billing_events_total.labels(event_type=event.kind.value, outcome="error").inc()
            raise

        billing_events_total.labels(
            event_type=event.kind.value,
            outcome="applied" if result.applied else "ignored",
        ).inc()
        return result

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self, user: User | None) -> BillingStatus:
        if user is None:
            raise NotAuthenticatedError("Not authenticated")
        return BillingStatus(
            is_pro=bool(user.is_pro),
            subscription_status=user.subscription_status,
            billing_customer_ref=user.billing_customer_ref,
        )

    def wait_for_pro(self, user: User | None) -> EntitlementPoll:
        """Re-read the user between attempts; the webhook lands in another request."""
        if user is None:
            raise NotAuthenticatedError("Not authenticated")
        user_id = user.id

        def fetch() -> BillingStatus:
            self.db.expire_all()
            return self.status(self.users.get(user_id))

        return wait_for_entitlement(fetch)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create_checkout_session(self, user: User | None) -> str:
        """Create a Stripe subscription checkout; returns the hosted checkout URL."""
        if user is None:
            raise NotAuthenticatedError("Not authenticated")
        if not settings.stripe_secret_key or not settings.stripe_price_id:
            raise BillingNotConfiguredError("Stripe is not configured")

        stripe.api_key = settings.stripe_secret_key
        params = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": settings.stripe_price_id, "quantity": 1}],
            "success_url": settings.billing_success_url,
            "cancel_url": settings.billing_cancel_url,
            "client_reference_id": user.id,
            # metadata.userId correlates checkout.session.completed back to this user
            "metadata": {"userId": user.id},
            "subscription_data": {"metadata": {"userId": user.id}},
        }
        if user.billing_customer_ref:
            params["customer"] = user.billing_customer_ref
        elif user.email:
            params["customer_email"] = user.email

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            logger.error("checkout_session_failed", extra={"user_id": user.id, "error": str(e)})
            raise BillingProviderError(str(e)) from e

        logger.info("checkout_session_created", extra={"user_id": user.id})
        return session.url
