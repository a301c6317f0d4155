"""
Stripe webhook envelope: signature verification (Stripe's own primitive) and
normalization into BillingEvent. Nothing here touches the database.
"""
from __future__ import annotations

import json
import logging
from typing import Any

import stripe

from app.services.billing.errors import WebhookVerificationError
from app.services.billing.models import BillingEvent, BillingEventKind

logger = logging.getLogger(__name__)


def verify_event(
    payload: bytes,
    signature: str | None,
    secret: str,
    tolerance: int = 300,
) -> dict[str, Any]:
    """Check the Stripe-Signature header against the raw body and return the decoded event."""
    if not signature:
        raise WebhookVerificationError("Missing stripe-signature header")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise WebhookVerificationError("Webhook body is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(body, signature, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError(f"Signature verification failed: {e}") from e

    try:
        event = json.loads(body)
    except json.JSONDecodeError as e:
        raise WebhookVerificationError("Webhook body is not JSON") from e
    if not isinstance(event, dict) or not event.get("type") or not event.get("id"):
        raise WebhookVerificationError("Webhook body is not a Stripe event")
    return event


def parse_event(raw: dict[str, Any]) -> BillingEvent | None:
    """
    Normalize a verified Stripe event. None for event types the state machine
    does not handle; WebhookVerificationError for a handled type without data.object.
    """
    event_type = raw.get("type")
    try:
        kind = BillingEventKind(event_type)
    except ValueError:
        return None

    obj = (raw.get("data") or {}).get("object")
    if not isinstance(obj, dict):
        raise WebhookVerificationError(f"{event_type} without data.object")

    if kind == BillingEventKind.CHECKOUT_COMPLETED:
        metadata = obj.get("metadata") or {}
        return BillingEvent(
            event_id=raw["id"],
            kind=kind,
            user_id=_as_id(metadata.get("userId") or obj.get("client_reference_id")),
            customer_ref=_as_id(obj.get("customer")),
            subscription_ref=_as_id(obj.get("subscription")),
            status="active",
        )

    return BillingEvent(
        event_id=raw["id"],
        kind=kind,
        customer_ref=_as_id(obj.get("customer")),
        subscription_ref=_as_id(obj.get("id")),
        status=obj.get("status"),
    )


def _as_id(value: Any) -> str | None:
    """Stripe sends either an id string or an expanded object with an id."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None
