"""Stripe webhook envelope: signature verification and event normalization."""
import json
import time

import pytest

from app.services.billing.errors import WebhookVerificationError
from app.services.billing.models import BillingEventKind
from app.services.billing.webhook import parse_event, verify_event
from conftest import WEBHOOK_SECRET, sign_payload


def _event(event_type="customer.subscription.updated", obj=None, event_id="evt_1"):
    return {
        "id": event_id,
        "type": event_type,
        "data": {"object": obj if obj is not None else {"id": "sub_1", "customer": "cus_1", "status": "active"}},
    }


class TestVerifyEvent:
    def test_valid_signature(self):
        payload = json.dumps(_event())
        raw = verify_event(payload.encode(), sign_payload(payload), WEBHOOK_SECRET)
        assert raw["id"] == "evt_1"
        assert raw["type"] == "customer.subscription.updated"

    def test_missing_signature(self):
        with pytest.raises(WebhookVerificationError):
            verify_event(b"{}", None, WEBHOOK_SECRET)

    def test_wrong_secret(self):
        payload = json.dumps(_event())
        with pytest.raises(WebhookVerificationError):
            verify_event(payload.encode(), sign_payload(payload, secret="whsec_other"), WEBHOOK_SECRET)

    def test_tampered_body(self):
        payload = json.dumps(_event())
        signature = sign_payload(payload)
        tampered = payload.replace("active", "canceled")
        with pytest.raises(WebhookVerificationError):
            verify_event(tampered.encode(), signature, WEBHOOK_SECRET)

    def test_stale_timestamp(self):
        payload = json.dumps(_event())
        signature = sign_payload(payload, timestamp=int(time.time()) - 3600)
        with pytest.raises(WebhookVerificationError):
            verify_event(payload.encode(), signature, WEBHOOK_SECRET, tolerance=300)

    def test_signed_garbage_is_rejected(self):
        payload = "not json"
        with pytest.raises(WebhookVerificationError):
            verify_event(payload.encode(), sign_payload(payload), WEBHOOK_SECRET)

    def test_signed_json_without_type(self):
        payload = json.dumps({"id": "evt_1"})
        with pytest.raises(WebhookVerificationError):
            verify_event(payload.encode(), sign_payload(payload), WEBHOOK_SECRET)


class TestParseEvent:
    def test_checkout_completed(self):
        event = parse_event(
            _event(
                "checkout.session.completed",
                {
                    "id": "cs_1",
                    "customer": "cus_1",
                    "subscription": "sub_1",
                    "metadata": {"userId": "u1"},
                },
            )
        )
        assert event.kind == BillingEventKind.CHECKOUT_COMPLETED
        assert event.user_id == "u1"
        assert event.customer_ref == "cus_1"
        assert event.subscription_ref == "sub_1"

    def test_checkout_falls_back_to_client_reference_id(self):
        event = parse_event(
            _event(
                "checkout.session.completed",
                {"customer": "cus_1", "subscription": "sub_1", "client_reference_id": "u7"},
            )
        )
        assert event.user_id == "u7"

    def test_expanded_objects(self):
        event = parse_event(
            _event(
                "checkout.session.completed",
                {"customer": {"id": "cus_1"}, "subscription": {"id": "sub_1"}, "metadata": {"userId": "u1"}},
            )
        )
        assert event.customer_ref == "cus_1"
        assert event.subscription_ref == "sub_1"

    def test_subscription_updated(self):
        event = parse_event(_event(obj={"id": "sub_9", "customer": "cus_1", "status": "past_due"}))
        assert event.kind == BillingEventKind.SUBSCRIPTION_UPDATED
        assert event.subscription_ref == "sub_9"
        assert event.status == "past_due"

    def test_subscription_deleted(self):
        event = parse_event(
            _event("customer.subscription.deleted", {"id": "sub_1", "customer": "cus_1", "status": "canceled"})
        )
        assert event.kind == BillingEventKind.SUBSCRIPTION_DELETED
        assert event.customer_ref == "cus_1"

    def test_unhandled_type_is_none(self):
        assert parse_event(_event("invoice.paid")) is None

    def test_handled_type_without_object(self):
        with pytest.raises(WebhookVerificationError):
            parse_event({"id": "evt_1", "type": "customer.subscription.updated", "data": {}})
