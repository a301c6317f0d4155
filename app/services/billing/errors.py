"""Billing error kinds. Routes translate these to HTTP statuses."""


class BillingError(Exception):
    code = "billing_error"


class WebhookVerificationError(BillingError):
    """Bad or missing signature, or an envelope that is not a Stripe event. Nothing is applied."""

    code = "webhook_invalid"


class BillingNotConfiguredError(BillingError):
    code = "billing_not_configured"


class BillingProviderError(BillingError):
    """Stripe API call failed (checkout creation)."""

    code = "billing_provider_error"
