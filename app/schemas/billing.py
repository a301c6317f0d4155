from pydantic import BaseModel


class BillingStatusOut(BaseModel):
    is_pro: bool
    subscription_status: str | None
    billing_customer_ref: str | None
    # "active" / "processing" only when the caller asked to wait for the webhook
    poll_state: str | None = None


class CheckoutSessionOut(BaseModel):
    url: str
