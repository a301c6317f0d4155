"""Paywall error kinds. Routes translate these to HTTP statuses."""


class PaywallError(Exception):
    code = "paywall_error"


class MissingRequesterIdentityError(PaywallError):
    """Output creation without user, session or override: nobody could ever own it."""

    code = "missing_identity"


class NotAuthenticatedError(PaywallError):
    """Operation needs a logged-in user. Distinct from "not pro"."""

    code = "not_authenticated"
