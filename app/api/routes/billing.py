"""
Stripe billing routes: webhook, billing status, checkout session.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.paywall.errors import NotAuthenticatedError
from app.schemas.billing import BillingStatusOut, CheckoutSessionOut
from app.services.billing.errors import (
    BillingNotConfiguredError,
    BillingProviderError,
    WebhookVerificationError,
)
from app.services.billing.service import BillingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["billing"])


def _not_authenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": NotAuthenticatedError.code, "message": "Not authenticated"},
    )


@router.post("/billing/webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)) -> dict:
    """
    Stripe webhook. The raw body is read on the event loop (signature check needs
    the exact bytes); the blocking DB/Redis work runs in the threadpool.
    400 = rejected without side effects (Stripe retries per its policy);
    500 = verified but processing failed (retry will be applied).
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    service = BillingService(db)
    try:
        result = await run_in_threadpool(service.handle_webhook, payload, signature)
    except WebhookVerificationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": e.code, "message": str(e)},
        )
    except BillingNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": e.code, "message": str(e)},
        )
    except Exception as e:
        logger.exception("webhook_processing_error", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "webhook_processing_error", "message": "Webhook processing failed"},
        )
    return {"received": True, "applied": bool(result and result.applied)}


@router.get("/billing/status", response_model=BillingStatusOut)
def billing_status(
    wait: bool = False,
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
) -> BillingStatusOut:
    """wait=true polls (bounded) for the webhook after checkout; answers poll_state="processing" on timeout."""
    service = BillingService(db)
    try:
        if wait:
            poll = service.wait_for_pro(user)
            return BillingStatusOut(**poll.status.model_dump(), poll_state=poll.state)
        current = service.status(user)
    except NotAuthenticatedError:
        raise _not_authenticated()
    return BillingStatusOut(**current.model_dump())


@router.post("/billing/checkout-session", response_model=CheckoutSessionOut)
def create_checkout_session(
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
) -> CheckoutSessionOut:
    service = BillingService(db)
    try:
        url = service.create_checkout_session(user)
    except NotAuthenticatedError:
        raise _not_authenticated()
    except BillingNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": e.code, "message": str(e)},
        )
    except BillingProviderError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": e.code, "message": str(e)},
        )
    return CheckoutSessionOut(url=url)
