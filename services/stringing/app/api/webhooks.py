from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Optional
from app.infrastructure import payments
from app.infrastructure.db import get_db
from app.core_settings import Settings, get_settings
from app.application.checkout import CheckoutService
from app.domain.errors import ConfigurationError, OrderError
from shared.core import get_logger, set_request_context

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Creates the order for a completed checkout.

    Stripe redelivers on any non-2xx answer; a redelivered session returns
    the order created the first time.
    """
    payload = await request.body()
    if not stripe_signature:
        return _error(400, "Missing stripe-signature header")
    return await run_in_threadpool(process_event, payload, stripe_signature, db, settings)

def process_event(payload: bytes, signature: str, db: Session, settings: Settings):
    """Verifies and handles one delivery. Blocks on Stripe and the database."""
    try:
        event = payments.construct_event(payload, signature, settings)
    except ConfigurationError as e:
        logger.error(f"Stripe configuration error: {e.message}")
        return _error(500, "Server configuration error")
    except payments.InvalidSignature as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        return _error(400, "Invalid signature")

    if event.get("type") != payments.CHECKOUT_COMPLETED:
        return {"received": True}

    session_id = event["data"]["object"]["id"]
    set_request_context(correlation_id=session_id)

    try:
        session = payments.retrieve_session(session_id, settings)
    except OrderError as e:
        logger.error(f"Could not load checkout session: {e.message}")
        return _error(e.status_code, "Failed to load checkout session")

    if not payments.customer_email(session):
        logger.error(f"Missing customer email in session {session_id}")
        return _error(400, "Missing required customer data")

    service = CheckoutService(db, max_attempts=settings.PICKUP_CODE_MAX_ATTEMPTS)
    try:
        order, duplicate = service.handle_checkout_completed(payments.checkout_from_session(session))
    except Exception:
        logger.error(f"Failed to create order for session {session_id}", exc_info=True)
        return _error(500, "Failed to create order")

    return {"received": True, "orderId": order.id, "duplicate": duplicate}
