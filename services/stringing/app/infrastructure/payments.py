"""
Stripe adapter.

Verifies webhook signatures, expands checkout sessions and maps them onto
the CheckoutCompleted payload the order-creation handler consumes. Stripe
objects are converted to plain dicts at this boundary.
"""

from typing import Any, Dict, Optional
import re
import stripe

from app.application.schemas import PICKUP_CODE_PATTERN, CheckoutCompleted, CheckoutLineItem
from app.core_settings import Settings
from app.domain.errors import ConfigurationError, UpstreamError
from app.domain.models import OrderType
from shared.core import get_logger

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SESSION_EXPAND = ["line_items.data.price.product"]


class InvalidSignature(Exception):
    pass


def _client(settings: Settings) -> stripe.StripeClient:
    if not settings.STRIPE_SECRET_KEY:
        raise ConfigurationError("STRIPE_SECRET_KEY is not configured")
    return stripe.StripeClient(settings.STRIPE_SECRET_KEY)


def construct_event(payload: bytes, signature: str, settings: Settings) -> Dict[str, Any]:
    if not settings.STRIPE_SECRET_KEY or not settings.STRIPE_WEBHOOK_SECRET:
        raise ConfigurationError("Stripe webhook credentials are not configured")
    try:
        event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise InvalidSignature(str(e)) from e
    return event.to_dict()


def retrieve_session(session_id: str, settings: Settings) -> Dict[str, Any]:
    """Session with line items and their products expanded."""
    client = _client(settings)
    try:
        session = client.checkout.sessions.retrieve(session_id, params={"expand": SESSION_EXPAND})
    except stripe.StripeError as e:
        raise UpstreamError(f"Could not retrieve checkout session {session_id}: {e}") from e
    return session.to_dict()


def customer_email(session: Dict[str, Any]) -> Optional[str]:
    return (session.get("customer_details") or {}).get("email")


def _line_item(raw: Dict[str, Any]) -> CheckoutLineItem:
    price = raw.get("price") or {}
    product = price.get("product")
    product_name = product.get("name") if isinstance(product, dict) else None
    return CheckoutLineItem(
        price_id=price.get("id") or "",
        product_name=raw.get("description") or product_name or "Unknown",
        quantity=raw.get("quantity") or 1,
        unit_amount=price.get("unit_amount") or 0,
        total_amount=raw.get("amount_total") or 0,
    )


def reserved_pickup_code(session: Dict[str, Any]) -> Optional[str]:
    """The code reserved at checkout creation; a malformed one is discarded."""
    code = (session.get("metadata") or {}).get("pickupCode")
    if not code:
        return None
    if not re.fullmatch(PICKUP_CODE_PATTERN, str(code)):
        logger.warning(
            f"Ignoring malformed reserved pickup code on session {session.get('id')}",
            extra={'extra_fields': {'stripe_session_id': session.get('id')}}
        )
        return None
    return str(code)


def checkout_from_session(session: Dict[str, Any]) -> CheckoutCompleted:
    details = session.get("customer_details") or {}
    metadata = session.get("metadata") or {}
    line_items = (session.get("line_items") or {}).get("data") or []
    customer = session.get("customer")

    try:
        order_type = OrderType(metadata.get("orderType") or OrderType.SERVICE.value)
    except ValueError:
        order_type = OrderType.SERVICE

    return CheckoutCompleted(
        stripe_session_id=session["id"],
        customer_name=details.get("name") or "Unknown Customer",
        email=details.get("email"),
        phone=details.get("phone") or None,
        stripe_customer_id=customer if isinstance(customer, str) and customer else None,
        order_type=order_type,
        item_description=metadata.get("itemDescription") or None,
        line_items=[_line_item(li) for li in line_items],
        pickup_code=reserved_pickup_code(session),
    )
