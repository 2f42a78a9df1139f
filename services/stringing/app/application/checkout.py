from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Callable, Optional, Tuple
import random

from app.domain.errors import PickupCodeExhaustedError
from app.domain.models import Order
from app.domain.status import INITIAL_STATUS
from shared.core import get_logger
from .inventory import InventoryService, resolve_category
from .schemas import CheckoutCompleted, LineItem

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 20

def random_pickup_code() -> str:
    return str(random.randint(1000, 9999))

def describe(line_items: list[LineItem], fallback: Optional[str] = None) -> str:
    if fallback:
        return fallback
    return ", ".join(li.product_name for li in line_items) or "Order"

class CheckoutService:
    """
    Turns a completed payment-provider checkout into exactly one order.

    The order insert and every stock decrement share one database
    transaction. The unique constraint on stripe_session_id makes webhook
    redelivery return the existing order instead of creating a second.
    """

    def __init__(
        self,
        db: Session,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        code_generator: Callable[[], str] = random_pickup_code,
    ):
        self.db = db
        self.max_attempts = max_attempts
        self.code_generator = code_generator
        self.inventory = InventoryService(db)

    def _find_by_session(self, stripe_session_id: str) -> Optional[Order]:
        return self.db.execute(
            select(Order).where(Order.stripe_session_id == stripe_session_id)
        ).scalar_one_or_none()

    def _code_in_use(self, code: str) -> bool:
        return self.db.execute(select(exists().where(Order.pickup_code == code))).scalar()

    def assign_pickup_code(self, reserved: Optional[str] = None) -> str:
        if reserved:
            return reserved
        for _ in range(self.max_attempts):
            candidate = self.code_generator()
            if not self._code_in_use(candidate):
                return candidate
        raise PickupCodeExhaustedError(
            f"No free pickup code found after {self.max_attempts} attempts"
        )

    def enrich(self, data: CheckoutCompleted) -> list[Tuple[LineItem, Optional[int]]]:
        """Attach a category to every line; the inventory id is None when unmatched."""
        enriched = []
        for raw in data.line_items:
            item = self.inventory.get_by_price_id(raw.price_id) if raw.price_id else None
            line = LineItem(**raw.model_dump(), category=resolve_category(item))
            enriched.append((line, item.id if item is not None else None))
        return enriched

    def handle_checkout_completed(self, data: CheckoutCompleted) -> Tuple[Order, bool]:
        """Returns (order, duplicate)."""
        existing = self._find_by_session(data.stripe_session_id)
        if existing is not None:
            logger.info(
                f"Checkout session {data.stripe_session_id} already has order {existing.id}",
                extra={'extra_fields': {'order_id': existing.id, 'stripe_session_id': data.stripe_session_id}}
            )
            return existing, True

        pickup_code = self.assign_pickup_code(data.pickup_code)
        enriched = self.enrich(data)
        line_items = [li for li, _ in enriched]

        order = Order(
            pickup_code=pickup_code,
            customer_name=data.customer_name,
            email=data.email,
            phone=data.phone,
            stripe_session_id=data.stripe_session_id,
            stripe_customer_id=data.stripe_customer_id,
            order_type=data.order_type,
            item_description=describe(line_items, data.item_description),
            line_items=[li.model_dump(mode="json") for li in line_items] or None,
            status=INITIAL_STATUS,
        )

        try:
            self.db.add(order)
            self.db.flush()
            for line, inventory_id in enriched:
                if inventory_id is not None:
                    self.inventory.decrement(inventory_id, line.quantity)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self._find_by_session(data.stripe_session_id)
            if existing is None:
                raise
            logger.info(
                f"Concurrent delivery for checkout session {data.stripe_session_id} detected",
                extra={'extra_fields': {'order_id': existing.id, 'stripe_session_id': data.stripe_session_id}}
            )
            return existing, True
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} created for checkout session {data.stripe_session_id}",
            extra={'extra_fields': {
                'order_id': order.id,
                'stripe_session_id': data.stripe_session_id,
                'line_items': len(line_items),
                'reserved_code': data.pickup_code is not None,
            }}
        )
        return order, False
