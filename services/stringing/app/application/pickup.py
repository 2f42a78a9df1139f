"""
Pickup-code confirmations made by customers at the drop-off kiosk.

The four digit pickup code is both the lookup key and the proof of
knowledge: the customer re-enters it as the confirm code. It is a low
entropy shared secret and only gates low value transitions.
"""

from sqlalchemy.orm import Session

from app.domain.errors import BadCredentialError, InvalidStateError
from app.domain.models import Order
from app.domain.status import OrderStatus
from shared.core import get_logger
from .service import Clock, OrderService, apply_status, utcnow

logger = get_logger(__name__)

CODE_MISMATCH = "Confirmation code does not match. Please try again."


class PickupConfirmationService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.orders = OrderService(db, clock)

    def _confirm(self, pickup_code: str, confirm_code: str, expected: OrderStatus,
                 target: OrderStatus, wrong_state: str) -> Order:
        order = self.orders.get_by_pickup_code(pickup_code)

        if order.status != expected:
            raise InvalidStateError(wrong_state)

        if confirm_code != pickup_code:
            logger.warning(
                f"Confirmation code mismatch for order {order.id}",
                extra={'extra_fields': {'order_id': order.id, 'target': target}}
            )
            raise BadCredentialError(CODE_MISMATCH)

        apply_status(order, target, self.clock())
        self.db.commit()
        self.db.refresh(order)
        logger.info(
            f"Order {order.id} confirmed by customer: {expected.value} -> {target.value}",
            extra={'extra_fields': {'order_id': order.id, 'from': expected, 'to': target}}
        )
        return order

    def confirm_drop_off(self, pickup_code: str, confirm_code: str) -> Order:
        """paid -> dropped_off, available exactly once."""
        return self._confirm(
            pickup_code, confirm_code,
            expected=OrderStatus.PAID,
            target=OrderStatus.DROPPED_OFF,
            wrong_state="This order has already been dropped off.",
        )

    def confirm_customer_pickup(self, pickup_code: str, confirm_code: str) -> Order:
        """ready_for_pickup -> picked_up_by_customer."""
        return self._confirm(
            pickup_code, confirm_code,
            expected=OrderStatus.READY_FOR_PICKUP,
            target=OrderStatus.PICKED_UP_BY_CUSTOMER,
            wrong_state="This order is not ready for pickup yet.",
        )

    def confirm_review(self, pickup_code: str) -> None:
        # Not security sensitive: no code match, and never fails.
        order = self.orders.find_by_pickup_code(pickup_code)
        if order is None:
            return
        if order.status in (OrderStatus.PICKED_UP_BY_CUSTOMER, OrderStatus.REVIEW):
            apply_status(order, OrderStatus.COMPLETED, self.clock())
            self.db.commit()
            logger.info(f"Order {order.id} completed after review", extra={'extra_fields': {'order_id': order.id}})
