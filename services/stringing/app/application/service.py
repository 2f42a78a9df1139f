from sqlalchemy import select
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import Callable, Optional

from app.domain.errors import InvalidStateError, NotFoundError
from app.domain.models import Order
from app.domain.status import (
    FINAL_STATUS,
    OrderStatus,
    StatusOwner,
    STATUS_OWNERS,
    STATUS_TIMESTAMP_FIELDS,
    is_legacy,
    neighbour,
    timestamps_after,
)
from shared.core import get_logger
from .schemas import NextAction

logger = get_logger(__name__)

Clock = Callable[[], datetime]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def next_action(order: Order) -> NextAction:
    """What the admin back/next controls offer for this order."""
    status = OrderStatus(order.status)
    forward = neighbour(status, 1)
    owner = STATUS_OWNERS.get(forward) if forward else None
    return NextAction(
        current=status,
        next=forward,
        previous=neighbour(status, -1),
        next_owner=owner,
        waiting_on_customer=owner == StatusOwner.CUSTOMER,
    )

def apply_status(order: Order, target: OrderStatus, now: datetime) -> None:
    """
    Moves `order` to `target` in memory: stamps the target's timestamp and
    clears the timestamps of every later status.
    """
    order.status = target
    field = STATUS_TIMESTAMP_FIELDS.get(target)
    if field:
        setattr(order, field, now)
    for later in timestamps_after(target):
        setattr(order, later, None)

class OrderService:
    """Order reads, the admin status engine and archiving."""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def list(self, status: Optional[OrderStatus] = None):
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        return query.order_by(Order.id.desc()).all()

    def get(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def find_by_pickup_code(self, pickup_code: str) -> Optional[Order]:
        return self.db.execute(
            select(Order).where(Order.pickup_code == pickup_code).order_by(Order.id.desc()).limit(1)
        ).scalar_one_or_none()

    def get_by_pickup_code(self, pickup_code: str) -> Order:
        order = self.find_by_pickup_code(pickup_code)
        if order is None:
            raise NotFoundError("Order not found. Please check your pickup code.")
        return order

    def set_status(self, order_id: int, target: OrderStatus) -> Order:
        """
        Unconditionally moves an order to `target`.

        Rank jumps are allowed; admin tooling only offers one-rank back/next
        moves. Legacy statuses are read-only and cannot be targeted.
        """
        target = OrderStatus(target)
        if is_legacy(target):
            raise InvalidStateError(f"Status '{target.value}' is no longer in use")

        order = self.get(order_id)
        previous = order.status
        apply_status(order, target, self.clock())
        self.db.commit()
        self.db.refresh(order)

        logger.info(
            f"Order {order.id} status {OrderStatus(previous).value} -> {target.value}",
            extra={'extra_fields': {'order_id': order.id, 'from': previous, 'to': target}}
        )
        return order

    def step_forward(self, order_id: int) -> Order:
        order = self.get(order_id)
        current = OrderStatus(order.status)
        if is_legacy(current):
            raise InvalidStateError(f"Order is in retired status '{current.value}'; set a status explicitly")
        if current == FINAL_STATUS:
            return order

        target = neighbour(current, 1)
        if STATUS_OWNERS[target] == StatusOwner.CUSTOMER:
            raise InvalidStateError("Waiting on customer to confirm with their pickup code")
        return self.set_status(order_id, target)

    def step_back(self, order_id: int) -> Order:
        order = self.get(order_id)
        current = OrderStatus(order.status)
        if is_legacy(current):
            raise InvalidStateError(f"Order is in retired status '{current.value}'; set a status explicitly")

        target = neighbour(current, -1)
        if target is None:
            return order
        return self.set_status(order_id, target)

    def archive(self, order_id: int) -> None:
        order = self.get(order_id)
        self.db.delete(order)
        self.db.commit()
        logger.info(f"Order {order_id} archived", extra={'extra_fields': {'order_id': order_id}})
