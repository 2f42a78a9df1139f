"""
Order status vocabulary.

The position of a status in STATUS_FLOW is its rank. Every status after
`paid` owns one timestamp column on the order, stamped when the order
enters the status and cleared when the order is moved back past it.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


class OrderStatus(str, Enum):
    PAID = "paid"
    DROPPED_OFF = "dropped_off"
    PICKED_UP = "picked_up"
    STRINGING = "stringing"
    STRUNG = "strung"
    READY_FOR_PICKUP = "ready_for_pickup"
    PICKED_UP_BY_CUSTOMER = "picked_up_by_customer"
    REVIEW = "review"
    COMPLETED = "completed"
    # Earlier schema, kept so historical rows still load
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    CUSTOMER_REVIEW = "customer_review"


class StatusOwner(str, Enum):
    SYSTEM = "system"
    CUSTOMER = "customer"
    ADMIN = "admin"


STATUS_FLOW: Tuple[OrderStatus, ...] = (
    OrderStatus.PAID,
    OrderStatus.DROPPED_OFF,
    OrderStatus.PICKED_UP,
    OrderStatus.STRINGING,
    OrderStatus.STRUNG,
    OrderStatus.READY_FOR_PICKUP,
    OrderStatus.PICKED_UP_BY_CUSTOMER,
    OrderStatus.REVIEW,
    OrderStatus.COMPLETED,
)

LEGACY_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.IN_PROGRESS,
    OrderStatus.ON_HOLD,
    OrderStatus.CUSTOMER_REVIEW,
})

INITIAL_STATUS = STATUS_FLOW[0]
FINAL_STATUS = STATUS_FLOW[-1]

STATUS_TIMESTAMP_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.DROPPED_OFF: "dropped_off_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.STRINGING: "stringing_at",
    OrderStatus.STRUNG: "strung_at",
    OrderStatus.READY_FOR_PICKUP: "ready_for_pickup_at",
    OrderStatus.PICKED_UP_BY_CUSTOMER: "picked_up_by_customer_at",
    OrderStatus.REVIEW: "review_at",
    OrderStatus.COMPLETED: "completed_at",
}

STATUS_OWNERS: Dict[OrderStatus, StatusOwner] = {
    OrderStatus.PAID: StatusOwner.SYSTEM,
    OrderStatus.DROPPED_OFF: StatusOwner.CUSTOMER,
    OrderStatus.PICKED_UP: StatusOwner.ADMIN,
    OrderStatus.STRINGING: StatusOwner.ADMIN,
    OrderStatus.STRUNG: StatusOwner.ADMIN,
    OrderStatus.READY_FOR_PICKUP: StatusOwner.ADMIN,
    OrderStatus.PICKED_UP_BY_CUSTOMER: StatusOwner.CUSTOMER,
    OrderStatus.REVIEW: StatusOwner.CUSTOMER,
    OrderStatus.COMPLETED: StatusOwner.SYSTEM,
}


def is_legacy(status: OrderStatus) -> bool:
    return status in LEGACY_STATUSES


def rank(status: OrderStatus) -> Optional[int]:
    """Rank within STATUS_FLOW, or None for a legacy status."""
    try:
        return STATUS_FLOW.index(OrderStatus(status))
    except ValueError:
        return None


def timestamps_after(status: OrderStatus) -> Tuple[str, ...]:
    """Timestamp columns of every status ranked strictly after `status`."""
    position = rank(status)
    if position is None:
        return ()
    return tuple(
        STATUS_TIMESTAMP_FIELDS[s]
        for s in STATUS_FLOW[position + 1:]
        if s in STATUS_TIMESTAMP_FIELDS
    )


def neighbour(status: OrderStatus, step: int) -> Optional[OrderStatus]:
    """Status `step` ranks away, or None past either end of the flow."""
    position = rank(status)
    if position is None:
        return None
    target = position + step
    if target < 0 or target >= len(STATUS_FLOW):
        return None
    return STATUS_FLOW[target]
