import pytest

from app.domain.status import (
    LEGACY_STATUSES,
    OrderStatus,
    STATUS_FLOW,
    STATUS_OWNERS,
    STATUS_TIMESTAMP_FIELDS,
    StatusOwner,
    is_legacy,
    neighbour,
    rank,
    timestamps_after,
)


def test_flow_order_and_ranks():
    assert [s.value for s in STATUS_FLOW] == [
        "paid", "dropped_off", "picked_up", "stringing", "strung",
        "ready_for_pickup", "picked_up_by_customer", "review", "completed",
    ]
    assert rank(OrderStatus.PAID) == 0
    assert rank(OrderStatus.COMPLETED) == 8


def test_every_status_after_paid_owns_one_timestamp():
    assert set(STATUS_TIMESTAMP_FIELDS) == set(STATUS_FLOW[1:])
    assert len(set(STATUS_TIMESTAMP_FIELDS.values())) == len(STATUS_FLOW) - 1


@pytest.mark.parametrize("legacy", ["in_progress", "on_hold", "customer_review"])
def test_legacy_values_parse_but_have_no_rank(legacy):
    status = OrderStatus(legacy)
    assert status in LEGACY_STATUSES
    assert is_legacy(status)
    assert rank(status) is None
    assert neighbour(status, 1) is None


def test_timestamps_after_dropped_off():
    assert timestamps_after(OrderStatus.DROPPED_OFF) == (
        "picked_up_at", "stringing_at", "strung_at", "ready_for_pickup_at",
        "picked_up_by_customer_at", "review_at", "completed_at",
    )
    assert timestamps_after(OrderStatus.COMPLETED) == ()


def test_neighbour_stops_at_both_ends():
    assert neighbour(OrderStatus.PAID, -1) is None
    assert neighbour(OrderStatus.COMPLETED, 1) is None
    assert neighbour(OrderStatus.STRUNG, 1) == OrderStatus.READY_FOR_PICKUP


def test_owners():
    customer_owned = {s for s, owner in STATUS_OWNERS.items() if owner == StatusOwner.CUSTOMER}
    assert customer_owned == {
        OrderStatus.DROPPED_OFF, OrderStatus.PICKED_UP_BY_CUSTOMER, OrderStatus.REVIEW,
    }
    assert STATUS_OWNERS[OrderStatus.PAID] == StatusOwner.SYSTEM
