from datetime import datetime, timedelta
import pytest

from app.application.service import OrderService, next_action
from app.domain.errors import InvalidStateError, NotFoundError
from app.domain.models import Order
from app.domain.status import OrderStatus, STATUS_FLOW, STATUS_TIMESTAMP_FIELDS, rank


class TickingClock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 9, 0)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


def stamped(order):
    return {field for field in STATUS_TIMESTAMP_FIELDS.values() if getattr(order, field) is not None}


def test_set_status_stamps_target(db, place_order):
    order = place_order()
    clock = TickingClock()

    updated = OrderService(db, clock).set_status(order.id, OrderStatus.STRINGING)

    assert updated.status == OrderStatus.STRINGING
    assert updated.stringing_at == clock.now
    assert stamped(updated) == {"stringing_at"}


def test_moving_back_clears_later_timestamps(db, place_order):
    order = place_order()
    service = OrderService(db)
    service.set_status(order.id, OrderStatus.DROPPED_OFF)
    service.set_status(order.id, OrderStatus.PICKED_UP)
    service.set_status(order.id, OrderStatus.STRINGING)

    order = service.set_status(order.id, OrderStatus.DROPPED_OFF)

    assert order.status == OrderStatus.DROPPED_OFF
    assert order.dropped_off_at is not None
    assert order.picked_up_at is None
    assert order.stringing_at is None


def test_walking_the_whole_flow_keeps_timestamps_consistent(db, place_order):
    order = place_order()
    service = OrderService(db)
    for status in STATUS_FLOW[1:]:
        order = service.set_status(order.id, status)
        expected = {STATUS_TIMESTAMP_FIELDS[s] for s in STATUS_FLOW[1:rank(status) + 1]}
        assert stamped(order) == expected

    for status in reversed(STATUS_FLOW[:-1]):
        order = service.set_status(order.id, status)
        expected = {STATUS_TIMESTAMP_FIELDS[s] for s in STATUS_FLOW[1:rank(status) + 1]}
        assert stamped(order) == expected


def test_set_status_rejects_legacy_target(db, place_order):
    order = place_order()
    with pytest.raises(InvalidStateError):
        OrderService(db).set_status(order.id, OrderStatus.IN_PROGRESS)
    db.refresh(order)
    assert order.status == OrderStatus.PAID


def test_set_status_unknown_order(db):
    with pytest.raises(NotFoundError):
        OrderService(db).set_status(999, OrderStatus.STRINGING)


def test_step_forward_advances_one_admin_rank(db, place_order):
    order = place_order()
    service = OrderService(db)
    service.set_status(order.id, OrderStatus.DROPPED_OFF)

    order = service.step_forward(order.id)

    assert order.status == OrderStatus.PICKED_UP
    assert order.picked_up_at is not None


def test_step_forward_blocks_customer_owned_rank(db, place_order):
    order = place_order()
    with pytest.raises(InvalidStateError, match="customer"):
        OrderService(db).step_forward(order.id)

    service = OrderService(db)
    service.set_status(order.id, OrderStatus.READY_FOR_PICKUP)
    with pytest.raises(InvalidStateError):
        service.step_forward(order.id)


def test_step_back(db, place_order):
    order = place_order()
    service = OrderService(db)
    service.set_status(order.id, OrderStatus.STRUNG)

    order = service.step_back(order.id)

    assert order.status == OrderStatus.STRINGING
    assert order.strung_at is None


def test_steps_are_noops_at_terminal_ranks(db, place_order):
    order = place_order()
    service = OrderService(db)

    assert service.step_back(order.id).status == OrderStatus.PAID

    service.set_status(order.id, OrderStatus.COMPLETED)
    completed_at = service.get(order.id).completed_at
    order = service.step_forward(order.id)
    assert order.status == OrderStatus.COMPLETED
    assert order.completed_at == completed_at


def test_step_from_legacy_status_is_rejected(db, place_order):
    order = place_order()
    order.status = OrderStatus.ON_HOLD
    db.commit()

    with pytest.raises(InvalidStateError):
        OrderService(db).step_forward(order.id)
    with pytest.raises(InvalidStateError):
        OrderService(db).step_back(order.id)


def test_next_action_reports_waiting_on_customer(db, place_order):
    order = place_order()
    action = next_action(order)
    assert action.next == OrderStatus.DROPPED_OFF
    assert action.previous is None
    assert action.waiting_on_customer is True

    order = OrderService(db).set_status(order.id, OrderStatus.PICKED_UP)
    action = next_action(order)
    assert action.next == OrderStatus.STRINGING
    assert action.waiting_on_customer is False


def test_list_filters_by_status(db, place_order):
    first = place_order(pickup_code="1111")
    second = place_order(pickup_code="2222")
    service = OrderService(db)
    service.set_status(second.id, OrderStatus.DROPPED_OFF)

    assert [o.id for o in service.list()] == [second.id, first.id]
    assert [o.id for o in service.list(OrderStatus.PAID)] == [first.id]


def test_archive_deletes_order(db, place_order):
    order = place_order()
    service = OrderService(db)
    service.archive(order.id)

    assert db.get(Order, order.id) is None
    with pytest.raises(NotFoundError):
        service.archive(order.id)


def test_get_by_pickup_code(db, place_order):
    order = place_order(pickup_code="4321")
    service = OrderService(db)
    assert service.get_by_pickup_code("4321").id == order.id
    with pytest.raises(NotFoundError, match="pickup code"):
        service.get_by_pickup_code("0000")
