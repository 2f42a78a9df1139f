from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from uuid import uuid4
from app.infrastructure.db import get_db
from app.core_settings import Settings, get_settings
from app.application.auth import Identity, require_admin
from app.application.checkout import CheckoutService
from app.application.service import OrderService, next_action
from app.application.schemas import (
    AdminOrderRead,
    CheckoutCompleted,
    CheckoutResult,
    OrderRead,
    SimulatedCheckout,
    StatusUpdate,
)
from app.domain.errors import OrderError
from app.domain.status import OrderStatus

router = APIRouter(prefix="/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])
internal_router = APIRouter(prefix="/internal", tags=["admin"])

def raise_http(e: OrderError):
    raise HTTPException(status_code=e.status_code, detail=e.message)

def with_actions(order) -> AdminOrderRead:
    return AdminOrderRead(**OrderRead.model_validate(order).model_dump(), actions=next_action(order))

@router.get("/", response_model=list[OrderRead])
def list_orders(status: Optional[OrderStatus] = None, db: Session = Depends(get_db)):
    """All orders, newest first, optionally filtered by status."""
    return OrderService(db).list(status)

@router.get("/by-code/{pickup_code}", response_model=AdminOrderRead)
def get_order_by_pickup_code(pickup_code: str, db: Session = Depends(get_db)):
    try:
        return with_actions(OrderService(db).get_by_pickup_code(pickup_code))
    except OrderError as e:
        raise_http(e)

@router.get("/{order_id}", response_model=AdminOrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return with_actions(OrderService(db).get(order_id))
    except OrderError as e:
        raise_http(e)

@router.post("/{order_id}/status", response_model=OrderRead)
def set_order_status(order_id: int, payload: StatusUpdate, db: Session = Depends(get_db)):
    try:
        return OrderService(db).set_status(order_id, payload.status)
    except OrderError as e:
        raise_http(e)

@router.post("/{order_id}/next", response_model=OrderRead)
def advance_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return OrderService(db).step_forward(order_id)
    except OrderError as e:
        raise_http(e)

@router.post("/{order_id}/back", response_model=OrderRead)
def rewind_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return OrderService(db).step_back(order_id)
    except OrderError as e:
        raise_http(e)

@router.delete("/{order_id}", status_code=204)
def archive_order(order_id: int, db: Session = Depends(get_db)):
    try:
        OrderService(db).archive(order_id)
    except OrderError as e:
        raise_http(e)
    return None

@internal_router.post("/test-order", response_model=CheckoutResult, status_code=201)
def create_test_order(
    payload: SimulatedCheckout,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: Identity = Depends(require_admin),
):
    """Runs the order-creation handler as if a checkout had completed."""
    checkout = CheckoutCompleted(
        **payload.model_dump(exclude={"stripe_session_id"}),
        stripe_session_id=payload.stripe_session_id or f"cs_test_{uuid4().hex}",
    )
    service = CheckoutService(db, max_attempts=settings.PICKUP_CODE_MAX_ATTEMPTS)
    try:
        order, duplicate = service.handle_checkout_completed(checkout)
    except OrderError as e:
        raise_http(e)
    return CheckoutResult(order=OrderRead.model_validate(order), duplicate=duplicate)
