"""
Anonymous kiosk endpoints.

Forms post the pickup code and the confirm code; every outcome redirects
back to the order page with a success or error flag the page renders.
"""

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from urllib.parse import quote
from app.infrastructure.db import get_db
from app.core_settings import Settings, get_settings
from app.application.pickup import PickupConfirmationService
from app.application.service import OrderService
from app.application.schemas import PublicOrderRead
from app.domain.errors import BadCredentialError, InvalidStateError, NotFoundError
from shared.core import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/order", tags=["order"])

def order_page(pickup_code: str, **flags: str) -> RedirectResponse:
    query = "&".join(f"{k}={v}" for k, v in flags.items())
    return RedirectResponse(f"/order/{quote(pickup_code)}?{query}", status_code=303)

@router.post("/drop-off")
def confirm_drop_off(
    pickupCode: str = Form(""),
    confirmCode: str = Form(""),
    db: Session = Depends(get_db),
):
    if not pickupCode or not confirmCode:
        return order_page(pickupCode, error="server")
    try:
        PickupConfirmationService(db).confirm_drop_off(pickupCode, confirmCode)
    except InvalidStateError:
        return order_page(pickupCode, error="already-done")
    except BadCredentialError:
        return order_page(pickupCode, error="wrong-code")
    except NotFoundError:
        return order_page(pickupCode, error="not-found")
    except Exception:
        logger.error("Drop-off confirmation failed", exc_info=True)
        return order_page(pickupCode, error="server")
    return order_page(pickupCode, success="dropoff")

@router.post("/pickup")
def confirm_pickup(
    pickupCode: str = Form(""),
    confirmCode: str = Form(""),
    db: Session = Depends(get_db),
):
    if not pickupCode or not confirmCode:
        return order_page(pickupCode, error="server")
    try:
        PickupConfirmationService(db).confirm_customer_pickup(pickupCode, confirmCode)
    except InvalidStateError:
        return order_page(pickupCode, error="not-ready")
    except BadCredentialError:
        return order_page(pickupCode, error="wrong-code")
    except NotFoundError:
        return order_page(pickupCode, error="not-found")
    except Exception:
        logger.error("Customer pickup confirmation failed", exc_info=True)
        return order_page(pickupCode, error="server")
    return order_page(pickupCode, success="pickup")

@router.post("/review")
def confirm_review(
    pickupCode: str = Form(""),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not pickupCode:
        return RedirectResponse("/order?error=server", status_code=303)
    try:
        PickupConfirmationService(db).confirm_review(pickupCode)
    except Exception:
        logger.error("Review confirmation failed", exc_info=True)
        return order_page(pickupCode, error="server")
    return RedirectResponse(settings.REVIEW_URL, status_code=303)

@router.get("/{pickup_code}", response_model=PublicOrderRead)
def get_public_order(pickup_code: str, db: Session = Depends(get_db)):
    order = OrderService(db).find_by_pickup_code(pickup_code)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
