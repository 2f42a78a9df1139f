from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.infrastructure.db import get_db
from app.application.auth import require_admin
from app.application.inventory import InventoryService
from app.application.schemas import InventoryCreate, InventoryRead, StockAdjustment, StockLevel, Storefront
from app.domain.errors import NotFoundError

router = APIRouter(prefix="/inventory", tags=["inventory"])

@router.get("/storefront", response_model=Storefront)
def storefront(db: Session = Depends(get_db)):
    """In-stock items for the shop, grouped by category."""
    return InventoryService(db).storefront()

@router.get("/", response_model=list[InventoryRead], dependencies=[Depends(require_admin)])
def list_inventory(db: Session = Depends(get_db)):
    return InventoryService(db).list()

@router.post("/", response_model=InventoryRead, status_code=201, dependencies=[Depends(require_admin)])
def create_inventory(payload: InventoryCreate, db: Session = Depends(get_db)):
    try:
        return InventoryService(db).create(payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Price {payload.price_id} already has an inventory item")

@router.post("/{inventory_id}/stock", response_model=StockLevel, dependencies=[Depends(require_admin)])
def adjust_stock(inventory_id: int, payload: StockAdjustment, db: Session = Depends(get_db)):
    try:
        new_stock = InventoryService(db).adjust(inventory_id, payload.adjustment)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return StockLevel(id=inventory_id, stock=new_stock)

@router.delete("/{inventory_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_inventory(inventory_id: int, db: Session = Depends(get_db)):
    try:
        InventoryService(db).delete(inventory_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return None
