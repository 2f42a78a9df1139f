from sqlalchemy import case, select, update
from sqlalchemy.orm import Session
from typing import Optional

from app.domain.errors import NotFoundError
from app.domain.models import Category, InventoryItem
from shared.core import get_logger
from .schemas import InventoryCreate

logger = get_logger(__name__)

# Line items whose price has no inventory row are billed as labour
DEFAULT_CATEGORY = Category.SERVICE

def resolve_category(item: Optional[InventoryItem]) -> Category:
    if item is None:
        return DEFAULT_CATEGORY
    return item.category

class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    def list(self):
        return self.db.query(InventoryItem).order_by(InventoryItem.id.desc()).all()

    def get(self, item_id: int) -> InventoryItem:
        item = self.db.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError("Inventory item not found")
        return item

    def get_by_price_id(self, price_id: str) -> Optional[InventoryItem]:
        return self.db.execute(
            select(InventoryItem).where(InventoryItem.price_id == price_id)
        ).scalar_one_or_none()

    def storefront(self) -> dict:
        """In-stock, shop-visible items, also grouped by category."""
        items = (
            self.db.query(InventoryItem)
            .filter(InventoryItem.stock > 0, InventoryItem.show_in_shop.is_(True))
            .order_by(InventoryItem.name)
            .all()
        )
        grouped = {category: [] for category in Category}
        for item in items:
            grouped[item.category].append(item)
        return {"items": items, "grouped": grouped}

    def create(self, data: InventoryCreate) -> InventoryItem:
        obj = InventoryItem(**data.model_dump())
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        logger.info(
            f"Inventory item {obj.id} created",
            extra={'extra_fields': {'inventory_id': obj.id, 'price_id': obj.price_id, 'stock': obj.stock}}
        )
        return obj

    def delete(self, item_id: int) -> None:
        item = self.get(item_id)
        self.db.delete(item)
        self.db.commit()

    def _apply_delta(self, item_id: int, delta: int) -> int:
        """
        Adds `delta` to the stock counter in one UPDATE statement, clamping
        the result at zero. Does not commit.
        """
        result = self.db.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(stock=case(
                (InventoryItem.stock + delta > 0, InventoryItem.stock + delta),
                else_=0,
            ))
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFoundError("Inventory item not found")
        return self.db.execute(
            select(InventoryItem.stock).where(InventoryItem.id == item_id)
        ).scalar_one()

    def decrement(self, item_id: int, quantity: int) -> int:
        """Stock decrement for a purchase; caller owns the transaction."""
        new_stock = self._apply_delta(item_id, -abs(quantity))
        logger.info(
            f"Stock decremented for inventory item {item_id}",
            extra={'extra_fields': {'inventory_id': item_id, 'quantity': quantity, 'new_stock': new_stock}}
        )
        return new_stock

    def adjust(self, item_id: int, adjustment: int) -> int:
        """Admin restock or correction."""
        new_stock = self._apply_delta(item_id, adjustment)
        self.db.commit()
        return new_stock
