from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.domain.models import Category, OrderType, PlayerType
from app.domain.status import OrderStatus, StatusOwner

PICKUP_CODE_PATTERN = r"^\d{4}$"

class CheckoutLineItem(BaseModel):
    """A purchase line as reported by the payment provider."""
    price_id: str
    product_name: str
    quantity: int = Field(default=1, ge=1)
    unit_amount: int = 0
    total_amount: int = 0

class LineItem(CheckoutLineItem):
    category: Category = Category.SERVICE

class CheckoutCompleted(BaseModel):
    """Everything the order-creation handler needs from a completed checkout."""
    stripe_session_id: str = Field(min_length=1)
    customer_name: str = "Unknown Customer"
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    order_type: OrderType = OrderType.SERVICE
    item_description: Optional[str] = None
    line_items: list[CheckoutLineItem] = []
    # Code reserved at checkout creation, reused verbatim when present
    pickup_code: Optional[str] = Field(default=None, pattern=PICKUP_CODE_PATTERN)

class SimulatedCheckout(BaseModel):
    """Admin harness payload; simulates a completed checkout."""
    customer_name: str
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    order_type: OrderType = OrderType.SERVICE
    item_description: Optional[str] = None
    line_items: list[CheckoutLineItem] = []
    stripe_session_id: Optional[str] = None
    pickup_code: Optional[str] = Field(default=None, pattern=PICKUP_CODE_PATTERN)

class StatusUpdate(BaseModel):
    status: OrderStatus

class OrderRead(BaseModel):
    id: int
    pickup_code: str
    customer_name: str
    email: str
    phone: Optional[str] = None
    stripe_session_id: str
    stripe_customer_id: Optional[str] = None
    order_type: OrderType
    item_description: str
    line_items: Optional[list[LineItem]] = None
    status: OrderStatus
    created_at: datetime
    dropped_off_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    stringing_at: Optional[datetime] = None
    strung_at: Optional[datetime] = None
    ready_for_pickup_at: Optional[datetime] = None
    picked_up_by_customer_at: Optional[datetime] = None
    review_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class PublicOrderRead(BaseModel):
    """What an anonymous pickup-code holder may see: no contact or payment data."""
    id: int
    status: OrderStatus
    order_type: OrderType
    item_description: str
    pickup_code: str
    dropped_off_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    stringing_at: Optional[datetime] = None
    strung_at: Optional[datetime] = None
    ready_for_pickup_at: Optional[datetime] = None
    picked_up_by_customer_at: Optional[datetime] = None
    review_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    line_items: Optional[list[LineItem]] = None
    class Config:
        from_attributes = True

class NextAction(BaseModel):
    current: OrderStatus
    next: Optional[OrderStatus] = None
    previous: Optional[OrderStatus] = None
    next_owner: Optional[StatusOwner] = None
    waiting_on_customer: bool = False

class AdminOrderRead(OrderRead):
    actions: NextAction

class CheckoutResult(BaseModel):
    order: OrderRead
    duplicate: bool = False

class InventoryCreate(BaseModel):
    price_id: str
    name: str
    category: Category
    stock: int = Field(default=0, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = None
    show_in_shop: bool = True
    show_in_builder: bool = False
    player_type: Optional[PlayerType] = None
    currency: str = "usd"
    unit_amount: Optional[int] = None

class InventoryRead(InventoryCreate):
    id: int
    class Config:
        from_attributes = True

class StockAdjustment(BaseModel):
    adjustment: int

class StockLevel(BaseModel):
    id: int
    stock: int

class Storefront(BaseModel):
    items: list[InventoryRead]
    grouped: dict[Category, list[InventoryRead]]
