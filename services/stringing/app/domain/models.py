from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, DateTime, JSON, Enum as SAEnum, CheckConstraint, UniqueConstraint
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from app.domain.status import OrderStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Category(str, Enum):
    HEAD = "head"
    SHAFT = "shaft"
    MESH = "mesh"
    STRINGS = "strings"
    SERVICE = "service"
    UPSELL = "upsell"


class OrderType(str, Enum):
    SERVICE = "service"
    PRODUCT = "product"


class PlayerType(str, Enum):
    BOYS = "boys"
    GIRLS = "girls"
    GOALIES = "goalies"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("stripe_session_id", name="uq_orders_stripe_session_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # Customer-facing lookup key and capability token; uniqueness is best-effort
    pickup_code: Mapped[str] = mapped_column(String(4), index=True)
    customer_name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    stripe_session_id: Mapped[str] = mapped_column(String(255))
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    order_type: Mapped[OrderType] = mapped_column(
        SAEnum(OrderType, native_enum=False, length=20, values_callable=_values)
    )
    item_description: Mapped[str] = mapped_column(String(1000))
    line_items: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, native_enum=False, length=30, values_callable=_values,
               validate_strings=True),
        index=True,
        default=OrderStatus.PAID,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # One timestamp per status after `paid`
    dropped_off_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_up_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    stringing_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    strung_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ready_for_pickup_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_up_by_customer_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class InventoryItem(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_inventory_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # Payment-provider price reference
    price_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[Category] = mapped_column(
        SAEnum(Category, native_enum=False, length=20, values_callable=_values)
    )
    stock: Mapped[int] = mapped_column(Integer, default=0)
    description: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    show_in_shop: Mapped[bool] = mapped_column(Boolean, default=True)
    show_in_builder: Mapped[bool] = mapped_column(Boolean, default=False)
    player_type: Mapped[Optional[PlayerType]] = mapped_column(
        SAEnum(PlayerType, native_enum=False, length=20, values_callable=_values),
        nullable=True,
    )
    currency: Mapped[str] = mapped_column(String(3), default="usd")
    unit_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
