"""
SQLAlchemy Database Models

Storefront ordering entities:
- Users (owned by the identity collaborator, mirrored here for ownership)
- Menu items (the catalog)
- Orders and their line items with snapshot prices

Version: 1.0.0
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from storefront.database import Base

# Monetary columns hold the unscaled base unit; display scaling is a client concern.
Money = Numeric(12, 2, asdecimal=True)
MAX_MONEY = Decimal("9999999999.99")

# Per order line.
MAX_QUANTITY = 99

# Integer primary keys are int4 on PostgreSQL.
MAX_ID = 2_147_483_647


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    """Caller roles supplied by the Access Gate."""
    USER = "USER"
    ADMIN = "ADMIN"


class MenuCategory(str, enum.Enum):
    DRINK = "DRINK"
    FOOD = "FOOD"
    DESSERT = "DESSERT"
    SNACK = "SNACK"


class OrderStatus(str, enum.Enum):
    """
    Order status workflow.

    PENDING is set at creation. COMPLETED and CANCELLED are terminal.
    """
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


class User(Base):
    """
    Local mirror of an identity-provider account.

    Orders reference it for ownership and the user summary shown with an order.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(Enum(Role), default=Role.USER, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    orders = relationship("Order", back_populates="user")

    def __repr__(self):
        return f"<User #{self.id} - {self.email} - {self.role.value}>"


class MenuItem(Base):
    """A sellable catalog entry."""
    __tablename__ = "menu_items"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_menu_items_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    price = Column(Money, nullable=False)
    category = Column(Enum(MenuCategory), nullable=False, index=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow, nullable=True)

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price}>"


class Order(Base):
    """
    A customer order.

    Items and total are fixed at creation; only ``status`` changes afterwards.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    total_price = Column(Money, nullable=False)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )

    # =========================================================================
    # DELIVERY METADATA (optional, never interpreted by the ordering core)
    # =========================================================================
    delivery_address = Column(String(255), nullable=True)
    contact_number = Column(String(20), nullable=True)
    payment_method = Column(String(50), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow, nullable=True)

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order #{self.id} - user {self.user_id} - {self.status.value} - {self.total_price}>"


class OrderItem(Base):
    """One line of an order, with the unit price captured at order time."""
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # History survives menu deletions; the snapshot price is what matters.
    menu_item_id = Column(
        Integer,
        ForeignKey("menu_items.id", ondelete="SET NULL"),
        nullable=True,
    )
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Money, nullable=False)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

    @property
    def subtotal(self):
        return self.unit_price * self.quantity

    def __repr__(self):
        return f"<OrderItem #{self.id} - {self.quantity} x menu {self.menu_item_id} @ {self.unit_price}>"
