"""
Pydantic Schemas for Request/Response Validation

Every inbound payload is an explicit model; nothing reaches the ordering
core as an untyped dict.

Prices are the unscaled stored value (decimal base unit).

Version: 1.0.0
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.models import MAX_ID, MAX_QUANTITY, MenuCategory, OrderStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class LineRequest(BaseModel):
    """A (menu item, quantity) pair submitted by the customer."""
    menu_item_id: int = Field(..., ge=1, le=MAX_ID, examples=[1])
    quantity: Optional[int] = Field(
        None,
        ge=1,
        le=MAX_QUANTITY,
        examples=[2],
        description=f"Defaults to 1 when omitted; at most {MAX_QUANTITY}",
    )


class OrderCreate(BaseModel):
    """Request schema for creating a new order."""

    # An empty list is rejected by the order builder as EmptyOrder.
    items: List[LineRequest] = Field(default_factory=list)

    # Optional metadata, stored verbatim.
    delivery_address: Optional[str] = Field(None, max_length=255, examples=["12 Le Loi"])
    contact_number: Optional[str] = Field(None, max_length=20, examples=["0901234567"])
    payment_method: Optional[str] = Field(None, max_length=50, examples=["cash"])

    def delivery_metadata(self) -> dict:
        return self.model_dump(
            include={"delivery_address", "contact_number", "payment_method"},
            exclude_none=True,
        )


class OrderStatusUpdate(BaseModel):
    """Request to move an order to a new status."""
    # Any JSON value; anything that is not a status name surfaces as InvalidStatus (400).
    status: Any = Field(..., examples=["PROCESSING"])


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Iced Latte"])
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, examples=["4.50"])
    category: MenuCategory
    is_available: bool = True


class MenuItemUpdate(BaseModel):
    """Partial update; only fields that are sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    category: Optional[MenuCategory] = None
    is_available: Optional[bool] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    image_url: Optional[str]
    price: Decimal
    category: MenuCategory
    is_available: bool
    created_at: datetime
    updated_at: Optional[datetime]


class UserSummary(BaseModel):
    """Owner details shown alongside an order."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_item_id: Optional[int]
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    menu_item: Optional[MenuItemResponse] = None


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    user: Optional[UserSummary] = None
    items: List[OrderItemResponse]
    total_price: Decimal
    status: OrderStatus
    delivery_address: Optional[str]
    contact_number: Optional[str]
    payment_method: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]


class PaginationInfo(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    orders: List[OrderResponse]
    pagination: PaginationInfo


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    environment: str
    timestamp: datetime
