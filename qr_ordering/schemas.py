"""
Pydantic Schemas for Request/Response Validation

Request bodies mirror what the customer, kitchen and admin screens send;
responses are wrapped in the ``{success, message, data}`` envelope.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


T = TypeVar("T")


# =============================================================================
# ENVELOPES
# =============================================================================

class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    message: Optional[str] = None
    data: T


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    message: str
    database: str
    notification_service: str
    timestamp: datetime


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderLineCreate(BaseModel):
    """
    Single requested line.

    Prices are the snapshot the customer saw; they are stored rounded to the cent.
    """
    id: Optional[int] = Field(None, description="Menu item id", examples=[5])
    name: str = Field(..., min_length=1, max_length=200, examples=["Coffee"])
    quantity: int = Field(..., ge=1, examples=[2])
    price_inr: Decimal = Field(..., ge=0, examples=["79.00"])
    price_usd: Decimal = Field(..., ge=0, examples=["1.09"])


class OrderCreate(BaseModel):
    """Request schema for placing an order from a table."""
    table_number: int = Field(..., examples=[1])
    items: List[OrderLineCreate] = Field(...)
    currency: str = Field(default="INR", min_length=1, max_length=3, examples=["INR", "USD"])
    payment_method: str = Field(default="cash", min_length=1, max_length=20, examples=["cash", "online"])

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class OrderStatusUpdate(BaseModel):
    order_status: str = Field(..., min_length=1, max_length=20, examples=["preparing"])


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    menu_item_id: Optional[int] = None
    item_name: str
    quantity: int
    price_inr: Decimal
    price_usd: Decimal
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Order header."""
    id: int
    table_id: Optional[int] = None
    table_number: int
    total_amount_inr: Decimal
    total_amount_usd: Decimal
    currency: str
    payment_method: str
    payment_status: str
    order_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ComposedOrderResponse(OrderResponse):
    """Order header with its lines in insertion order."""
    items: List[OrderItemResponse] = Field(default_factory=list)


# =============================================================================
# TABLE SCHEMAS
# =============================================================================

class TableCreate(BaseModel):
    table_number: int = Field(..., ge=1, examples=[11])
    table_name: str = Field(..., min_length=1, max_length=100, examples=["Patio 1"])


class TableResponse(BaseModel):
    id: int
    table_number: int
    table_name: str
    qr_code_data: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, examples=["Masala Dosa"])
    description: Optional[str] = None
    price_inr: Decimal = Field(..., ge=0, examples=["149.00"])
    price_usd: Decimal = Field(..., ge=0, examples=["1.99"])
    category: Optional[str] = Field(None, max_length=100, examples=["Main Course"])
    image_url: Optional[str] = None
    is_available: bool = True


class MenuItemResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price_inr: Decimal
    price_usd: Decimal
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    name: str = ""


class CategoryResponse(BaseModel):
    name: str


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class RegisterRequest(BaseModel):
    full_name: str = Field(..., alias="fullName", min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not re.match(r'^[\w\.\+-]+@[\w\.-]+\.\w+$', v):
            raise ValueError('Invalid email format')
        return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)
