import math
from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional

from pharmapos.schemas.base import CamelModel, NamedRef, MAX_ID


class CartItem(CamelModel):
    """One cart line. Only the product reference and quantity are trusted."""
    id: int = Field(..., ge=1, le=MAX_ID, description="ID of the product to sell")
    quantity: int = Field(..., gt=0, description="Units to sell")


class SaleCreate(CamelModel):
    """Schema for a checkout request."""
    cart: list[CartItem] = Field(..., description="Products and quantities")
    discount: float = Field(default=0.0, description="Amount subtracted from the subtotal")
    payment_method: str = Field(..., max_length=50, description="Payment method label")

    @field_validator("cart")
    @classmethod
    def cart_not_empty_and_distinct(cls, cart: list[CartItem]) -> list[CartItem]:
        if not cart:
            raise ValueError("Cart must contain at least one item.")
        seen = set()
        for item in cart:
            if item.id in seen:
                raise ValueError(f"Product {item.id} appears more than once in the cart.")
            seen.add(item.id)
        return cart

    @field_validator("discount", mode="before")
    @classmethod
    def coerce_discount(cls, value) -> float:
        # Anything that is not a finite, non-negative number counts as no discount
        if isinstance(value, bool):
            return 0.0
        try:
            discount = float(value)
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(discount) or discount < 0:
            return 0.0
        return discount

    @field_validator("payment_method")
    @classmethod
    def payment_method_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Payment method is required.")
        return value


class SaleItemResponse(CamelModel):
    """Schema for one sale line on a receipt."""
    id: int
    product_id: int
    quantity: int
    price_at_sale: float
    product: NamedRef


class SaleResponse(CamelModel):
    """Schema for a recorded sale with its items and attendant."""
    id: int
    created_at: Optional[datetime] = None
    total: float
    discount: float
    payment_method: str
    attendant_id: int
    attendant: NamedRef
    items: list[SaleItemResponse]


class SaleListResponse(CamelModel):
    """Schema for paginated sale list response."""
    items: list[SaleResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
