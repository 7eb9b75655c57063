from pydantic import Field, field_validator, model_validator
from datetime import date, datetime
from typing import Optional

from pharmapos.schemas.base import CamelModel


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _future_date(value: Optional[date]) -> Optional[date]:
    if value is not None and value <= date.today():
        raise ValueError("Expiry date must be in the future.")
    return value


class ProductBase(CamelModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=2, max_length=100, description="Product name")
    category: str = Field(..., min_length=2, max_length=50, description="Product category")
    dosage: Optional[str] = Field(None, max_length=50, description="Dosage, e.g. 500mg")
    manufacturer: Optional[str] = Field(None, max_length=100, description="Manufacturer")
    purchase_price: float = Field(..., gt=0, description="Unit cost (must be positive)")
    selling_price: float = Field(..., gt=0, description="Unit selling price (must be positive)")
    stock_quantity: int = Field(..., ge=0, description="Units in stock (must be non-negative)")
    min_stock_quantity: int = Field(..., ge=0, description="Low-stock threshold")
    expiry_date: date = Field(..., description="Expiry date")
    barcode: Optional[str] = Field(None, max_length=50, description="Barcode (unique)")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""

    @field_validator("dosage", "manufacturer", "barcode", mode="before")
    @classmethod
    def blank_optionals(cls, value):
        return _blank_to_none(value)

    @field_validator("expiry_date")
    @classmethod
    def future_expiry(cls, value):
        return _future_date(value)

    @model_validator(mode="after")
    def check_cross_fields(self):
        if self.selling_price < self.purchase_price:
            raise ValueError("Selling price cannot be lower than purchase price.")
        if self.min_stock_quantity > self.stock_quantity:
            raise ValueError("Minimum stock quantity cannot be greater than stock quantity.")
        return self


class ProductUpdate(CamelModel):
    """
    Schema for updating an existing product. All fields are optional.

    Cross-field rules are checked by the service against the merged result,
    since either side of a rule may be absent from the request.
    """
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    category: Optional[str] = Field(None, min_length=2, max_length=50)
    dosage: Optional[str] = Field(None, max_length=50)
    manufacturer: Optional[str] = Field(None, max_length=100)
    purchase_price: Optional[float] = Field(None, gt=0)
    selling_price: Optional[float] = Field(None, gt=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    min_stock_quantity: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    barcode: Optional[str] = Field(None, max_length=50)

    @field_validator("dosage", "manufacturer", "barcode", mode="before")
    @classmethod
    def blank_optionals(cls, value):
        return _blank_to_none(value)

    @field_validator("expiry_date")
    @classmethod
    def future_expiry(cls, value):
        return _future_date(value)


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    is_low_stock: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductListResponse(CamelModel):
    """Schema for paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
