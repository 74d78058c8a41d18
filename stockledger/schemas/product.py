"""
Pydantic schemas for Product model.
"""
from typing import Optional
from datetime import datetime
import uuid
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, field_validator

from stockledger.units import DEFAULT_UNIT


def _strip_or_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ProductBase(BaseModel):
    """Base product schema."""
    name: str = Field(..., min_length=1, max_length=500)
    barcode: Optional[str] = Field(None, max_length=50, pattern=r"^[A-Za-z0-9]+$")
    category: str = Field(..., min_length=1, max_length=255)
    purchase_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    selling_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    minimum_stock: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=3)
    unit: str = Field(default=DEFAULT_UNIT, max_length=20)
    description: Optional[str] = None
    supplier: Optional[str] = Field(None, max_length=255)

    @field_validator("barcode", "description", "supplier", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _strip_or_none(value)


class ProductCreate(ProductBase):
    """Schema for creating a product."""
    current_stock: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=3)


class ProductUpdate(BaseModel):
    """Schema for updating a product. Stock only changes through movements."""
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    barcode: Optional[str] = Field(None, max_length=50, pattern=r"^[A-Za-z0-9]+$")
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    purchase_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    selling_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    minimum_stock: Optional[Decimal] = Field(None, ge=0, decimal_places=3)
    unit: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    supplier: Optional[str] = Field(None, max_length=255)

    @field_validator("barcode", "description", "supplier", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _strip_or_none(value)


class ProductResponse(BaseModel):
    """Schema for product response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    barcode: Optional[str] = None
    category: str
    purchase_price: float
    selling_price: float
    current_stock: float
    minimum_stock: float
    unit: str
    unit_label: str
    description: Optional[str] = None
    supplier: Optional[str] = None
    is_low_stock: bool
    stock_status: str
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Product list response."""
    items: list[ProductResponse]
    total: int


class ProductImport(BaseModel):
    """Bulk import request. Rows are validated one by one."""
    products: list[dict]


class ImportRowError(BaseModel):
    row: int
    error: str


class ProductImportResponse(BaseModel):
    """Response for bulk product import."""
    created: int
    failed: int
    products: list[ProductResponse]
    errors: list[ImportRowError]
