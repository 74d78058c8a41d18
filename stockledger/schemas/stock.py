"""
Pydantic schemas for StockMovement model and sales.
"""
from typing import Optional
from datetime import datetime
import uuid
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class MovementType(str, Enum):
    """Stock movement direction."""
    IN = "IN"
    OUT = "OUT"


class MovementReason(str, Enum):
    """Why stock moved."""
    PURCHASE = "PURCHASE"
    RETURN = "RETURN"
    COUNT = "COUNT"
    SALE = "SALE"
    WASTE = "WASTE"
    OTHER = "OTHER"


REASONS_BY_TYPE: dict[MovementType, frozenset[MovementReason]] = {
    MovementType.IN: frozenset({
        MovementReason.PURCHASE,
        MovementReason.RETURN,
        MovementReason.COUNT,
        MovementReason.OTHER,
    }),
    MovementType.OUT: frozenset({
        MovementReason.SALE,
        MovementReason.RETURN,
        MovementReason.WASTE,
        MovementReason.OTHER,
    }),
}


class StockMovementCreate(BaseModel):
    """Schema for recording a stock movement."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: uuid.UUID
    movement_type: MovementType = Field(..., alias="type")
    reason: MovementReason
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    description: Optional[str] = None


class SaleCreate(BaseModel):
    """Schema for recording a sale."""
    product_id: uuid.UUID
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    total_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    description: Optional[str] = None


class StockMovementResponse(BaseModel):
    """Schema for stock movement response."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    product_id: uuid.UUID
    type: MovementType = Field(validation_alias="movement_type")
    reason: MovementReason
    quantity: float
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    description: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime


class StockMovementWithProduct(StockMovementResponse):
    """Stock movement with product details."""
    product_name: str
    product_unit: str
    product_category: str


class StockMovementListResponse(BaseModel):
    """Paginated stock movement list."""
    items: list[StockMovementWithProduct]
    total: int
    page: int
    page_size: int
    pages: int
