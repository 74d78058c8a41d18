"""
Pydantic schemas for Alert model.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class AlertType(str, Enum):
    """Alert types."""
    LOW_STOCK = "low_stock"
    MANUAL = "manual"


class AlertCreate(BaseModel):
    """Schema for creating a manual alert."""
    message: str = Field(..., min_length=1)
    product_id: Optional[uuid.UUID] = None


class AlertResponse(BaseModel):
    """Schema for alert response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    alert_type: AlertType
    message: str
    is_read: bool
    created_at: datetime


class AlertListResponse(BaseModel):
    """Paginated alert list."""
    items: list[AlertResponse]
    total: int
    unread_count: int
    page: int
    page_size: int
    pages: int


class StockCheckResponse(BaseModel):
    """Result of a low-stock scan."""
    message: str
    alerts: list[AlertResponse]
