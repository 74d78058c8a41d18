"""
Pydantic schemas for report endpoints.
"""
from typing import Optional
from datetime import date, datetime
import uuid
from pydantic import BaseModel

from stockledger.schemas.stock import MovementType, MovementReason


class DailyMovementRow(BaseModel):
    """One movement of the day, priced for the report."""
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    unit: str
    type: MovementType
    reason: MovementReason
    quantity: float
    unit_price: float
    total_price: float
    description: Optional[str] = None
    created_at: datetime


class DailySummary(BaseModel):
    total_stock_in: float
    total_stock_out: float
    total_purchase: float
    total_sale: float
    profit: float


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    pages: int


class DailyReport(BaseModel):
    """Movements of a single day with a whole-day summary."""
    date: date
    items: list[DailyMovementRow]
    summary: DailySummary
    pagination: Pagination


class StockReportRow(BaseModel):
    """Stock valuation for one product."""
    product_id: uuid.UUID
    name: str
    barcode: Optional[str] = None
    category: str
    unit: str
    current_stock: float
    minimum_stock: float
    purchase_price: float
    selling_price: float
    stock_value: float
    status: str  # 'critical' or 'normal'


class StockReport(BaseModel):
    items: list[StockReportRow]
    total_stock_value: float
    critical_count: int


class SalesReportRow(BaseModel):
    """One sale for the sales history."""
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    category: str
    unit: str
    quantity: float
    unit_price: float
    total_price: float
    created_at: datetime


class SalesReport(BaseModel):
    items: list[SalesReportRow]
    total_quantity: float
    total_amount: float


class PopularProductRow(BaseModel):
    """Sales velocity for one product over the report window."""
    product_id: uuid.UUID
    name: str
    category: str
    unit: str
    quantity_sold: float
    revenue: float
    daily_average: float
    current_stock: float
    days_of_cover: Optional[float] = None


class PopularReport(BaseModel):
    days: int
    items: list[PopularProductRow]
