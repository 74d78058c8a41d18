"""
Pydantic schemas for Dashboard endpoints.
"""
from datetime import date
from pydantic import BaseModel

from stockledger.schemas.product import ProductResponse


class DashboardStats(BaseModel):
    """Headline numbers for the dashboard."""
    total_products: int
    total_stock_value: float
    today_sales_count: int
    today_sales_amount: float
    critical_stock_count: int


class CriticalStocksResponse(BaseModel):
    items: list[ProductResponse]
    total: int


class SalesChartPoint(BaseModel):
    """Sales amount for one day."""
    date: date
    amount: float


class HealthCheck(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: str
