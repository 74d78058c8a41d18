"""
Report API endpoints. Read-only views over products and the stock ledger.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.config import settings
from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.models.user import User
from stockledger.schemas.report import DailyReport, StockReport, SalesReport, PopularReport
from stockledger.services import reports
from stockledger.utils import utcnow

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/daily", response_model=DailyReport)
async def get_daily_report(
    report_date: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Movements of one day, priced at purchase price (IN) or selling price (OUT),
    with a summary of the whole day.
    """
    return await reports.daily_report(
        db,
        current_user.id,
        report_date or utcnow().date(),
        page,
        settings.report_page_size
    )


@router.get("/stock", response_model=StockReport)
async def get_stock_report(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stock valuation per product."""
    return await reports.stock_report(db, current_user.id)


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Sales history, newest first."""
    return await reports.sales_report(db, current_user.id)


@router.get("/popular", response_model=PopularReport)
async def get_popular_report(
    days: Optional[int] = Query(None, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Best sellers over the last ``days`` days with days of stock cover."""
    return await reports.popular_report(db, current_user.id, days or settings.popular_report_days)
