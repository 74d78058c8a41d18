"""
Dashboard API endpoints for summary statistics and metrics.
"""
from datetime import timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from stockledger.core.config import settings
from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.models.user import User
from stockledger.models.product import Product
from stockledger.schemas.dashboard import DashboardStats, CriticalStocksResponse, SalesChartPoint
from stockledger.services.reports import recent_sales, sale_amount, sales_by_day
from stockledger.utils import day_bounds, utcnow

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _live_products(user_id):
    return (Product.user_id == user_id) & Product.is_deleted.is_(False)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Headline numbers: product count, stock value at purchase price,
    today's sales and the number of products at or below minimum stock.
    """
    total_products = (await db.execute(
        select(func.count(Product.id)).where(_live_products(current_user.id))
    )).scalar() or 0

    total_stock_value = (await db.execute(
        select(func.sum(Product.current_stock * Product.purchase_price))
        .where(_live_products(current_user.id))
    )).scalar() or 0

    critical_stock_count = (await db.execute(
        select(func.count(Product.id)).where(
            _live_products(current_user.id),
            Product.current_stock <= Product.minimum_stock
        )
    )).scalar() or 0

    today_start, _ = day_bounds(utcnow().date())
    today_sales = await recent_sales(db, current_user.id, today_start)

    return DashboardStats(
        total_products=total_products,
        total_stock_value=float(total_stock_value),
        today_sales_count=len(today_sales),
        today_sales_amount=float(sum(sale_amount(movement, product) for movement, product in today_sales)),
        critical_stock_count=critical_stock_count
    )


@router.get("/critical-stocks", response_model=CriticalStocksResponse)
async def get_critical_stocks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Products at or below their minimum stock, ordered by name."""
    result = await db.execute(
        select(Product)
        .where(
            _live_products(current_user.id),
            Product.current_stock <= Product.minimum_stock
        )
        .order_by(Product.name)
    )
    products = result.scalars().all()

    return CriticalStocksResponse(items=products, total=len(products))


@router.get("/sales-chart", response_model=list[SalesChartPoint])
async def get_sales_chart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Daily sales amounts for the last few days, oldest first."""
    days = settings.sales_chart_days
    first_day = utcnow().date() - timedelta(days=days - 1)
    since, _ = day_bounds(first_day)

    sales = await recent_sales(db, current_user.id, since)

    return [
        SalesChartPoint(date=day, amount=float(amount))
        for day, amount in sales_by_day(sales, first_day, days)
    ]
