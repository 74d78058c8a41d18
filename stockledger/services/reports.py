"""
Read-only report queries. Nothing here writes.
"""
from datetime import date, timedelta
from decimal import Decimal
import uuid

from sqlalchemy import select, func, case, desc
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.models.product import Product
from stockledger.models.stock import StockMovement
from stockledger.schemas.report import (
    DailyMovementRow, DailySummary, Pagination, DailyReport,
    StockReportRow, StockReport, SalesReportRow, SalesReport,
    PopularProductRow, PopularReport
)
from stockledger.schemas.stock import MovementType, MovementReason
from stockledger.utils import day_bounds, page_count, utc_date, utcnow


def sale_amount(movement: StockMovement, product: Product) -> Decimal:
    """Recorded sale total, or quantity at the current selling price when absent."""
    if movement.total_price is not None:
        return movement.total_price
    return movement.quantity * product.selling_price


def report_price(movement_type: str, product: Product) -> Decimal:
    """Stock in is valued at purchase price, stock out at selling price."""
    return product.purchase_price if movement_type == MovementType.IN.value else product.selling_price


def _owned_movements(user_id: uuid.UUID):
    return (
        select(StockMovement, Product)
        .join(Product, StockMovement.product_id == Product.id)
        .where(Product.user_id == user_id)
    )


def _is_sale():
    return (
        (StockMovement.movement_type == MovementType.OUT.value)
        & (StockMovement.reason == MovementReason.SALE.value)
    )


async def daily_report(
    db: AsyncSession,
    user_id: uuid.UUID,
    day: date,
    page: int,
    page_size: int
) -> DailyReport:
    start, end = day_bounds(day)
    in_day = (StockMovement.created_at >= start) & (StockMovement.created_at < end)

    total = (await db.execute(
        select(func.count(StockMovement.id))
        .join(Product, StockMovement.product_id == Product.id)
        .where(Product.user_id == user_id, in_day)
    )).scalar() or 0

    result = await db.execute(
        _owned_movements(user_id)
        .where(in_day)
        .order_by(desc(StockMovement.created_at))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = []
    for movement, product in result.all():
        price = report_price(movement.movement_type, product)
        items.append(DailyMovementRow(
            id=movement.id,
            product_id=product.id,
            product_name=product.name,
            unit=product.unit,
            type=movement.movement_type,
            reason=movement.reason,
            quantity=float(movement.quantity),
            unit_price=float(price),
            total_price=float(movement.quantity * price),
            description=movement.description,
            created_at=movement.created_at
        ))

    # Summary covers the whole day, not just this page
    priced = (await db.execute(
        select(
            StockMovement.movement_type,
            StockMovement.quantity,
            Product.purchase_price,
            Product.selling_price
        )
        .join(Product, StockMovement.product_id == Product.id)
        .where(Product.user_id == user_id, in_day)
    )).all()

    stock_in = stock_out = purchase = sale = Decimal("0")
    for movement_type, quantity, purchase_price, selling_price in priced:
        if movement_type == MovementType.IN.value:
            stock_in += quantity
            purchase += quantity * purchase_price
        else:
            stock_out += quantity
            sale += quantity * selling_price

    return DailyReport(
        date=day,
        items=items,
        summary=DailySummary(
            total_stock_in=float(stock_in),
            total_stock_out=float(stock_out),
            total_purchase=float(purchase),
            total_sale=float(sale),
            profit=float(sale - purchase)
        ),
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            pages=page_count(total, page_size)
        )
    )


async def stock_report(db: AsyncSession, user_id: uuid.UUID) -> StockReport:
    result = await db.execute(
        select(Product)
        .where(Product.user_id == user_id, Product.is_deleted.is_(False))
        .order_by(Product.name)
    )
    rows = [
        StockReportRow(
            product_id=product.id,
            name=product.name,
            barcode=product.barcode,
            category=product.category,
            unit=product.unit,
            current_stock=float(product.current_stock),
            minimum_stock=float(product.minimum_stock),
            purchase_price=float(product.purchase_price),
            selling_price=float(product.selling_price),
            stock_value=float(product.stock_value),
            status="critical" if product.is_low_stock else "normal"
        )
        for product in result.scalars().all()
    ]
    return StockReport(
        items=rows,
        total_stock_value=sum(row.stock_value for row in rows),
        critical_count=sum(1 for row in rows if row.status == "critical")
    )


async def sales_report(db: AsyncSession, user_id: uuid.UUID) -> SalesReport:
    result = await db.execute(
        _owned_movements(user_id)
        .where(_is_sale())
        .order_by(desc(StockMovement.created_at))
    )
    rows = []
    for movement, product in result.all():
        amount = sale_amount(movement, product)
        unit_price = movement.unit_price if movement.unit_price is not None else product.selling_price
        rows.append(SalesReportRow(
            id=movement.id,
            product_id=product.id,
            product_name=product.name,
            category=product.category,
            unit=product.unit,
            quantity=float(movement.quantity),
            unit_price=float(unit_price),
            total_price=float(amount),
            created_at=movement.created_at
        ))
    return SalesReport(
        items=rows,
        total_quantity=sum(row.quantity for row in rows),
        total_amount=sum(row.total_price for row in rows)
    )


async def popular_report(db: AsyncSession, user_id: uuid.UUID, days: int) -> PopularReport:
    """Quantity sold per product over the last ``days`` days, best sellers first."""
    since = utcnow() - timedelta(days=days)
    amount = func.coalesce(StockMovement.total_price, StockMovement.quantity * Product.selling_price)

    sold = (await db.execute(
        select(
            StockMovement.product_id,
            func.sum(StockMovement.quantity),
            func.sum(amount)
        )
        .join(Product, StockMovement.product_id == Product.id)
        .where(
            Product.user_id == user_id,
            _is_sale(),
            StockMovement.created_at >= since
        )
        .group_by(StockMovement.product_id)
    )).all()
    totals = {product_id: (quantity, revenue) for product_id, quantity, revenue in sold}

    products = (await db.execute(
        select(Product).where(Product.user_id == user_id, Product.is_deleted.is_(False))
    )).scalars().all()

    rows = []
    for product in products:
        quantity, revenue = totals.get(product.id, (0, 0))
        quantity = float(quantity or 0)
        daily_average = quantity / days
        rows.append(PopularProductRow(
            product_id=product.id,
            name=product.name,
            category=product.category,
            unit=product.unit,
            quantity_sold=quantity,
            revenue=float(revenue or 0),
            daily_average=round(daily_average, 2),
            current_stock=float(product.current_stock),
            days_of_cover=round(float(product.current_stock) / daily_average) if quantity > 0 else None
        ))

    rows.sort(key=lambda row: (-row.quantity_sold, row.name))
    return PopularReport(days=days, items=rows)


def sales_by_day(
    sales: list[tuple[StockMovement, Product]],
    first_day: date,
    days: int
) -> list[tuple[date, Decimal]]:
    """Bucket sales into consecutive days starting at ``first_day``, oldest first."""
    buckets = {first_day + timedelta(days=offset): Decimal("0") for offset in range(days)}
    for movement, product in sales:
        day = utc_date(movement.created_at)
        if day in buckets:
            buckets[day] += sale_amount(movement, product)
    return sorted(buckets.items())


async def recent_sales(
    db: AsyncSession,
    user_id: uuid.UUID,
    since
) -> list[tuple[StockMovement, Product]]:
    result = await db.execute(
        _owned_movements(user_id).where(_is_sale(), StockMovement.created_at >= since)
    )
    return [tuple(row) for row in result.all()]
