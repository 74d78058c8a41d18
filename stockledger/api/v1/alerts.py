"""
Alerts API endpoints for notifications and low-stock warnings.
"""
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, desc

from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.error_handlers import Forbidden, NotFound
from stockledger.models.user import User
from stockledger.models.alert import Alert
from stockledger.models.product import Product
from stockledger.schemas.alert import (
    AlertType,
    AlertCreate,
    AlertResponse,
    AlertListResponse,
    StockCheckResponse
)
from stockledger.services.alerts import evaluate_low_stock
from stockledger.utils import page_count

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List alerts, newest first.

    - **unread_only**: Show only unread alerts
    """
    query = select(Alert).where(Alert.user_id == current_user.id)

    if unread_only:
        query = query.where(Alert.is_read.is_(False))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    unread_count = (await db.execute(
        select(func.count(Alert.id)).where(
            Alert.user_id == current_user.id,
            Alert.is_read.is_(False)
        )
    )).scalar() or 0

    query = query.order_by(desc(Alert.created_at))
    query = query.offset((page - 1) * page_size).limit(page_size)
    alerts = (await db.execute(query)).scalars().all()

    return AlertListResponse(
        items=alerts,
        total=total,
        unread_count=unread_count,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size)
    )


@router.post("", response_model=AlertResponse, status_code=status.HTTP_201_CREATED)
async def create_alert(
    alert_data: AlertCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a manual alert, optionally linked to one of your products."""
    if alert_data.product_id:
        result = await db.execute(
            select(Product.id).where(
                Product.id == alert_data.product_id,
                Product.user_id == current_user.id
            )
        )
        if result.first() is None:
            raise NotFound("Product", alert_data.product_id)

    new_alert = Alert(
        user_id=current_user.id,
        product_id=alert_data.product_id,
        alert_type=AlertType.MANUAL.value,
        message=alert_data.message,
        is_read=False
    )

    db.add(new_alert)
    await db.commit()
    await db.refresh(new_alert)

    return new_alert


@router.post("/check-stock", response_model=StockCheckResponse)
async def check_stock(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a low-stock alert for every product at or below its minimum."""
    alerts = await evaluate_low_stock(db, current_user.id)

    return StockCheckResponse(
        message=f"Created {len(alerts)} low stock alerts",
        alerts=alerts
    )


@router.post("/mark-all-read", status_code=status.HTTP_200_OK)
async def mark_all_alerts_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark all unread alerts as read."""
    result = await db.execute(
        update(Alert)
        .where(
            Alert.user_id == current_user.id,
            Alert.is_read.is_(False)
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return {"message": f"Marked {result.rowcount} alerts as read"}


@router.put("/{alert_id}/read", response_model=AlertResponse)
async def mark_alert_read(
    alert_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark an alert as read."""
    alert = await db.get(Alert, alert_id)

    if not alert:
        raise NotFound("Alert", alert_id)

    if alert.user_id != current_user.id:
        raise Forbidden("You do not have access to this alert")

    alert.is_read = True
    await db.commit()
    await db.refresh(alert)

    return alert
