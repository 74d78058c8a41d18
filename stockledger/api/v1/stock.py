"""
Stock movement API endpoints. Every stock change is recorded here.
"""
from typing import Optional
from datetime import datetime
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from stockledger.api.deps import get_stock_ledger
from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.models.user import User
from stockledger.models.product import Product
from stockledger.models.stock import StockMovement
from stockledger.schemas.stock import (
    MovementType,
    MovementReason,
    StockMovementCreate,
    StockMovementResponse,
    StockMovementWithProduct,
    StockMovementListResponse
)
from stockledger.services.ledger import StockLedger
from stockledger.utils import page_count

router = APIRouter(prefix="/stock-movements", tags=["Stock Movements"])


def with_product(movement: StockMovement, product: Product) -> StockMovementWithProduct:
    return StockMovementWithProduct(
        **StockMovementResponse.model_validate(movement).model_dump(),
        product_name=product.name,
        product_unit=product.unit,
        product_category=product.category
    )


async def list_owned_movements(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int,
    page_size: int,
    product_id: Optional[uuid.UUID] = None,
    movement_type: Optional[MovementType] = None,
    reason: Optional[MovementReason] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
) -> StockMovementListResponse:
    """Movements of the user's products, newest first, one page at a time."""
    query = (
        select(StockMovement, Product)
        .join(Product, StockMovement.product_id == Product.id)
        .where(Product.user_id == user_id)
    )

    if product_id:
        query = query.where(StockMovement.product_id == product_id)

    if movement_type:
        query = query.where(StockMovement.movement_type == movement_type.value)

    if reason:
        query = query.where(StockMovement.reason == reason.value)

    if start_date:
        query = query.where(StockMovement.created_at >= start_date)

    if end_date:
        query = query.where(StockMovement.created_at <= end_date)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(desc(StockMovement.created_at))
    query = query.offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)

    return StockMovementListResponse(
        items=[with_product(movement, product) for movement, product in result.all()],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size)
    )


@router.post("", response_model=StockMovementResponse, status_code=status.HTTP_201_CREATED)
async def create_stock_movement(
    movement_data: StockMovementCreate,
    current_user: User = Depends(get_current_user),
    ledger: StockLedger = Depends(get_stock_ledger)
):
    """
    Record a stock movement and update the product's stock with it.

    - **type**: IN or OUT
    - **reason**: PURCHASE, RETURN, COUNT or OTHER for IN; SALE, RETURN, WASTE or OTHER for OUT
    - **quantity**: Positive; whole numbers only for piece-counted units
    """
    return await ledger.record_movement(
        movement_data.product_id,
        current_user.id,
        movement_data.movement_type,
        movement_data.reason,
        movement_data.quantity,
        description=movement_data.description
    )


@router.get("", response_model=StockMovementListResponse)
async def list_stock_movements(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    product_id: Optional[uuid.UUID] = None,
    movement_type: Optional[MovementType] = Query(None, alias="type"),
    reason: Optional[MovementReason] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List stock movements with filtering.

    - **product_id**: Filter by product
    - **type**: IN or OUT
    - **start_date** / **end_date**: Creation time range
    """
    return await list_owned_movements(
        db,
        current_user.id,
        page,
        page_size,
        product_id=product_id,
        movement_type=movement_type,
        reason=reason,
        start_date=start_date,
        end_date=end_date
    )
