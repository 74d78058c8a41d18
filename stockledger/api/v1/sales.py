"""
Sales API endpoints. A sale is an OUT/SALE stock movement with prices.
"""
from typing import Optional
from datetime import datetime
import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.api.deps import get_stock_ledger
from stockledger.api.v1.stock import list_owned_movements
from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.models.user import User
from stockledger.schemas.stock import (
    MovementType,
    MovementReason,
    SaleCreate,
    StockMovementResponse,
    StockMovementListResponse
)
from stockledger.services.ledger import StockLedger

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=StockMovementResponse)
async def create_sale(
    sale_data: SaleCreate,
    current_user: User = Depends(get_current_user),
    ledger: StockLedger = Depends(get_stock_ledger)
):
    """
    Record a sale.

    - **quantity**: Amount sold, at most the stock on hand
    - **unit_price**: Price per unit
    - **total_price**: Defaults to quantity x unit_price
    """
    return await ledger.record_sale(
        sale_data.product_id,
        current_user.id,
        sale_data.quantity,
        sale_data.unit_price,
        total_price=sale_data.total_price,
        description=sale_data.description
    )


@router.get("", response_model=StockMovementListResponse)
async def list_sales(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    product_id: Optional[uuid.UUID] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List sales with product details, newest first."""
    return await list_owned_movements(
        db,
        current_user.id,
        page,
        page_size,
        product_id=product_id,
        movement_type=MovementType.OUT,
        reason=MovementReason.SALE,
        start_date=start_date,
        end_date=end_date
    )
