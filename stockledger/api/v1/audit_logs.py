"""
Audit log API endpoints.
"""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.models.user import User
from stockledger.models.alert import AuditLog
from stockledger.schemas.audit import AuditAction, AuditLogListResponse
from stockledger.utils import page_count

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    entity_type: Optional[str] = None,
    action: Optional[AuditAction] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Your audit trail, newest first.

    - **entity_type**: e.g. Product, StockMovement
    - **action**: CREATE, UPDATE or DELETE
    - **start_date** / **end_date**: Creation time range
    """
    query = select(AuditLog).where(AuditLog.user_id == current_user.id)

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if action:
        query = query.where(AuditLog.action == action.value)

    if start_date:
        query = query.where(AuditLog.created_at >= start_date)

    if end_date:
        query = query.where(AuditLog.created_at <= end_date)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(desc(AuditLog.created_at)).offset((page - 1) * limit).limit(limit)
    logs = (await db.execute(query)).scalars().all()

    return AuditLogListResponse(
        items=logs,
        total=total,
        page=page,
        page_size=limit,
        pages=page_count(total, limit)
    )
