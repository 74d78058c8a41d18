"""
Shared request dependencies for the service layer.
"""
from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.database import get_db, get_session_factory
from stockledger.services.audit import AuditRecorder
from stockledger.services.events import EventBus
from stockledger.services.ledger import StockLedger
from stockledger.services.products import ProductCatalogue


def get_event_bus(request: Request) -> EventBus:
    """The application's bus, created at startup."""
    return request.app.state.event_bus


def get_audit_recorder(background_tasks: BackgroundTasks) -> AuditRecorder:
    """Audit writes run after the response is sent."""
    return AuditRecorder(get_session_factory(), background_tasks)


def get_stock_ledger(
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
    audit: AuditRecorder = Depends(get_audit_recorder)
) -> StockLedger:
    return StockLedger(db, bus, audit)


def get_product_catalogue(
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
    audit: AuditRecorder = Depends(get_audit_recorder)
) -> ProductCatalogue:
    return ProductCatalogue(db, bus, audit)
