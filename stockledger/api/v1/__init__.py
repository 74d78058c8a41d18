"""API v1 Router."""
from fastapi import APIRouter

from stockledger.api.v1 import (
    auth, products, stock, sales, alerts, dashboard, reports, audit_logs, events, backup
)

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(products.router)
api_router.include_router(stock.router)
api_router.include_router(sales.router)
api_router.include_router(alerts.router)
api_router.include_router(dashboard.router)
api_router.include_router(reports.router)
api_router.include_router(audit_logs.router)
api_router.include_router(events.router)
api_router.include_router(backup.router)

__all__ = ["api_router"]
