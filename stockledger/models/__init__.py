"""
SQLAlchemy models for the stock ledger application.
Import all models here to ensure they're registered with SQLAlchemy.
"""
from stockledger.models.user import User
from stockledger.models.product import Product
from stockledger.models.stock import StockMovement
from stockledger.models.alert import Alert, AuditLog

__all__ = [
    "User",
    "Product",
    "StockMovement",
    "Alert",
    "AuditLog",
]
