"""
Pydantic schemas for backup and restore.
"""
from enum import Enum
from pydantic import BaseModel


class BackupEntity(str, Enum):
    """Collections that can be dumped and restored."""
    USER = "user"
    PRODUCT = "product"
    STOCK_MOVEMENT = "stockMovement"
    ALERT = "alert"
    AUDIT_LOG = "auditLog"


class RestoreResponse(BaseModel):
    """Outcome of a restore."""
    success: bool
    message: str
    type: BackupEntity
    count: int
    skipped: int
