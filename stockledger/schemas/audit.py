"""
Pydantic schemas for audit log queries.
"""
from typing import Any, Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, ConfigDict
from enum import Enum


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLogResponse(BaseModel):
    """Schema for an audit log entry."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: AuditAction
    entity_type: str
    entity_id: str
    user_id: Optional[uuid.UUID] = None
    details: Optional[Any] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated audit log list."""
    items: list[AuditLogResponse]
    total: int
    page: int
    page_size: int
    pages: int
