"""
Best-effort audit trail.

Audit rows are written in their own session after the business transaction
has committed. Inside a request the write is handed to the request's
``BackgroundTasks`` and runs once the response has been sent. A failure here
is logged and dropped; it never reaches the caller.
"""
from typing import Any, Callable, Optional
import uuid

from fastapi import BackgroundTasks
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.logging_config import get_logger
from stockledger.models.alert import AuditLog
from stockledger.schemas.audit import AuditAction

logger = get_logger("audit")


class AuditRecorder:
    """Appends AuditLog rows, deferred to ``background`` when one is given."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        background: Optional[BackgroundTasks] = None
    ):
        self._session_factory = session_factory
        self._background = background

    async def record(
        self,
        action: AuditAction | str,
        entity_type: str,
        entity_id: Any,
        user_id: Optional[uuid.UUID],
        details: Any = None
    ) -> None:
        try:
            entry = AuditLog(
                action=AuditAction(action).value,
                entity_type=entity_type,
                entity_id=str(entity_id),
                user_id=user_id,
                details=jsonable_encoder(details) if details is not None else None
            )
        except Exception:
            logger.exception(
                f"Failed to write audit log: {action} {entity_type} {entity_id}"
            )
            return

        if self._background is not None:
            self._background.add_task(self._write, entry)
        else:
            await self._write(entry)

    async def _write(self, entry: AuditLog) -> None:
        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception:
            logger.exception(
                f"Failed to write audit log: {entry.action} {entry.entity_type} {entry.entity_id}"
            )
