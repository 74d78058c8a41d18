"""
Backup and restore endpoints, guarded by an API key rather than a user session.
"""
import secrets
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.api.deps import get_audit_recorder, get_event_bus
from stockledger.core.config import settings
from stockledger.core.database import get_db
from stockledger.error_handlers import Unauthenticated, ValidationFailed
from stockledger.logging_config import get_logger
from stockledger.schemas.audit import AuditAction
from stockledger.schemas.backup import BackupEntity, RestoreResponse
from stockledger.services import backup
from stockledger.services.audit import AuditRecorder
from stockledger.services.events import EventBus, EventTopic

router = APIRouter(tags=["Backup"])

logger = get_logger("backup")

RESTORE_TOPICS = {
    BackupEntity.PRODUCT: EventTopic.PRODUCT_CREATED,
    BackupEntity.STOCK_MOVEMENT: EventTopic.STOCK_MOVEMENT_CREATED,
}


async def require_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Backup is disabled until BACKUP_API_KEY is configured."""
    if not settings.backup_api_key or not x_api_key or not secrets.compare_digest(
        x_api_key, settings.backup_api_key
    ):
        logger.warning("Backup request with invalid API key")
        raise Unauthenticated("Invalid API key")


@router.get("/backup", dependencies=[Depends(require_api_key)])
async def download_backup(
    entity: BackupEntity = Query(..., alias="type"),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db)
):
    """
    One page of a collection as gzip-compressed JSON.

    Totals are returned in ``X-Total-Count``, ``X-Total-Pages`` and ``X-Page``.
    """
    body, total, pages = await backup.dump_page(db, entity, page, settings.backup_page_size)

    return Response(
        content=body,
        media_type="application/gzip",
        headers={
            "Content-Disposition": f'attachment; filename="backup-{entity.value}-{page}.json.gz"',
            "X-Total-Count": str(total),
            "X-Total-Pages": str(pages),
            "X-Page": str(page)
        }
    )


@router.post("/restore", response_model=RestoreResponse, dependencies=[Depends(require_api_key)])
async def restore_backup(
    request: Request,
    entity: BackupEntity = Query(..., alias="type"),
    soft_delete_existing: bool = False,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    bus: EventBus = Depends(get_event_bus)
):
    """
    Load a gzip JSON array into a collection.

    Ids are regenerated. With ``soft_delete_existing`` (products only) all
    current products are soft-deleted first.
    """
    if "application/gzip" not in request.headers.get("content-type", ""):
        raise ValidationFailed("Invalid content type. application/gzip is required.")

    rows = backup.decode_payload(await request.body())
    count, skipped = await backup.restore(db, entity, rows, soft_delete_existing)

    if count and entity in RESTORE_TOPICS:
        bus.publish(RESTORE_TOPICS[entity])

    await audit.record(
        AuditAction.CREATE,
        "Restore",
        entity.value,
        None,
        {"count": count, "skipped": skipped, "soft_delete_existing": soft_delete_existing}
    )

    return RestoreResponse(
        success=True,
        message=f"{count} records restored",
        type=entity,
        count=count,
        skipped=skipped
    )
