"""
Paged gzip dumps and restores of whole collections.

Each ``BackupEntity`` maps to exactly one model. Dumps are JSON arrays of
column values in creation order; restores strip ids, coerce values to the
column types and insert everything in one transaction.
"""
from decimal import Decimal
import gzip
import json
from typing import Any
import uuid

from fastapi.encoders import jsonable_encoder
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import JSON, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.database import Base
from stockledger.error_handlers import ValidationFailed
from stockledger.logging_config import get_logger
from stockledger.models import User, Product, StockMovement, Alert, AuditLog
from stockledger.schemas.backup import BackupEntity
from stockledger.schemas.stock import MovementType
from stockledger.services.ledger import opening_movement
from stockledger.utils import page_count

logger = get_logger("backup")

ENTITY_MODELS: dict[BackupEntity, type[Base]] = {
    BackupEntity.USER: User,
    BackupEntity.PRODUCT: Product,
    BackupEntity.STOCK_MOVEMENT: StockMovement,
    BackupEntity.ALERT: Alert,
    BackupEntity.AUDIT_LOG: AuditLog,
}


def row_to_dict(obj: Base) -> dict[str, Any]:
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


async def dump_page(
    db: AsyncSession,
    entity: BackupEntity,
    page: int,
    page_size: int
) -> tuple[bytes, int, int]:
    """
    Return ``(gzip_bytes, total_rows, total_pages)`` for one page of ``entity``.
    """
    model = ENTITY_MODELS[entity]
    total = (await db.execute(select(func.count()).select_from(model))).scalar() or 0

    result = await db.execute(
        select(model)
        .order_by(model.created_at, model.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = [row_to_dict(obj) for obj in result.scalars().all()]
    payload = json.dumps(jsonable_encoder(rows)).encode("utf-8")

    logger.info(f"Backup {entity.value} page {page}: {len(rows)} of {total} rows")
    return gzip.compress(payload), total, page_count(total, page_size)


def decode_payload(body: bytes) -> list[dict]:
    """Gunzip and parse a restore body. It must be a JSON array of objects."""
    try:
        data = json.loads(gzip.decompress(body).decode("utf-8"))
    except (OSError, EOFError, UnicodeDecodeError, ValueError) as e:
        raise ValidationFailed("Restore body is not gzip-compressed JSON", details={"reason": str(e)})

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValidationFailed("Invalid restore payload. A JSON array of objects is expected.")
    return data


def _coerce_row(model: type[Base], row: dict, index: int) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for column in model.__table__.columns:
        if column.key == "id" or column.key not in row:
            continue
        value = row[column.key]
        if value is not None and not isinstance(column.type, JSON):
            try:
                value = TypeAdapter(column.type.python_type).validate_python(value)
            except ValidationError:
                raise ValidationFailed(
                    f"Row {index}: invalid value for '{column.key}'",
                    details={"row": index, "field": column.key}
                )
        values[column.key] = value

    missing = sorted(
        column.key
        for column in model.__table__.columns
        if column.key != "id"
        and not column.nullable
        and column.default is None
        and column.server_default is None
        and values.get(column.key) is None
    )
    if missing:
        raise ValidationFailed(
            f"Row {index}: missing required fields",
            details={"row": index, "fields": missing}
        )
    return values


async def _existing_ids(db: AsyncSession, model: type[Base]) -> set[uuid.UUID]:
    return set((await db.execute(select(model.id))).scalars().all())


async def _restore_movements(
    db: AsyncSession,
    pending: dict[uuid.UUID, list[dict[str, Any]]]
) -> tuple[int, int]:
    """
    Insert restored movements product by product and set each product's stock
    to their net sum.

    Products that already have movements keep their ledger; their rows are
    skipped. So are products whose restored movements would net below zero.
    """
    with_history = set(
        (await db.execute(
            select(StockMovement.product_id)
            .where(StockMovement.product_id.in_(list(pending)))
            .distinct()
        )).scalars().all()
    )

    inserted = 0
    skipped = 0
    for product_id, rows in pending.items():
        if product_id in with_history:
            logger.warning(
                f"Restore skipped {len(rows)} movements for product {product_id}: it already has a ledger"
            )
            skipped += len(rows)
            continue

        net = sum(
            (row["quantity"] if row["movement_type"] == MovementType.IN.value else -row["quantity"] for row in rows),
            Decimal("0")
        )
        if net < 0:
            logger.warning(
                f"Restore skipped {len(rows)} movements for product {product_id}: they net to {net}"
            )
            skipped += len(rows)
            continue

        db.add_all(StockMovement(**row) for row in rows)
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(current_stock=net)
            .execution_options(synchronize_session=False)
        )
        inserted += len(rows)

    return inserted, skipped


async def restore(
    db: AsyncSession,
    entity: BackupEntity,
    rows: list[dict],
    soft_delete_existing: bool = False
) -> tuple[int, int]:
    """
    Insert ``rows`` as new ``entity`` records. Returns ``(inserted, skipped)``.

    Rows pointing at a parent that no longer exists are skipped, as are
    users whose username is taken and products whose barcode is taken.
    Optional references to missing parents are cleared. Stock movements only
    load into products without a ledger of their own.
    """
    model = ENTITY_MODELS[entity]
    values_list = [_coerce_row(model, row, index) for index, row in enumerate(rows, start=1)]

    if soft_delete_existing and entity == BackupEntity.PRODUCT:
        await db.execute(
            update(Product)
            .where(Product.is_deleted.is_(False))
            .values(is_deleted=True)
            .execution_options(synchronize_session=False)
        )

    parents: dict[str, set[uuid.UUID]] = {}
    for column in model.__table__.columns:
        for fk in column.foreign_keys:
            parent_model = next(m for m in ENTITY_MODELS.values() if m.__table__ is fk.column.table)
            parents[column.key] = await _existing_ids(db, parent_model)

    taken: set[Any] = set()
    if entity == BackupEntity.USER:
        taken = set((await db.execute(select(User.username))).scalars().all())
    elif entity == BackupEntity.PRODUCT:
        result = await db.execute(
            select(Product.user_id, Product.barcode).where(
                Product.barcode.is_not(None),
                Product.is_deleted.is_(False)
            )
        )
        taken = {(user_id, barcode) for user_id, barcode in result.all()}

    inserted = 0
    skipped = 0
    pending_movements: dict[uuid.UUID, list[dict[str, Any]]] = {}
    for values in values_list:
        orphaned = False
        for key, existing in parents.items():
            if values.get(key) is None or values[key] in existing:
                continue
            if model.__table__.columns[key].nullable:
                values[key] = None
            else:
                orphaned = True
        if orphaned:
            skipped += 1
            continue

        if entity == BackupEntity.STOCK_MOVEMENT:
            pending_movements.setdefault(values["product_id"], []).append(values)
            continue

        if entity == BackupEntity.USER:
            if values["username"] in taken:
                skipped += 1
                continue
            taken.add(values["username"])
        elif entity == BackupEntity.PRODUCT and values.get("barcode") and not values.get("is_deleted"):
            key = (values["user_id"], values["barcode"])
            if key in taken:
                skipped += 1
                continue
            taken.add(key)

        obj = model(**values)
        db.add(obj)
        if entity == BackupEntity.PRODUCT:
            movement = opening_movement(obj, None, "Restored stock")
            if movement is not None:
                db.add(movement)
        inserted += 1

    if pending_movements:
        loaded, refused = await _restore_movements(db, pending_movements)
        inserted += loaded
        skipped += refused

    await db.commit()
    logger.info(f"Restore {entity.value}: {inserted} inserted, {skipped} skipped")
    return inserted, skipped
