"""
Product catalogue: creation, editing, deletion and bulk import.

Stock is never edited here. A product created with stock on hand gets an
opening IN/COUNT movement in the same transaction.
"""
from decimal import Decimal
from typing import Any, Optional
import uuid

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.error_handlers import AppException, Conflict, NotFound, ValidationFailed
from stockledger.logging_config import get_logger
from stockledger.models.product import Product
from stockledger.schemas.audit import AuditAction
from stockledger.schemas.product import ProductCreate, ProductUpdate, ImportRowError
from stockledger.services.audit import AuditRecorder
from stockledger.services.events import EventBus, EventTopic
from stockledger.services.ledger import opening_movement
from stockledger.units import normalize_unit, validate_quantity, allows_fraction, is_whole

logger = get_logger("products")

SNAPSHOT_FIELDS = (
    "id", "name", "barcode", "category", "purchase_price", "selling_price",
    "current_stock", "minimum_stock", "unit", "description", "supplier", "is_deleted",
)

# Columns that may never be set to null through an update
REQUIRED_FIELDS = {"name", "category", "purchase_price", "selling_price", "minimum_stock", "unit"}


def product_snapshot(product: Product) -> dict[str, Any]:
    return {field: getattr(product, field) for field in SNAPSHOT_FIELDS}


def check_unit(unit: Optional[str]) -> str:
    code = normalize_unit(unit)
    if code is None:
        raise ValidationFailed(f"Unknown unit '{unit}'", details={"unit": unit})
    return code


def check_price_order(purchase_price: Decimal, selling_price: Decimal) -> None:
    if selling_price <= purchase_price:
        raise ValidationFailed(
            "Selling price must be greater than purchase price",
            details={
                "purchase_price": float(purchase_price),
                "selling_price": float(selling_price)
            }
        )


def format_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in error['loc']) or 'row'}: {error['msg']}"
        for error in exc.errors()
    )


class ProductCatalogue:
    """Owner-scoped product operations."""

    def __init__(self, db: AsyncSession, bus: EventBus, audit: AuditRecorder):
        self.db = db
        self.bus = bus
        self.audit = audit

    async def get(self, user_id: uuid.UUID, product_id: uuid.UUID) -> Product:
        result = await self.db.execute(
            select(Product).where(
                Product.id == product_id,
                Product.user_id == user_id,
                Product.is_deleted.is_(False)
            )
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFound("Product", product_id)
        return product

    async def get_by_barcode(self, user_id: uuid.UUID, barcode: str) -> Product:
        result = await self.db.execute(
            select(Product).where(
                Product.barcode == barcode,
                Product.user_id == user_id,
                Product.is_deleted.is_(False)
            )
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFound("Product", barcode)
        return product

    async def ensure_barcode_available(
        self,
        user_id: uuid.UUID,
        barcode: Optional[str],
        exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        """Barcodes are unique among one owner's live products."""
        if not barcode:
            return
        query = select(Product.id).where(
            Product.user_id == user_id,
            Product.barcode == barcode,
            Product.is_deleted.is_(False)
        )
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        if (await self.db.execute(query.limit(1))).first() is not None:
            raise Conflict("Product", "barcode", barcode)

    async def _commit(self, user_id: uuid.UUID, barcodes: list[str]) -> None:
        """Commit. A barcode claimed by a concurrent writer surfaces as Conflict."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if "barcode" not in str(e.orig):
                raise
            logger.info(f"Barcode taken concurrently for user {user_id}: {barcodes}")
            raise Conflict("Product", "barcode", ", ".join(barcodes))

    async def _build(
        self,
        user_id: uuid.UUID,
        data: ProductCreate,
        reserved_barcodes: Optional[set[str]] = None,
        source: str = "Opening stock"
    ) -> Product:
        unit = check_unit(data.unit)
        check_price_order(data.purchase_price, data.selling_price)
        validate_quantity(unit, data.current_stock)

        if data.barcode:
            if reserved_barcodes is not None and data.barcode in reserved_barcodes:
                raise Conflict("Product", "barcode", data.barcode)
            await self.ensure_barcode_available(user_id, data.barcode)

        product = Product(
            user_id=user_id,
            **data.model_dump(exclude={"unit"}),
            unit=unit
        )
        self.db.add(product)

        movement = opening_movement(product, user_id, source)
        if movement is not None:
            self.db.add(movement)

        if reserved_barcodes is not None and data.barcode:
            reserved_barcodes.add(data.barcode)
        return product

    async def create(self, user_id: uuid.UUID, data: ProductCreate) -> Product:
        product = await self._build(user_id, data)
        await self._commit(user_id, [data.barcode] if data.barcode else [])

        logger.info(f"Product created: {product.id} ({product.name})")
        self.bus.publish(EventTopic.PRODUCT_CREATED)
        await self.audit.record(
            AuditAction.CREATE, "Product", product.id, user_id, product_snapshot(product)
        )
        return product

    async def update(
        self,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        data: ProductUpdate
    ) -> Product:
        product = await self.get(user_id, product_id)
        before = product_snapshot(product)
        changes = data.model_dump(exclude_unset=True)

        nulled = sorted(field for field, value in changes.items() if value is None and field in REQUIRED_FIELDS)
        if nulled:
            raise ValidationFailed("Fields cannot be null", details={"fields": nulled})

        if "unit" in changes:
            changes["unit"] = check_unit(changes["unit"])
            if not allows_fraction(changes["unit"]) and not is_whole(product.current_stock):
                raise ValidationFailed(
                    f"Unit '{changes['unit']}' does not allow the fractional stock on hand",
                    details={"unit": changes["unit"], "current_stock": float(product.current_stock)}
                )

        check_price_order(
            changes.get("purchase_price", product.purchase_price),
            changes.get("selling_price", product.selling_price)
        )

        if changes.get("barcode") and changes["barcode"] != product.barcode:
            await self.ensure_barcode_available(user_id, changes["barcode"], exclude_id=product.id)

        for field, value in changes.items():
            setattr(product, field, value)

        await self._commit(user_id, [product.barcode] if product.barcode else [])
        await self.db.refresh(product)

        self.bus.publish(EventTopic.PRODUCT_UPDATED)
        await self.audit.record(
            AuditAction.UPDATE,
            "Product",
            product.id,
            user_id,
            {"before": before, "after": product_snapshot(product)}
        )
        return product

    async def delete(self, user_id: uuid.UUID, product_id: uuid.UUID, permanent: bool = False) -> None:
        """Soft-delete by default; ``permanent`` removes the row and its movements."""
        product = await self.get(user_id, product_id)
        snapshot = product_snapshot(product)

        if permanent:
            await self.db.delete(product)
        else:
            product.is_deleted = True
        await self.db.commit()

        logger.info(f"Product {'removed' if permanent else 'deleted'}: {product_id}")
        self.bus.publish(EventTopic.PRODUCT_DELETED)
        await self.audit.record(
            AuditAction.DELETE,
            "Product",
            product_id,
            user_id,
            {"deleted_product": snapshot, "permanent": permanent}
        )

    async def import_rows(
        self,
        user_id: uuid.UUID,
        rows: list[dict]
    ) -> tuple[list[Product], list[ImportRowError]]:
        """
        Validate and insert each row on its own merits.

        Rows that fail are reported by their 1-based position; the rest are
        committed together.
        """
        if not rows:
            raise ValidationFailed("No products to import")

        created: list[Product] = []
        errors: list[ImportRowError] = []
        reserved_barcodes: set[str] = set()

        for index, row in enumerate(rows, start=1):
            try:
                data = ProductCreate.model_validate(row)
                product = await self._build(user_id, data, reserved_barcodes, source="Imported stock")
            except ValidationError as e:
                errors.append(ImportRowError(row=index, error=format_validation_error(e)))
                continue
            except AppException as e:
                errors.append(ImportRowError(row=index, error=e.message))
                continue
            created.append(product)

        if created:
            await self._commit(user_id, sorted(p.barcode for p in created if p.barcode))
            self.bus.publish(EventTopic.PRODUCT_CREATED)
            for product in created:
                await self.audit.record(
                    AuditAction.CREATE,
                    "Product",
                    product.id,
                    user_id,
                    {**product_snapshot(product), "source": "import"}
                )

        logger.info(f"Product import for user {user_id}: {len(created)} created, {len(errors)} failed")
        return created, errors
