"""
Stock ledger writer.

Every change to ``Product.current_stock`` goes through here so that a
product's stock always equals the net sum of its movements. The movement
insert and the stock update share one transaction; the stock update is a
single guarded ``UPDATE ... RETURNING`` on a row locked for the duration.
"""
from decimal import Decimal
from typing import Optional
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from stockledger.error_handlers import NotFound, ValidationFailed, InsufficientStock
from stockledger.logging_config import get_logger
from stockledger.models.product import Product
from stockledger.models.stock import StockMovement
from stockledger.schemas.audit import AuditAction
from stockledger.schemas.stock import MovementType, MovementReason, REASONS_BY_TYPE
from stockledger.services.audit import AuditRecorder
from stockledger.services.events import EventBus, EventTopic
from stockledger.units import validate_quantity

logger = get_logger("ledger")

CENT = Decimal("0.01")


def opening_movement(
    product: Product,
    created_by: Optional[uuid.UUID],
    description: str = "Opening stock"
) -> Optional[StockMovement]:
    """
    IN/COUNT movement matching a product's starting stock.

    Used when a product is created with stock already on hand, so the ledger
    explains that stock from the first moment. Returns None for zero stock.
    """
    if not product.current_stock:
        return None
    return StockMovement(
        product=product,
        created_by=created_by,
        movement_type=MovementType.IN.value,
        reason=MovementReason.COUNT.value,
        quantity=product.current_stock,
        description=description
    )


class StockLedger:
    """Records stock movements and sales for one request."""

    def __init__(self, db: AsyncSession, bus: EventBus, audit: AuditRecorder):
        self.db = db
        self.bus = bus
        self.audit = audit

    async def _lock_product(self, product_id: uuid.UUID, user_id: uuid.UUID) -> Product:
        result = await self.db.execute(
            select(Product)
            .where(
                Product.id == product_id,
                Product.user_id == user_id,
                Product.is_deleted.is_(False)
            )
            .with_for_update()
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFound("Product", product_id)
        return product

    async def _apply_delta(
        self,
        product: Product,
        movement_type: MovementType,
        quantity: Decimal
    ) -> Decimal:
        delta = quantity if movement_type == MovementType.IN else -quantity
        stmt = (
            update(Product)
            .where(Product.id == product.id)
            .values(current_stock=Product.current_stock + delta)
            .returning(Product.current_stock)
            .execution_options(synchronize_session=False)
        )
        if movement_type == MovementType.OUT:
            stmt = stmt.where(Product.current_stock >= quantity)

        new_stock = (await self.db.execute(stmt)).scalar_one_or_none()
        if new_stock is None:
            raise InsufficientStock(product.current_stock, quantity)

        set_committed_value(product, "current_stock", new_stock)
        return new_stock

    async def record_movement(
        self,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        movement_type: MovementType | str,
        reason: MovementReason | str,
        quantity: Decimal,
        description: Optional[str] = None,
        unit_price: Optional[Decimal] = None,
        total_price: Optional[Decimal] = None,
        topic: EventTopic = EventTopic.STOCK_MOVEMENT_CREATED
    ) -> StockMovement:
        """
        Record one movement and adjust the product's stock with it.

        Raises:
            ValidationFailed: bad quantity, or reason not valid for the direction
            NotFound: product missing, deleted or owned by someone else
            InsufficientStock: OUT movement larger than the stock on hand
        """
        movement_type = MovementType(movement_type)
        reason = MovementReason(reason)
        quantity = Decimal(str(quantity))

        if reason not in REASONS_BY_TYPE[movement_type]:
            raise ValidationFailed(
                f"Reason {reason.value} is not valid for {movement_type.value} movements",
                details={
                    "type": movement_type.value,
                    "reason": reason.value,
                    "allowed": sorted(r.value for r in REASONS_BY_TYPE[movement_type])
                }
            )
        if quantity <= 0:
            raise ValidationFailed(
                "Quantity must be greater than zero",
                details={"quantity": float(quantity)}
            )

        product = await self._lock_product(product_id, user_id)
        validate_quantity(product.unit, quantity)

        new_stock = await self._apply_delta(product, movement_type, quantity)
        old_stock = new_stock - quantity if movement_type == MovementType.IN else new_stock + quantity

        movement = StockMovement(
            product_id=product.id,
            created_by=user_id,
            movement_type=movement_type.value,
            reason=reason.value,
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
            description=description
        )
        self.db.add(movement)
        await self.db.commit()

        logger.info(
            f"{movement_type.value}/{reason.value} {quantity} on product {product.id}: "
            f"{old_stock} -> {new_stock}"
        )

        self.bus.publish(topic)
        await self.audit.record(
            AuditAction.CREATE,
            "StockMovement",
            movement.id,
            user_id,
            {
                "product_id": product.id,
                "product_name": product.name,
                "type": movement_type.value,
                "reason": reason.value,
                "quantity": quantity,
                "old_stock": old_stock,
                "new_stock": new_stock,
                "unit_price": unit_price,
                "total_price": total_price,
            }
        )
        return movement

    async def record_sale(
        self,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        quantity: Decimal,
        unit_price: Decimal,
        total_price: Optional[Decimal] = None,
        description: Optional[str] = None
    ) -> StockMovement:
        """An OUT/SALE movement carrying its prices."""
        quantity = Decimal(str(quantity))
        unit_price = Decimal(str(unit_price))
        if total_price is None:
            total_price = (quantity * unit_price).quantize(CENT)

        return await self.record_movement(
            product_id,
            user_id,
            MovementType.OUT,
            MovementReason.SALE,
            quantity,
            description=description,
            unit_price=unit_price,
            total_price=total_price,
            topic=EventTopic.SALE_CREATED
        )
