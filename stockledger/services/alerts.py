"""
Low-stock threshold evaluation.
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.logging_config import get_logger
from stockledger.models.alert import Alert
from stockledger.models.product import Product
from stockledger.schemas.alert import AlertType
from stockledger.utils import format_quantity

logger = get_logger("alerts")


def low_stock_message(product: Product) -> str:
    return (
        f"{product.name} is at or below its minimum stock level. "
        f"Current stock: {format_quantity(product.current_stock)} {product.unit_label}, "
        f"minimum: {format_quantity(product.minimum_stock)} {product.unit_label}"
    )


async def evaluate_low_stock(db: AsyncSession, user_id: uuid.UUID) -> list[Alert]:
    """
    Create one alert per product of ``user_id`` whose stock is at or below
    its minimum. Existing unread alerts are not taken into account.
    """
    result = await db.execute(
        select(Product)
        .where(
            Product.user_id == user_id,
            Product.is_deleted.is_(False),
            Product.current_stock <= Product.minimum_stock
        )
        .order_by(Product.name)
    )
    products = result.scalars().all()

    alerts = [
        Alert(
            user_id=user_id,
            product_id=product.id,
            alert_type=AlertType.LOW_STOCK.value,
            message=low_stock_message(product),
            is_read=False
        )
        for product in products
    ]
    db.add_all(alerts)
    await db.commit()

    logger.info(f"Low-stock check for user {user_id} created {len(alerts)} alerts")
    return alerts
