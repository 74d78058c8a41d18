"""
Stock movement model: the append-only ledger of quantity changes.
"""
from typing import Optional
import uuid
from decimal import Decimal
from sqlalchemy import String, Numeric, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockledger.core.database import Base


class StockMovement(Base):
    """One immutable change to a product's stock. Never updated or deleted."""

    __tablename__ = "stock_movements"

    # Foreign keys
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    # Movement details
    movement_type: Mapped[str] = mapped_column(String(10), nullable=False)  # 'IN', 'OUT'
    reason: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)  # always positive

    # Sale pricing
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    total_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    product = relationship("Product", back_populates="movements")

    # Indexes
    __table_args__ = (
        Index("idx_stock_movements_product", "product_id"),
        Index("idx_stock_movements_type_reason", "movement_type", "reason"),
        Index("idx_stock_movements_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<StockMovement(id={self.id}, type={self.movement_type}, qty={self.quantity})>"

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity if self.movement_type == "IN" else -self.quantity
