"""
Product model for inventory management.
"""
from typing import Optional
import uuid
from decimal import Decimal
from sqlalchemy import String, Numeric, Boolean, ForeignKey, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockledger.core.database import Base, UpdatedAtMixin
from stockledger.units import DEFAULT_UNIT, get_unit_label


class Product(UpdatedAtMixin, Base):
    """Product inventory model.

    ``current_stock`` is maintained by the stock ledger and always equals the
    net sum of the product's movements.
    """

    __tablename__ = "products"

    # Foreign keys
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    # Product identification
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    barcode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    category: Mapped[str] = mapped_column(String(255), nullable=False)

    # Pricing
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Stock information
    current_stock: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=Decimal("0"), nullable=False)
    minimum_stock: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=Decimal("0"), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default=DEFAULT_UNIT, nullable=False)

    # Additional information
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    supplier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Status
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="products")
    movements = relationship(
        "StockMovement",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    alerts = relationship("Alert", back_populates="product", passive_deletes=True)

    # Indexes
    __table_args__ = (
        Index("idx_products_user_id", "user_id"),
        Index("idx_products_low_stock", "user_id", "current_stock"),
        # Barcodes are unique per owner among live products
        Index(
            "uq_products_user_barcode",
            "user_id",
            "barcode",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name}, stock={self.current_stock})>"

    @property
    def is_low_stock(self) -> bool:
        """Check if product stock is at or below the minimum level."""
        return self.current_stock <= self.minimum_stock

    @property
    def stock_status(self) -> str:
        """Get human-readable stock status."""
        if self.current_stock == 0:
            return "out_of_stock"
        elif self.is_low_stock:
            return "low_stock"
        else:
            return "in_stock"

    @property
    def unit_label(self) -> str:
        return get_unit_label(self.unit)

    @property
    def stock_value(self) -> Decimal:
        return self.current_stock * self.purchase_price
