"""
Alert and audit models.
"""
from typing import Optional
import uuid
from sqlalchemy import String, Boolean, ForeignKey, Index, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockledger.core.database import Base, UpdatedAtMixin


class Alert(UpdatedAtMixin, Base):
    """Notice for a user, e.g. a low-stock warning. Only the read flag ever changes."""

    __tablename__ = "alerts"

    # Foreign keys
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    # Alert details
    alert_type: Mapped[str] = mapped_column(String(50), default="manual", nullable=False)  # 'low_stock', 'manual'
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Status tracking
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="alerts")
    product = relationship("Product", back_populates="alerts")

    # Indexes
    __table_args__ = (
        Index("idx_alerts_user_unread", "user_id", "is_read"),
        Index("idx_alerts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Alert(id={self.id}, type={self.alert_type}, read={self.is_read})>"


class AuditLog(Base):
    """Append-only record of who did what to which entity."""

    __tablename__ = "audit_logs"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Action details
    action: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # CREATE, UPDATE, DELETE
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)

    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Note: No relationship to User since we want to keep audit logs even if user is deleted

    # Indexes
    __table_args__ = (
        Index("idx_audit_logs_entity", "entity_type", "entity_id"),
        Index("idx_audit_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, entity={self.entity_type})>"
