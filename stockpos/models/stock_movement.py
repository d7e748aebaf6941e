"""Stock Movement model."""
import enum
from datetime import datetime

from sqlalchemy import Column, Numeric, DateTime, Text, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockpos.database import Base, BigIntId


class MovementType(enum.Enum):
    """Stock movement type enum."""
    IN = "IN"
    OUT = "OUT"


class StockMovement(Base):
    """Stock Movement (immutable ledger entry)."""

    __tablename__ = 'stock_movement'
    __table_args__ = (
        CheckConstraint('qty > 0', name='ck_stock_movement_qty_positive'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    product_id = Column(BigIntId, ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(Enum(MovementType, name='stock_movement_type'), nullable=False)
    qty = Column(Numeric(12, 3), nullable=False)
    reference = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())

    product = relationship('Product', back_populates='movements')

    def __repr__(self):
        return f"<StockMovement(id={self.id}, type={self.type.value}, qty={self.qty})>"
