"""Sale model."""
from datetime import datetime

from sqlalchemy import Column, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockpos.database import Base, BigIntId


class Sale(Base):
    """Sale (venta confirmada)."""

    __tablename__ = 'sale'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    total = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())

    # Relationships
    items = relationship(
        'SaleItem', back_populates='sale',
        cascade='all, delete-orphan', order_by='SaleItem.id'
    )

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total})>"
