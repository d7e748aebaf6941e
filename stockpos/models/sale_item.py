"""Sale Item model."""
from sqlalchemy import Column, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from stockpos.database import Base, BigIntId


class SaleItem(Base):
    """Sale Item (detalle de venta). Price is captured at sale time."""

    __tablename__ = 'sale_item'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    sale_id = Column(BigIntId, ForeignKey('sale.id'), nullable=False, index=True)
    product_id = Column(BigIntId, ForeignKey('product.id'), nullable=False, index=True)
    qty = Column(Numeric(12, 3), nullable=False)
    price = Column(Numeric(14, 4), nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='items')
    product = relationship('Product')

    def __repr__(self):
        return f"<SaleItem(id={self.id}, product_id={self.product_id}, qty={self.qty})>"
