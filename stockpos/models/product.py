"""Product model."""
import enum
from datetime import datetime

from sqlalchemy import Column, String, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockpos.database import Base, BigIntId


class PricingMode(enum.Enum):
    """How purchase_price is interpreted."""
    UNIT = "UNIT"
    WEIGHT = "WEIGHT"


class Product(Base):
    """Product (catalog entry with on-hand stock)."""

    __tablename__ = 'product'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    sku = Column(String(64), nullable=False, unique=True)
    barcode = Column(String(64), nullable=True, unique=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(BigIntId, ForeignKey('category.id'), nullable=True)
    supplier_id = Column(BigIntId, ForeignKey('supplier.id'), nullable=True)

    # Pricing
    purchase_price = Column(Numeric(12, 2), nullable=False, default=0, server_default='0')
    margin_pct = Column(Numeric(8, 2), nullable=False, default=0, server_default='0')
    sale_price = Column(Numeric(14, 4), nullable=False, default=0, server_default='0')
    pricing_mode = Column(
        Enum(PricingMode, name='pricing_mode'), nullable=False,
        default=PricingMode.UNIT, server_default=PricingMode.UNIT.value
    )
    package_weight_kg = Column(Numeric(10, 3), nullable=False, default=1, server_default='1')

    # Inventory (fractional quantities allowed for WEIGHT products)
    stock_qty = Column(Numeric(12, 3), nullable=False, default=0, server_default='0')
    stock_min = Column(Numeric(12, 3), nullable=False, default=0, server_default='0')

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False,
        default=datetime.now, server_default=func.now(), onupdate=datetime.now
    )

    # Relationships
    category = relationship('Category', back_populates='products')
    supplier = relationship('Supplier', back_populates='products')
    # Movements are removed together with the product
    movements = relationship(
        'StockMovement', back_populates='product',
        cascade='all, delete-orphan', passive_deletes=True
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}')>"

    @hybrid_property
    def is_low_stock(self):
        """At or below the reorder threshold (zero stock included)."""
        return (self.stock_qty or 0) <= (self.stock_min or 0)

    @is_low_stock.expression
    def is_low_stock(cls):
        return cls.stock_qty <= cls.stock_min

    def summary(self):
        """Short representation embedded in movements and sale items."""
        return {'id': self.id, 'name': self.name, 'sku': self.sku}
