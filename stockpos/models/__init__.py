"""Models package - exports all SQLAlchemy models."""
from stockpos.models.category import Category
from stockpos.models.supplier import Supplier
from stockpos.models.product import Product, PricingMode
from stockpos.models.stock_movement import StockMovement, MovementType
from stockpos.models.sale import Sale
from stockpos.models.sale_item import SaleItem

__all__ = [
    'Category', 'Supplier', 'Product', 'PricingMode',
    'StockMovement', 'MovementType', 'Sale', 'SaleItem',
]
