"""Database helpers shared by the integration tests."""
from decimal import Decimal

from stockpos.models import Product, StockMovement


def make_product(db, **overrides):
    """Insert a product directly (no movement); returns its id."""
    fields = {
        'sku': 'SKU-1',
        'name': 'Yerba Mate 1kg',
        'purchase_price': Decimal('100'),
        'margin_pct': Decimal('50'),
        'sale_price': Decimal('150'),
        'stock_qty': Decimal('10'),
        'stock_min': Decimal('2'),
    }
    fields.update(overrides)
    with db.unit_of_work() as s:
        product = Product(**fields)
        s.add(product)
        s.flush()
        return product.id


def stock_of(db, product_id):
    with db.session_factory() as s:
        product = s.get(Product, product_id)
        return product.stock_qty if product else None


def movements_of(db, product_id):
    """(type, qty, reference) tuples in insertion order."""
    with db.session_factory() as s:
        rows = s.query(StockMovement).filter(
            StockMovement.product_id == product_id
        ).order_by(StockMovement.id).all()
        return [(m.type, m.qty, m.reference) for m in rows]
