"""Product catalog service: listing, create, edit and delete."""
import logging

from sqlalchemy import func, or_

from stockpos.exceptions import ConflictError, DuplicateKeyError, NotFoundError, ProductNotFoundError
from stockpos.models import Category, MovementType, Product, SaleItem, StockMovement, Supplier
from stockpos.repository import StockStore
from stockpos.services import inventory_service
from stockpos.services.pricing_service import package_weight_for, prices_for_create, prices_for_update

logger = logging.getLogger(__name__)

STOCK_ADJUSTMENT_REFERENCE = 'Stock adjustment (product edit)'


def list_products(session, category_id=None, search=None, low_stock=False):
    """List products ordered by name, optionally filtered."""
    query = session.query(Product)

    if category_id:
        query = query.filter(Product.category_id == category_id)

    if search:
        pattern = f'%{search.lower()}%'
        query = query.filter(or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.sku).like(pattern),
            func.lower(Product.barcode).like(pattern),
        ))

    if low_stock:
        query = query.filter(Product.is_low_stock)

    return query.order_by(Product.name).all()


def get_product(session, product_id):
    product = session.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise ProductNotFoundError(product_id)
    return product


def create_product(db, data):
    """
    Create a product from a validated ProductCreate.

    The sale price comes from the margin formula (see pricing_service);
    initial stock is recorded as an IN movement in the same unit of work.
    """
    quote = prices_for_create(
        data.purchase_price, data.pricing_mode, data.package_weight_kg,
        margin_pct=data.margin_pct, sale_price=data.sale_price
    )

    with db.unit_of_work() as session:
        _ensure_unique_codes(session, data.sku, data.barcode)
        _ensure_references(session, data.category_id, data.supplier_id)

    fields = {
        'sku': data.sku,
        'barcode': data.barcode,
        'name': data.name,
        'description': data.description,
        'category_id': data.category_id,
        'supplier_id': data.supplier_id,
        'purchase_price': data.purchase_price,
        'margin_pct': quote.margin_pct,
        'sale_price': quote.sale_price,
        'pricing_mode': data.pricing_mode,
        'package_weight_kg': package_weight_for(data.pricing_mode, data.package_weight_kg),
        'stock_min': data.stock_min,
    }
    return inventory_service.create_product_with_initial_stock(db, fields, data.stock_qty)


def update_product(db, product_id, data):
    """
    Edit a product from a validated ProductUpdate.

    The sale price is the explicit one or the markup formula, rounded half-up.
    A changed stockQty is booked as an adjustment movement so stock and
    ledger stay in step.
    """
    with db.unit_of_work() as session:
        store = StockStore(session)
        product = store.find_product_by_id(product_id, lock=True)
        if not product:
            raise ProductNotFoundError(product_id)

        # An omitted margin keeps the stored one
        margin_pct = data.margin_pct if data.margin_pct is not None else product.margin_pct
        quote = prices_for_update(
            data.purchase_price, data.pricing_mode, data.package_weight_kg,
            margin_pct=margin_pct, sale_price=data.sale_price
        )

        if data.sku != product.sku or (data.barcode and data.barcode != product.barcode):
            _ensure_unique_codes(session, data.sku, data.barcode, exclude_id=product.id)
        _ensure_references(session, data.category_id, data.supplier_id)

        # Stock first: the store refreshes the row after updating it
        if data.stock_qty is not None and data.stock_qty != product.stock_qty:
            delta = data.stock_qty - product.stock_qty
            movement_type = MovementType.IN if delta > 0 else MovementType.OUT
            product = store.update_product_stock(product.id, delta)
            store.insert_movement(product, movement_type, abs(delta), STOCK_ADJUSTMENT_REFERENCE)
            logger.info(f"Product {product.id} stock adjusted by {delta} on edit")

        product.sku = data.sku
        product.barcode = data.barcode
        product.name = data.name
        product.description = data.description
        product.category_id = data.category_id
        product.supplier_id = data.supplier_id
        product.purchase_price = data.purchase_price
        product.margin_pct = quote.margin_pct
        product.sale_price = quote.sale_price
        product.pricing_mode = data.pricing_mode
        product.package_weight_kg = package_weight_for(data.pricing_mode, data.package_weight_kg)
        if data.stock_min is not None:
            product.stock_min = data.stock_min

        session.flush()
        session.refresh(product)
        _ = product.category, product.supplier

    logger.info(f"Product {product.id} updated (sale_price={product.sale_price})")
    return product


def delete_product(db, product_id):
    """Delete a product and its movements. Refused when it was ever sold."""
    with db.unit_of_work() as session:
        product = session.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ProductNotFoundError(product_id)

        sold = session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
        if sold:
            raise ConflictError('No se puede eliminar el producto porque tiene ventas asociadas')

        session.query(StockMovement).filter(
            StockMovement.product_id == product_id
        ).delete(synchronize_session=False)
        session.delete(product)

    logger.info(f"Product {product_id} deleted")
    return {'message': 'Producto eliminado correctamente'}


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _ensure_unique_codes(session, sku, barcode, exclude_id=None):
    query = session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise DuplicateKeyError('El SKU ya existe', {'field': 'sku'})

    if barcode:
        query = session.query(Product).filter(Product.barcode == barcode)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise DuplicateKeyError('El código de barras ya existe', {'field': 'barcode'})


def _ensure_references(session, category_id, supplier_id):
    if category_id and not session.get(Category, category_id):
        raise NotFoundError('Categoría no encontrada', {'category_id': category_id})
    if supplier_id and not session.get(Supplier, supplier_id):
        raise NotFoundError('Proveedor no encontrado', {'supplier_id': supplier_id})
