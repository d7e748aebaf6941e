"""
Inventory ledger with transactional logic.

Every operation keeps a product's stock_qty and its movement history in
step: the stock update and the movement/sale rows are written inside one
unit of work, and all preconditions are re-validated inside that same
transaction before the first write.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from stockpos.exceptions import (
    InvalidInputError, InsufficientStockError, ProductNotFoundError,
    SaleNotFoundError, StockposError
)
from stockpos.metrics import (
    ledger_rejections_total, sales_cancelled_total, sales_recorded_total,
    stock_movements_total
)
from stockpos.models import MovementType, Product
from stockpos.repository import StockStore
from stockpos.services.pricing_service import to_decimal

logger = logging.getLogger(__name__)

INITIAL_STOCK_REFERENCE = 'Initial stock'
TOTAL_TOLERANCE = Decimal('0.01')
CENT = Decimal('0.01')


def sale_reference(sale_id: int) -> str:
    return f'Sale #{sale_id}'


def cancellation_reference(sale_id: int) -> str:
    return f'Sale cancellation #{sale_id}'


def apply_movement(db, product_id: int, movement_type, qty, reference: Optional[str] = None):
    """
    Apply a manual IN/OUT movement to a product.

    Returns:
        The created StockMovement, with ``product`` loaded for display.

    Raises:
        InvalidInputError: qty not positive or unknown type
        ProductNotFoundError: product does not exist
        InsufficientStockError: OUT larger than the stock on hand
    """
    movement_type = _movement_type(movement_type)
    qty = _positive_qty(qty)

    try:
        with db.unit_of_work() as session:
            store = StockStore(session)
            product = store.find_product_by_id(product_id, lock=True)
            if product is None:
                raise ProductNotFoundError(product_id)

            if movement_type is MovementType.OUT and product.stock_qty < qty:
                raise InsufficientStockError(product.name, qty, product.stock_qty)

            delta = qty if movement_type is MovementType.IN else -qty
            product = store.update_product_stock(product.id, delta)
            movement = store.insert_movement(product, movement_type, qty, reference)
    except StockposError as e:
        _reject('apply_movement', e)
        raise

    stock_movements_total.labels(type=movement_type.value).inc()
    logger.info(
        f"Movement {movement.id} applied: {movement_type.value} {qty} "
        f"product={product.id} stock={product.stock_qty}"
    )
    return movement


def record_sale(db, items: List[Dict[str, Any]], total=None):
    """
    Record a checkout: one Sale with its items, one OUT movement per line.

    Args:
        db: Database handle
        items: dicts with ``product_id``, ``qty`` and ``price`` (unit price
            captured at sale time)
        total: sale total; computed from the lines when omitted, otherwise
            it must match the sum of line totals

    Returns:
        The created Sale with ``items`` (and their products) loaded.

    Raises:
        InvalidInputError, ProductNotFoundError, InsufficientStockError
    """
    lines = _normalize_sale_lines(items)
    computed_total = sum((line['qty'] * line['price'] for line in lines), Decimal('0'))
    if total is None:
        total = computed_total
    else:
        total = to_decimal(total, 'total')
        if abs(total - computed_total) > TOTAL_TOLERANCE:
            raise InvalidInputError(
                f'El total ({total}) no coincide con la suma de las líneas ({computed_total})'
            )

    # Stored with cents
    total = total.quantize(CENT, rounding=ROUND_HALF_UP)

    try:
        with db.unit_of_work() as session:
            store = StockStore(session)

            # 1. Pre-check every line under lock before the first write
            required: Dict[int, Decimal] = {}
            for line in lines:
                required[line['product_id']] = required.get(line['product_id'], Decimal('0')) + line['qty']

            products = store.find_products_by_ids(sorted(required), lock=True)
            for product_id, qty in required.items():
                product = products.get(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                if product.stock_qty < qty:
                    raise InsufficientStockError(product.name, qty, product.stock_qty)

            # 2. Write pass
            for line in lines:
                line['product'] = products[line['product_id']]
            sale = store.insert_sale(total, lines)

            reference = sale_reference(sale.id)
            for line in lines:
                product = store.update_product_stock(line['product_id'], -line['qty'])
                store.insert_movement(product, MovementType.OUT, line['qty'], reference)
    except StockposError as e:
        _reject('record_sale', e)
        raise

    sales_recorded_total.inc()
    stock_movements_total.labels(type=MovementType.OUT.value).inc(len(lines))
    logger.info(f"Sale #{sale.id} recorded: {len(lines)} lines, total={total}")
    return sale


def cancel_sale(db, sale_id: int) -> dict:
    """
    Cancel a sale: restore stock per line with a compensating IN movement,
    then delete the sale items and the sale.

    Returns:
        dict with success message and the restored quantities

    Raises:
        SaleNotFoundError: sale does not exist
    """
    try:
        with db.unit_of_work() as session:
            store = StockStore(session)
            sale = store.find_sale_by_id(sale_id, lock=True)
            if sale is None:
                raise SaleNotFoundError(sale_id)

            reference = cancellation_reference(sale_id)
            restored = []
            for line in list(sale.items):
                product = store.update_product_stock(line.product_id, line.qty)
                store.insert_movement(product, MovementType.IN, line.qty, reference)
                restored.append({
                    'product_id': product.id,
                    'product_name': product.name,
                    'qty': line.qty,
                    'new_stock': product.stock_qty,
                })

            store.delete_sale_and_items(sale_id)
    except StockposError as e:
        _reject('cancel_sale', e)
        raise

    sales_cancelled_total.inc()
    stock_movements_total.labels(type=MovementType.IN.value).inc(len(restored))
    logger.info(f"Sale #{sale_id} cancelled: {len(restored)} lines restored to stock")

    return {
        'success': True,
        'message': f'Venta #{sale_id} cancelada y stock restaurado correctamente',
        'sale_id': sale_id,
        'restored_products': restored,
    }


def create_product_with_initial_stock(db, fields: Dict[str, Any], initial_qty=0):
    """
    Insert a product and, when ``initial_qty > 0``, its initial IN movement.

    Both inserts share one unit of work: a product never exists with stock
    that has no movement behind it.
    """
    initial_qty = to_decimal(initial_qty if initial_qty is not None else 0, 'stockQty')
    if initial_qty < 0:
        raise InvalidInputError('El stock inicial no puede ser negativo')

    with db.unit_of_work() as session:
        store = StockStore(session)
        product = Product(**fields)
        product.stock_qty = initial_qty
        session.add(product)
        session.flush()

        if initial_qty > 0:
            store.insert_movement(product, MovementType.IN, initial_qty, INITIAL_STOCK_REFERENCE)

        # Load relationships used by the response before the session closes
        _ = product.category, product.supplier

    if initial_qty > 0:
        stock_movements_total.labels(type=MovementType.IN.value).inc()
    logger.info(f"Product {product.id} created (sku={product.sku}) with initial stock {initial_qty}")
    return product


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _movement_type(value) -> MovementType:
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(str(value).upper())
    except ValueError:
        raise InvalidInputError(f'Tipo de movimiento inválido: {value}')


def _positive_qty(value) -> Decimal:
    qty = to_decimal(value, 'qty')
    if qty <= 0:
        raise InvalidInputError('La cantidad debe ser mayor a 0')
    return qty


def _normalize_sale_lines(items) -> List[Dict[str, Any]]:
    if not items:
        raise InvalidInputError('La venta debe tener al menos un producto')

    lines = []
    for item in items:
        price = to_decimal(item.get('price'), 'price')
        if price < 0:
            raise InvalidInputError('El precio no puede ser negativo')
        lines.append({
            'product_id': int(item['product_id']),
            'qty': _positive_qty(item.get('qty')),
            'price': price,
        })
    return lines


def _reject(operation: str, error: StockposError):
    ledger_rejections_total.labels(kind=error.kind).inc()
    if error.status_code >= 500:
        logger.error(f"{operation} failed: {error.message}")
    else:
        logger.warning(f"{operation} rejected [{error.kind}]: {error.message}")
