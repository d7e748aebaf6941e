"""
Batch price maintenance: analyze, update, verify and back up product prices.

All three price commands use the markup formula (``price_from_markup``) on
the product's unit cost, the same rule applied when a product is edited.
"""
import json
import logging
import os
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import joinedload

from stockpos.exceptions import InvalidInputError
from stockpos.models import PricingMode, Product
from stockpos.services.pricing_service import (
    margin_from_prices, price_from_markup, realized_margin, to_decimal, unit_cost
)
from stockpos.utils.serializers import category_to_dict, product_to_dict, supplier_to_dict

logger = logging.getLogger(__name__)


def _product_unit_cost(product):
    return unit_cost(product.purchase_price, product.pricing_mode, product.package_weight_kg)


def _safe_realized_margin(cost, sale_price):
    try:
        return realized_margin(cost, sale_price)
    except InvalidInputError:
        return None


def analyze_prices(session, markup_pct) -> list:
    """Preview current vs. new sale price for every product, without writing."""
    markup_pct = to_decimal(markup_pct, 'markup')
    rows = []
    for product in session.query(Product).order_by(Product.name).all():
        cost = _product_unit_cost(product)
        new_price = price_from_markup(cost, markup_pct)
        rows.append({
            'id': product.id,
            'name': product.name,
            'sku': product.sku,
            'unit_cost': cost,
            'current_margin_pct': product.margin_pct,
            'current_sale_price': product.sale_price,
            'new_sale_price': new_price,
            'difference': new_price - product.sale_price,
            'current_realized_margin': _safe_realized_margin(cost, product.sale_price),
            'new_realized_margin': _safe_realized_margin(cost, new_price),
            'is_weight': product.pricing_mode is PricingMode.WEIGHT,
        })
    return rows


def update_prices(db, markup_pct, dry_run=False) -> dict:
    """
    Reprice every product with the markup formula and store the markup as
    its margin_pct. Products whose price does not change are left untouched.
    """
    markup_pct = to_decimal(markup_pct, 'markup')
    if markup_pct < 0:
        raise InvalidInputError('El markup no puede ser negativo')

    changes = []
    unchanged = 0
    total_difference = Decimal('0')

    with db.unit_of_work() as session:
        products = session.query(Product).order_by(Product.name).with_for_update().all()
        for product in products:
            new_price = price_from_markup(_product_unit_cost(product), markup_pct)
            if new_price == product.sale_price:
                unchanged += 1
                continue

            difference = new_price - product.sale_price
            total_difference += difference
            changes.append({
                'id': product.id,
                'name': product.name,
                'old_sale_price': product.sale_price,
                'new_sale_price': new_price,
                'difference': difference,
            })
            if not dry_run:
                product.sale_price = new_price
                product.margin_pct = markup_pct

    if not dry_run:
        logger.info(f"Prices updated with {markup_pct}% markup: {len(changes)} changed, {unchanged} unchanged")

    return {
        'markup_pct': markup_pct,
        'updated': len(changes),
        'unchanged': unchanged,
        'total': len(changes) + unchanged,
        'total_difference': total_difference,
        'changes': changes,
        'dry_run': dry_run,
    }


def verify_prices(session, expected_pct, tolerance=Decimal('0.1')) -> dict:
    """Check that every product's markup over unit cost matches ``expected_pct``."""
    expected_pct = to_decimal(expected_pct, 'expected')
    tolerance = to_decimal(tolerance, 'tolerance')

    correct = 0
    issues = []
    for product in session.query(Product).order_by(Product.name).all():
        cost = _product_unit_cost(product)
        try:
            actual = margin_from_prices(cost, product.sale_price)
        except InvalidInputError:
            actual = None

        if actual is not None and abs(actual - expected_pct) < tolerance:
            correct += 1
            continue

        issues.append({
            'id': product.id,
            'name': product.name,
            'sku': product.sku,
            'expected': expected_pct,
            'actual': actual,
            'unit_cost': cost,
            'sale_price': product.sale_price,
            'margin_pct': product.margin_pct,
        })

    return {
        'expected_pct': expected_pct,
        'correct': correct,
        'incorrect': len(issues),
        'total': correct + len(issues),
        'issues': issues,
    }


def backup_products(session, output_dir='.', now=None) -> str:
    """Dump every product (with category and supplier) to a timestamped JSON file."""
    now = now or datetime.now()
    products = session.query(Product).options(
        joinedload(Product.category), joinedload(Product.supplier)
    ).order_by(Product.id).all()

    payload = {
        'timestamp': now.isoformat(),
        'totalProducts': len(products),
        'products': [],
    }
    for product in products:
        data = product_to_dict(product, include_relations=False)
        data['category'] = category_to_dict(product.category) if product.category else None
        data['supplier'] = supplier_to_dict(product.supplier) if product.supplier else None
        payload['products'].append(data)

    os.makedirs(output_dir, exist_ok=True)
    filename = f"backup-products-{now.strftime('%Y-%m-%dT%H-%M-%S')}.json"
    path = os.path.join(output_dir, filename)
    with open(path, 'w', encoding='utf-8') as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)

    logger.info(f"Backup of {len(products)} products written to {path}")
    return path
