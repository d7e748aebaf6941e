"""
JSON shaping for API responses and backups.

Keys follow the HTTP contract (camelCase); numeric columns are emitted as
plain JSON numbers.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union


def num(value: Union[int, float, Decimal, None]) -> Optional[float]:
    """Decimal/None to a JSON number (ints stay ints)."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


def iso(value: Union[date, datetime, None]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def category_to_dict(category, product_count=None):
    data = {
        'id': category.id,
        'name': category.name,
        'description': category.description,
        'createdAt': iso(category.created_at),
    }
    if product_count is not None:
        data['_count'] = {'products': product_count}
    return data


def supplier_to_dict(supplier, product_count=None):
    data = {
        'id': supplier.id,
        'name': supplier.name,
        'contact': supplier.contact,
        'email': supplier.email,
        'phone': supplier.phone,
        'address': supplier.address,
        'createdAt': iso(supplier.created_at),
    }
    if product_count is not None:
        data['_count'] = {'products': product_count}
    return data


def product_to_dict(product, include_relations=True):
    data = {
        'id': product.id,
        'sku': product.sku,
        'barcode': product.barcode,
        'name': product.name,
        'description': product.description,
        'categoryId': product.category_id,
        'supplierId': product.supplier_id,
        'purchasePrice': num(product.purchase_price),
        'marginPct': num(product.margin_pct),
        'salePrice': num(product.sale_price),
        'pricingMode': product.pricing_mode.value if product.pricing_mode else None,
        'packageWeightKg': num(product.package_weight_kg),
        'stockQty': num(product.stock_qty),
        'stockMin': num(product.stock_min),
        'createdAt': iso(product.created_at),
        'updatedAt': iso(product.updated_at),
    }
    if include_relations:
        data['category'] = (
            {'id': product.category.id, 'name': product.category.name} if product.category else None
        )
        data['supplier'] = (
            {'id': product.supplier.id, 'name': product.supplier.name} if product.supplier else None
        )
    return data


def movement_to_dict(movement):
    return {
        'id': movement.id,
        'productId': movement.product_id,
        'type': movement.type.value,
        'qty': num(movement.qty),
        'reference': movement.reference,
        'date': iso(movement.date),
        'product': movement.product.summary() if movement.product else None,
    }


def sale_item_to_dict(item):
    return {
        'id': item.id,
        'saleId': item.sale_id,
        'productId': item.product_id,
        'qty': num(item.qty),
        'price': num(item.price),
        'product': item.product.summary() if item.product else None,
    }


def sale_to_dict(sale):
    return {
        'id': sale.id,
        'total': num(sale.total),
        'createdAt': iso(sale.created_at),
        'items': [sale_item_to_dict(item) for item in sale.items],
    }


def money(value: Union[int, float, Decimal, None], decimals: int = 0) -> str:
    """
    Console money format for maintenance reports: ``$1.500`` / ``$12,50``.

    Thousands separator is a dot and decimal separator a comma.
    """
    if value is None:
        return '-'
    number = Decimal(str(value)).quantize(Decimal(10) ** -decimals)
    sign = '-' if number < 0 else ''
    integer_part, _, decimal_part = f"{abs(number):f}".partition('.')
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = '.'.join(groups)[::-1]
    if decimal_part:
        return f"{sign}${integer_formatted},{decimal_part}"
    return f"{sign}${integer_formatted}"
