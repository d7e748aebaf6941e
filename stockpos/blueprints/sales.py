"""Sales (point of sale) API blueprint."""
from flask import Blueprint, jsonify, request
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from stockpos.database import get_db, get_session
from stockpos.exceptions import InvalidInputError
from stockpos.models import Sale, SaleItem
from stockpos.schemas import SaleCreate, load
from stockpos.services import inventory_service
from stockpos.utils.http import json_body, no_cache_json, pagination_args
from stockpos.utils.serializers import num, sale_to_dict

sales_bp = Blueprint('sales', __name__, url_prefix='/api/sales')


@sales_bp.route('', methods=['GET'])
def list_sales():
    """List sales with their items, newest first; paginated."""
    session = get_session()
    limit, offset = pagination_args()

    total = session.query(func.count(Sale.id)).scalar()
    sales = session.query(Sale).options(
        selectinload(Sale.items).selectinload(SaleItem.product)
    ).order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).offset(offset).all()

    return no_cache_json({
        'sales': [sale_to_dict(s) for s in sales],
        'total': total,
        'hasMore': offset + limit < total
    })


@sales_bp.route('', methods=['POST'])
def create_sale():
    """Checkout: record the sale and take its items out of stock."""
    data = load(SaleCreate, json_body())
    items = [
        {'product_id': item.product_id, 'qty': item.qty, 'price': item.price}
        for item in data.items
    ]
    sale = inventory_service.record_sale(get_db(), items, data.total)
    return jsonify(sale_to_dict(sale)), 201


@sales_bp.route('', methods=['DELETE'])
def cancel_sale_by_query():
    """Cancel a sale given as ``?id=<saleId>``."""
    raw_id = request.args.get('id', '').strip()
    if not raw_id.isdigit():
        raise InvalidInputError('ID de venta requerido')
    return _cancel(int(raw_id))


@sales_bp.route('/<int:sale_id>', methods=['DELETE'])
def cancel_sale(sale_id):
    return _cancel(sale_id)


def _cancel(sale_id):
    result = inventory_service.cancel_sale(get_db(), sale_id)
    return jsonify({
        'success': result['success'],
        'message': result['message'],
        'saleId': result['sale_id'],
        'restoredProducts': [
            {
                'productId': r['product_id'],
                'productName': r['product_name'],
                'qty': num(r['qty']),
                'newStock': num(r['new_stock']),
            }
            for r in result['restored_products']
        ],
    })
