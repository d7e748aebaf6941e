"""Products API blueprint."""
from flask import Blueprint, jsonify, request

from stockpos.database import get_db, get_session
from stockpos.schemas import ProductCreate, ProductUpdate, load
from stockpos.services import product_service
from stockpos.utils.http import int_arg, json_body, no_cache_json
from stockpos.utils.serializers import product_to_dict

products_bp = Blueprint('products', __name__, url_prefix='/api/products')


@products_bp.route('', methods=['GET'])
def list_products():
    """List products; filters: categoryId, search, lowStock=true."""
    session = get_session()
    products = product_service.list_products(
        session,
        category_id=int_arg('categoryId'),
        search=request.args.get('search', '').strip() or None,
        low_stock=request.args.get('lowStock') == 'true'
    )
    return no_cache_json([product_to_dict(p) for p in products])


@products_bp.route('', methods=['POST'])
def create_product():
    """Create a product; initial stock is booked as an IN movement."""
    data = load(ProductCreate, json_body())
    product = product_service.create_product(get_db(), data)
    return jsonify(product_to_dict(product)), 201


@products_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = product_service.get_product(get_session(), product_id)
    return no_cache_json(product_to_dict(product))


@products_bp.route('/<int:product_id>', methods=['PUT'])
def update_product(product_id):
    data = load(ProductUpdate, json_body())
    product = product_service.update_product(get_db(), product_id, data)
    return jsonify(product_to_dict(product))


@products_bp.route('/<int:product_id>', methods=['DELETE'])
def delete_product(product_id):
    return jsonify(product_service.delete_product(get_db(), product_id))
