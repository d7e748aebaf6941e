"""Categories API blueprint."""
from flask import Blueprint, jsonify

from stockpos.database import get_db, get_session
from stockpos.schemas import CategoryIn, load
from stockpos.services import catalog_service
from stockpos.utils.http import json_body, no_cache_json
from stockpos.utils.serializers import category_to_dict

categories_bp = Blueprint('categories', __name__, url_prefix='/api/categories')


@categories_bp.route('', methods=['GET'])
def list_categories():
    rows = catalog_service.list_categories(get_session())
    return no_cache_json([category_to_dict(c, count) for c, count in rows])


@categories_bp.route('', methods=['POST'])
def create_category():
    data = load(CategoryIn, json_body())
    category = catalog_service.create_category(get_db(), data)
    return jsonify(category_to_dict(category)), 201


@categories_bp.route('/<int:category_id>', methods=['GET'])
def get_category(category_id):
    category, count = catalog_service.get_category(get_session(), category_id)
    return no_cache_json(category_to_dict(category, count))


@categories_bp.route('/<int:category_id>', methods=['PUT'])
def update_category(category_id):
    data = load(CategoryIn, json_body())
    category = catalog_service.update_category(get_db(), category_id, data)
    return jsonify(category_to_dict(category))


@categories_bp.route('/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    return jsonify(catalog_service.delete_category(get_db(), category_id))
