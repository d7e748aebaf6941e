"""Suppliers API blueprint."""
from flask import Blueprint, jsonify

from stockpos.database import get_db, get_session
from stockpos.schemas import SupplierIn, load
from stockpos.services import catalog_service
from stockpos.utils.http import json_body, no_cache_json
from stockpos.utils.serializers import supplier_to_dict

suppliers_bp = Blueprint('suppliers', __name__, url_prefix='/api/suppliers')


@suppliers_bp.route('', methods=['GET'])
def list_suppliers():
    suppliers = catalog_service.list_suppliers(get_session())
    return no_cache_json([supplier_to_dict(s) for s in suppliers])


@suppliers_bp.route('', methods=['POST'])
def create_supplier():
    data = load(SupplierIn, json_body())
    supplier = catalog_service.create_supplier(get_db(), data)
    return jsonify(supplier_to_dict(supplier)), 201


@suppliers_bp.route('/<int:supplier_id>', methods=['GET'])
def get_supplier(supplier_id):
    supplier, count = catalog_service.get_supplier(get_session(), supplier_id)
    return no_cache_json(supplier_to_dict(supplier, count))


@suppliers_bp.route('/<int:supplier_id>', methods=['PUT'])
def update_supplier(supplier_id):
    data = load(SupplierIn, json_body())
    supplier = catalog_service.update_supplier(get_db(), supplier_id, data)
    return jsonify(supplier_to_dict(supplier))


@suppliers_bp.route('/<int:supplier_id>', methods=['DELETE'])
def delete_supplier(supplier_id):
    return jsonify(catalog_service.delete_supplier(get_db(), supplier_id))
