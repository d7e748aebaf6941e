"""Stock movements API blueprint."""
from flask import Blueprint, jsonify, request
from sqlalchemy import func

from stockpos.database import get_db, get_session
from stockpos.exceptions import InvalidInputError
from stockpos.models import MovementType, StockMovement
from stockpos.schemas import MovementCreate, load
from stockpos.services import inventory_service
from stockpos.utils.http import int_arg, json_body, no_cache_json, pagination_args
from stockpos.utils.serializers import movement_to_dict

movements_bp = Blueprint('movements', __name__, url_prefix='/api/movements')


@movements_bp.route('', methods=['GET'])
def list_movements():
    """List movements, newest first; filters: productId, type; paginated."""
    session = get_session()
    limit, offset = pagination_args()

    query = session.query(StockMovement)

    product_id = int_arg('productId')
    if product_id:
        query = query.filter(StockMovement.product_id == product_id)

    movement_type = request.args.get('type', '').strip().upper()
    if movement_type:
        if movement_type not in MovementType.__members__:
            raise InvalidInputError(f'Tipo de movimiento inválido: {movement_type}')
        query = query.filter(StockMovement.type == MovementType[movement_type])

    total = query.with_entities(func.count(StockMovement.id)).scalar()
    movements = query.order_by(
        StockMovement.date.desc(), StockMovement.id.desc()
    ).limit(limit).offset(offset).all()

    return no_cache_json({
        'movements': [movement_to_dict(m) for m in movements],
        'total': total,
        'hasMore': offset + limit < total
    })


@movements_bp.route('', methods=['POST'])
def create_movement():
    """Apply a manual IN/OUT movement."""
    data = load(MovementCreate, json_body())
    movement = inventory_service.apply_movement(
        get_db(), data.product_id, data.type, data.qty, data.reference
    )
    return jsonify(movement_to_dict(movement)), 201
