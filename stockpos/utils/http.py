"""Small request/response helpers shared by the API blueprints."""
from flask import current_app, jsonify, request

from stockpos.exceptions import InvalidInputError


def json_body():
    """Request JSON body; malformed JSON is an InvalidInput, not a 500."""
    payload = request.get_json(silent=True)
    if payload is None:
        raise InvalidInputError('El cuerpo de la solicitud debe ser JSON válido')
    return payload


def int_arg(name, default=None, minimum=None):
    raw = request.args.get(name, '').strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidInputError(f'El parámetro {name} debe ser un número entero')
    if minimum is not None and value < minimum:
        raise InvalidInputError(f'El parámetro {name} debe ser mayor o igual a {minimum}')
    return value


def pagination_args():
    """(limit, offset) from the query string, bounded by MAX_PAGE_LIMIT."""
    limit = int_arg('limit', current_app.config.get('DEFAULT_PAGE_LIMIT', 50), minimum=1)
    limit = min(limit, current_app.config.get('MAX_PAGE_LIMIT', 500))
    offset = int_arg('offset', 0, minimum=0)
    return limit, offset


def no_cache_json(payload, status=200):
    """JSON response that clients and proxies must not cache."""
    response = jsonify(payload)
    response.status_code = status
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response
