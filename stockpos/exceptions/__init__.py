"""Custom exceptions for the stockpos application."""


def _fmt_qty(value):
    """Render a quantity without trailing zeros (3, 2.5, 0.25)."""
    try:
        if value % 1 == 0:
            return f"{int(value)}"
        return f"{value:.3f}".rstrip('0').rstrip('.')
    except TypeError:
        return str(value)


class StockposError(Exception):
    """Base exception for all application errors."""
    kind = 'Error'

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['kind'] = self.kind
        rv['status'] = 'error'
        return rv


class InvalidInputError(StockposError):
    """Malformed or out-of-range input."""
    kind = 'InvalidInput'

    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class NotFoundError(StockposError):
    """Exception raised when a resource is not found."""
    kind = 'NotFound'

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ProductNotFoundError(NotFoundError):
    kind = 'ProductNotFound'

    def __init__(self, product_id):
        super().__init__(f'Producto con ID {product_id} no encontrado', {'product_id': product_id})
        self.product_id = product_id


class SaleNotFoundError(NotFoundError):
    kind = 'SaleNotFound'

    def __init__(self, sale_id):
        super().__init__(f'Venta #{sale_id} no encontrada', {'sale_id': sale_id})
        self.sale_id = sale_id


class InsufficientStockError(StockposError):
    """Raised when an operation fails due to lack of stock."""
    kind = 'InsufficientStock'

    def __init__(self, product_name, required, available=None):
        message = f"Stock insuficiente para {product_name}: se requieren {_fmt_qty(required)}"
        if available is not None:
            message += f", disponible {_fmt_qty(available)}"
        super().__init__(message, 400)
        self.product_name = product_name
        self.required = required
        self.available = available


class DuplicateKeyError(StockposError):
    """Unique field collision (sku, barcode, category name)."""
    kind = 'DuplicateKey'

    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class ConflictError(StockposError):
    """Operation refused because other records still reference the entity."""
    kind = 'Conflict'

    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class PersistenceError(StockposError):
    """Transport or constraint failure reported by the database."""
    kind = 'PersistenceError'

    def __init__(self, message='Error de base de datos'):
        super().__init__(message, 500)
