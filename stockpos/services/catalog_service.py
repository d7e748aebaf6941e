"""Category and supplier management."""
import logging

from sqlalchemy import func

from stockpos.exceptions import ConflictError, DuplicateKeyError, NotFoundError
from stockpos.models import Category, Product, Supplier

logger = logging.getLogger(__name__)


def _product_counts(session, column):
    rows = session.query(column, func.count(Product.id)).filter(column.isnot(None)).group_by(column).all()
    return {row[0]: row[1] for row in rows}


# =====================================================
# CATEGORIES
# =====================================================

def list_categories(session):
    """Return (category, product_count) pairs ordered by name."""
    counts = _product_counts(session, Product.category_id)
    categories = session.query(Category).order_by(Category.name).all()
    return [(c, counts.get(c.id, 0)) for c in categories]


def get_category(session, category_id):
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError('Categoría no encontrada', {'category_id': category_id})
    count = session.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar()
    return category, count


def create_category(db, data):
    with db.unit_of_work() as session:
        if session.query(Category).filter(Category.name == data.name).first():
            raise DuplicateKeyError(f'La categoría "{data.name}" ya existe', {'field': 'name'})
        category = Category(name=data.name, description=data.description)
        session.add(category)
        session.flush()

    logger.info(f"Category {category.id} created: {category.name}")
    return category


def update_category(db, category_id, data):
    with db.unit_of_work() as session:
        category = session.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError('Categoría no encontrada', {'category_id': category_id})

        if data.name != category.name:
            if session.query(Category).filter(Category.name == data.name).first():
                raise DuplicateKeyError('El nombre de la categoría ya existe', {'field': 'name'})

        category.name = data.name
        category.description = data.description
        session.flush()

    return category


def delete_category(db, category_id):
    with db.unit_of_work() as session:
        category = session.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError('Categoría no encontrada', {'category_id': category_id})

        in_use = session.query(Product.id).filter(Product.category_id == category_id).first()
        if in_use:
            raise ConflictError('No se puede eliminar la categoría porque tiene productos asociados')

        session.delete(category)

    logger.info(f"Category {category_id} deleted")
    return {'message': 'Categoría eliminada correctamente'}


# =====================================================
# SUPPLIERS
# =====================================================

def list_suppliers(session):
    return session.query(Supplier).order_by(Supplier.name).all()


def get_supplier(session, supplier_id):
    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError('Proveedor no encontrado', {'supplier_id': supplier_id})
    count = session.query(func.count(Product.id)).filter(Product.supplier_id == supplier_id).scalar()
    return supplier, count


def create_supplier(db, data):
    with db.unit_of_work() as session:
        supplier = Supplier(
            name=data.name,
            contact=data.contact,
            email=data.email,
            phone=data.phone,
            address=data.address
        )
        session.add(supplier)
        session.flush()

    logger.info(f"Supplier {supplier.id} created: {supplier.name}")
    return supplier


def update_supplier(db, supplier_id, data):
    with db.unit_of_work() as session:
        supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
        if not supplier:
            raise NotFoundError('Proveedor no encontrado', {'supplier_id': supplier_id})

        supplier.name = data.name
        supplier.contact = data.contact
        supplier.email = data.email
        supplier.phone = data.phone
        supplier.address = data.address
        session.flush()

    return supplier


def delete_supplier(db, supplier_id):
    with db.unit_of_work() as session:
        supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
        if not supplier:
            raise NotFoundError('Proveedor no encontrado', {'supplier_id': supplier_id})

        in_use = session.query(Product.id).filter(Product.supplier_id == supplier_id).first()
        if in_use:
            raise ConflictError('No se puede eliminar el proveedor porque tiene productos asociados')

        session.delete(supplier)

    logger.info(f"Supplier {supplier_id} deleted")
    return {'message': 'Proveedor eliminado correctamente'}
