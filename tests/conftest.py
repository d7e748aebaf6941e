import os
import tempfile
from decimal import Decimal

import pytest

# Throwaway SQLite file unless a database is provided (e.g. by Docker)
if 'TEST_DATABASE_URL' not in os.environ:
    _tmpdir = tempfile.mkdtemp(prefix='stockpos-tests-')
    os.environ['TEST_DATABASE_URL'] = 'sqlite:///' + os.path.join(_tmpdir, 'test.db')

from stockpos import create_app
from stockpos.database import get_db
from stockpos.models import Category, Supplier
from tests.helpers import make_product


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    yield app
    get_db(app).dispose()


@pytest.fixture(scope='function')
def db(app):
    """Database handle with freshly created tables."""
    database = get_db(app)
    database.session.remove()
    database.drop_all()
    database.create_all()
    yield database
    database.session.remove()


@pytest.fixture(scope='function')
def client(app, db):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app, db):
    """CLI runner for the flask commands."""
    return app.test_cli_runner()


@pytest.fixture
def product(db):
    """A unit-priced product with 10 in stock."""
    return make_product(db)


@pytest.fixture
def second_product(db):
    """A product with a single unit left."""
    return make_product(
        db, sku='SKU-2', name='Azucar 1kg', purchase_price=Decimal('40'),
        sale_price=Decimal('60'), stock_qty=Decimal('1')
    )


@pytest.fixture
def category(db):
    with db.unit_of_work() as s:
        category = Category(name='Almacen', description='Productos secos')
        s.add(category)
        s.flush()
        return category.id


@pytest.fixture
def supplier(db):
    with db.unit_of_work() as s:
        supplier = Supplier(name='Distribuidora Sur', phone='555-1234')
        s.add(supplier)
        s.flush()
        return supplier.id
