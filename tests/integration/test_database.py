"""
Integration tests for the unit of work.
"""

from decimal import Decimal

import pytest

from stockpos.exceptions import DuplicateKeyError, InvalidInputError
from stockpos.models import Category, Product
from tests.helpers import make_product, stock_of


def _count_categories(db):
    with db.session_factory() as s:
        return s.query(Category).count()


def test_run_in_transaction_commits(db):
    def add_category(session, name):
        session.add(Category(name=name))
        session.flush()
        return name

    assert db.run_in_transaction(add_category, 'Limpieza') == 'Limpieza'
    assert _count_categories(db) == 1


def test_application_error_rolls_back(db, product):
    def adjust_then_fail(session):
        session.get(Product, product).stock_qty = Decimal('0')
        session.flush()
        raise InvalidInputError('abort')

    with pytest.raises(InvalidInputError):
        db.run_in_transaction(adjust_then_fail)
    assert stock_of(db, product) == Decimal('10')


def test_unique_violation_becomes_duplicate_key(db, product):
    with pytest.raises(DuplicateKeyError):
        make_product(db, name='Copia')


def test_ping(db):
    assert db.ping() is True
