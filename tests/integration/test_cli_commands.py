"""
Integration tests for the price maintenance commands.
"""

import json
import os
from decimal import Decimal

from stockpos.models import PricingMode, Product
from tests.helpers import make_product


def _sale_price(db, product_id):
    with db.session_factory() as s:
        return s.get(Product, product_id).sale_price


class TestUpdatePrices:

    def test_reprices_with_markup(self, runner, db):
        stale = make_product(db, purchase_price=Decimal('33'), sale_price=Decimal('40'))
        fine = make_product(db, sku='OK', name='Arroz', purchase_price=Decimal('100'), sale_price=Decimal('150'))

        result = runner.invoke(args=['update-prices', '--markup', '50'])

        assert result.exit_code == 0, result.output
        assert 'Actualizados: 1' in result.output
        assert 'Sin cambios: 1' in result.output
        assert _sale_price(db, stale) == Decimal('50')
        assert _sale_price(db, fine) == Decimal('150')
        with db.session_factory() as s:
            assert s.get(Product, stale).margin_pct == Decimal('50')

    def test_weight_products_priced_per_kg(self, runner, db):
        cheese = make_product(
            db, sku='QSO', name='Queso', purchase_price=Decimal('4000'), sale_price=Decimal('0'),
            pricing_mode=PricingMode.WEIGHT, package_weight_kg=Decimal('4')
        )
        runner.invoke(args=['update-prices', '--markup', '50'])
        assert _sale_price(db, cheese) == Decimal('1500')

    def test_dry_run_writes_nothing(self, runner, db):
        stale = make_product(db, purchase_price=Decimal('33'), sale_price=Decimal('40'))
        result = runner.invoke(args=['update-prices', '--markup', '50', '--dry-run'])
        assert result.exit_code == 0
        assert 'Simulación' in result.output
        assert _sale_price(db, stale) == Decimal('40')

    def test_negative_markup_fails(self, runner, db):
        result = runner.invoke(args=['update-prices', '--markup', '-5'])
        assert result.exit_code == 1


class TestVerifyAndAnalyze:

    def test_verify_passes_after_update(self, runner, db):
        make_product(db, purchase_price=Decimal('100'), sale_price=Decimal('150'))
        result = runner.invoke(args=['verify-prices', '--expected', '50'])
        assert result.exit_code == 0, result.output
        assert 'Correctos: 1' in result.output

    def test_verify_reports_issues(self, runner, db):
        make_product(db, purchase_price=Decimal('100'), sale_price=Decimal('180'))
        make_product(db, sku='FREE', name='Muestra', purchase_price=Decimal('0'), sale_price=Decimal('0'))
        result = runner.invoke(args=['verify-prices', '--expected', '50'])
        assert result.exit_code == 1
        assert 'Incorrectos: 2' in result.output
        assert 'actual N/A' in result.output

    def test_analyze_does_not_write(self, runner, db):
        product = make_product(db, purchase_price=Decimal('100'), sale_price=Decimal('120'))
        result = runner.invoke(args=['analyze-prices', '--markup', '50'])
        assert result.exit_code == 0, result.output
        assert 'Precio nuevo:  $150' in result.output
        assert _sale_price(db, product) == Decimal('120')


class TestBackupAndInit:

    def test_backup_products(self, runner, db, tmp_path, category):
        make_product(db, category_id=category)
        result = runner.invoke(args=['backup-products', '--output', str(tmp_path)])
        assert result.exit_code == 0, result.output

        files = os.listdir(tmp_path)
        assert len(files) == 1
        assert files[0].startswith('backup-products-')
        with open(tmp_path / files[0], encoding='utf-8') as fh:
            payload = json.load(fh)
        assert payload['totalProducts'] == 1
        assert payload['products'][0]['category']['name'] == 'Almacen'

    def test_init_db_is_idempotent(self, runner, db):
        result = runner.invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Tablas creadas' in result.output
