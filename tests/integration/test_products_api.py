"""
Integration tests for the products API.
"""

from decimal import Decimal

from stockpos.models import MovementType
from stockpos.services import inventory_service
from tests.helpers import make_product, movements_of, stock_of


def _payload(**overrides):
    payload = {
        'sku': 'YER-1',
        'barcode': '7790001',
        'name': 'Yerba Mate 1kg',
        'purchasePrice': 100,
        'marginPct': 50,
        'stockQty': 12,
        'stockMin': 3,
    }
    payload.update(overrides)
    return payload


class TestCreateProduct:

    def test_create_uses_margin_formula_and_books_initial_stock(self, client, db):
        response = client.post('/api/products', json=_payload())
        assert response.status_code == 201
        data = response.get_json()
        assert data['salePrice'] == 200
        assert data['marginPct'] == 50
        assert data['stockQty'] == 12
        assert movements_of(db, data['id']) == [(MovementType.IN, Decimal('12'), 'Initial stock')]

    def test_create_weight_product(self, client, db):
        response = client.post('/api/products', json=_payload(
            pricingMode='WEIGHT', purchasePrice=5000, packageWeightKg=5, marginPct=20, stockQty=0
        ))
        data = response.get_json()
        assert response.status_code == 201
        assert data['pricingMode'] == 'WEIGHT'
        assert data['packageWeightKg'] == 5
        assert data['salePrice'] == 1250
        assert movements_of(db, data['id']) == []

    def test_create_with_category_and_supplier(self, client, category, supplier):
        response = client.post('/api/products', json=_payload(categoryId=category, supplierId=supplier))
        data = response.get_json()
        assert data['category'] == {'id': category, 'name': 'Almacen'}
        assert data['supplier']['name'] == 'Distribuidora Sur'

    def test_duplicate_sku(self, client, db, product):
        response = client.post('/api/products', json=_payload(sku='SKU-1'))
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'DuplicateKey'
        assert response.get_json()['message'] == 'El SKU ya existe'

    def test_unknown_category(self, client):
        response = client.post('/api/products', json=_payload(categoryId=99))
        assert response.status_code == 404
        assert response.get_json()['kind'] == 'NotFound'

    def test_invalid_body(self, client):
        response = client.post('/api/products', json=_payload(purchasePrice='abc'))
        assert response.status_code == 400
        body = response.get_json()
        assert body['kind'] == 'InvalidInput'
        assert body['errors'][0]['field'] == 'purchasePrice'

    def test_malformed_json(self, client):
        response = client.post('/api/products', data='{oops', content_type='application/json')
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'InvalidInput'

    def test_missing_price_rule(self, client):
        response = client.post('/api/products', json=_payload(marginPct=None))
        assert response.status_code == 400


class TestReadProducts:

    def test_list_is_not_cached(self, client, product):
        response = client.get('/api/products')
        assert response.status_code == 200
        assert response.headers['Cache-Control'] == 'no-cache, no-store, must-revalidate'
        assert [p['id'] for p in response.get_json()] == [product]

    def test_search_matches_name_sku_and_barcode(self, client, db, product):
        make_product(db, sku='AZ-9', name='Azucar', barcode='7790999')
        assert [p['sku'] for p in client.get('/api/products?search=yerba').get_json()] == ['SKU-1']
        assert [p['sku'] for p in client.get('/api/products?search=az-9').get_json()] == ['AZ-9']
        assert [p['sku'] for p in client.get('/api/products?search=0999').get_json()] == ['AZ-9']

    def test_low_stock_filter(self, client, db, product):
        low = make_product(db, sku='LOW', name='Arroz', stock_qty=Decimal('1'), stock_min=Decimal('5'))
        data = client.get('/api/products?lowStock=true').get_json()
        assert [p['id'] for p in data] == [low]

    def test_category_filter(self, client, db, product, category):
        in_category = make_product(db, sku='CAT', name='Fideos', category_id=category)
        data = client.get(f'/api/products?categoryId={category}').get_json()
        assert [p['id'] for p in data] == [in_category]

    def test_get_one(self, client, product):
        response = client.get(f'/api/products/{product}')
        assert response.status_code == 200
        assert response.get_json()['sku'] == 'SKU-1'

    def test_get_missing(self, client, db):
        response = client.get('/api/products/999')
        assert response.status_code == 404
        assert response.get_json()['kind'] == 'ProductNotFound'


class TestUpdateProduct:

    def test_update_uses_markup_formula(self, client, product):
        response = client.put(f'/api/products/{product}', json=_payload(sku='SKU-1', purchasePrice=33, marginPct=50))
        data = response.get_json()
        assert response.status_code == 200
        assert data['salePrice'] == 50
        assert data['name'] == 'Yerba Mate 1kg'

    def test_update_rounds_explicit_sale_price(self, client, product):
        response = client.put(f'/api/products/{product}', json=_payload(sku='SKU-1', salePrice=149.5))
        assert response.get_json()['salePrice'] == 150

    def test_stock_change_books_adjustment(self, client, db, product):
        response = client.put(f'/api/products/{product}', json=_payload(sku='SKU-1', stockQty=7))
        assert response.status_code == 200
        assert response.get_json()['stockQty'] == 7
        assert stock_of(db, product) == Decimal('7')
        assert movements_of(db, product) == [
            (MovementType.OUT, Decimal('3'), 'Stock adjustment (product edit)')
        ]

    def test_omitted_stock_is_unchanged(self, client, db, product):
        payload = _payload(sku='SKU-1', name='Yerba Suave')
        del payload['stockQty']
        del payload['stockMin']
        data = client.put(f'/api/products/{product}', json=payload).get_json()
        assert data['name'] == 'Yerba Suave'
        assert data['stockQty'] == 10
        assert data['stockMin'] == 2
        assert movements_of(db, product) == []

    def test_omitted_margin_keeps_stored_margin(self, client, db, product):
        payload = _payload(sku='SKU-1', purchasePrice=120)
        del payload['marginPct']
        response = client.put(f'/api/products/{product}', json=payload)
        assert response.status_code == 200
        data = response.get_json()
        assert data['marginPct'] == 50
        assert data['salePrice'] == 180

    def test_duplicate_barcode(self, client, db, product):
        make_product(db, sku='OTHER', name='Otro', barcode='111')
        response = client.put(f'/api/products/{product}', json=_payload(sku='SKU-1', barcode='111'))
        assert response.status_code == 400
        assert response.get_json()['message'] == 'El código de barras ya existe'

    def test_update_missing(self, client, db):
        response = client.put('/api/products/999', json=_payload())
        assert response.status_code == 404


class TestDeleteProduct:

    def test_delete_removes_movements(self, client, db, product):
        inventory_service.apply_movement(db, product, MovementType.IN, Decimal('1'))
        response = client.delete(f'/api/products/{product}')
        assert response.status_code == 200
        assert response.get_json()['message'] == 'Producto eliminado correctamente'
        assert stock_of(db, product) is None
        assert movements_of(db, product) == []

    def test_delete_refused_when_sold(self, client, db, product):
        inventory_service.record_sale(db, [{'product_id': product, 'qty': Decimal('1'), 'price': Decimal('150')}])
        response = client.delete(f'/api/products/{product}')
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'Conflict'
        assert stock_of(db, product) == Decimal('9')
