"""
Integration tests for the sales and movements API.
"""

from decimal import Decimal

from stockpos.models import MovementType
from stockpos.services import inventory_service
from tests.helpers import movements_of, stock_of


def _sale(client, product_id, qty=2, price=150, **extra):
    body = {'items': [{'productId': product_id, 'qty': qty, 'price': price}]}
    body.update(extra)
    return client.post('/api/sales', json=body)


class TestSalesApi:

    def test_checkout(self, client, db, product):
        response = _sale(client, product, total=300)
        assert response.status_code == 201
        data = response.get_json()
        assert data['total'] == 300
        assert data['items'][0]['product']['sku'] == 'SKU-1'
        assert stock_of(db, product) == Decimal('8')

    def test_insufficient_stock(self, client, db, product):
        response = _sale(client, product, qty=50)
        assert response.status_code == 400
        body = response.get_json()
        assert body['kind'] == 'InsufficientStock'
        assert body['message'].startswith('Stock insuficiente para Yerba Mate 1kg')
        assert stock_of(db, product) == Decimal('10')

    def test_unknown_product(self, client, db):
        response = _sale(client, 77)
        assert response.status_code == 404
        assert response.get_json()['message'] == 'Producto con ID 77 no encontrado'

    def test_empty_items(self, client, db):
        response = client.post('/api/sales', json={'items': []})
        assert response.status_code == 400

    def test_list_sales_paginated(self, client, db, product):
        for _ in range(3):
            _sale(client, product, qty=1)
        data = client.get('/api/sales?limit=2').get_json()
        assert data['total'] == 3
        assert data['hasMore'] is True
        assert len(data['sales']) == 2
        assert data['sales'][0]['id'] > data['sales'][1]['id']

        data = client.get('/api/sales?limit=2&offset=2').get_json()
        assert data['hasMore'] is False
        assert len(data['sales']) == 1

    def test_invalid_limit(self, client, db):
        response = client.get('/api/sales?limit=abc')
        assert response.status_code == 400

    def test_cancel_by_query_param(self, client, db, product):
        sale_id = _sale(client, product, qty=4).get_json()['id']
        response = client.delete(f'/api/sales?id={sale_id}')
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['restoredProducts'] == [
            {'productId': product, 'productName': 'Yerba Mate 1kg', 'qty': 4, 'newStock': 10}
        ]
        assert stock_of(db, product) == Decimal('10')

    def test_cancel_by_path(self, client, db, product):
        sale_id = _sale(client, product).get_json()['id']
        assert client.delete(f'/api/sales/{sale_id}').status_code == 200
        assert movements_of(db, product)[-1] == (
            MovementType.IN, Decimal('2'), f'Sale cancellation #{sale_id}'
        )

    def test_cancel_requires_id(self, client, db):
        response = client.delete('/api/sales')
        assert response.status_code == 400
        assert response.get_json()['message'] == 'ID de venta requerido'

    def test_cancel_missing_sale(self, client, db):
        response = client.delete('/api/sales/555')
        assert response.status_code == 404
        assert response.get_json()['kind'] == 'SaleNotFound'


class TestMovementsApi:

    def test_create_movement(self, client, db, product):
        response = client.post('/api/movements', json={
            'productId': product, 'type': 'IN', 'qty': 5, 'reference': 'Compra proveedor'
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['type'] == 'IN'
        assert data['product'] == {'id': product, 'name': 'Yerba Mate 1kg', 'sku': 'SKU-1'}
        assert stock_of(db, product) == Decimal('15')

    def test_out_movement_without_stock(self, client, db, product):
        response = client.post('/api/movements', json={'productId': product, 'type': 'OUT', 'qty': 11})
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'InsufficientStock'

    def test_unknown_field_rejected(self, client, db, product):
        response = client.post('/api/movements', json={
            'productId': product, 'type': 'IN', 'qty': 1, 'date': '2024-01-01'
        })
        assert response.status_code == 400
        assert stock_of(db, product) == Decimal('10')

    def test_list_filters(self, client, db, product, second_product):
        inventory_service.apply_movement(db, product, MovementType.IN, Decimal('1'))
        inventory_service.apply_movement(db, product, MovementType.OUT, Decimal('1'))
        inventory_service.apply_movement(db, second_product, MovementType.IN, Decimal('1'))

        data = client.get(f'/api/movements?productId={product}').get_json()
        assert data['total'] == 2

        data = client.get('/api/movements?type=in').get_json()
        assert data['total'] == 2
        assert {m['type'] for m in data['movements']} == {'IN'}

        response = client.get('/api/movements?type=MOVE')
        assert response.status_code == 400
