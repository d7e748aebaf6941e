"""Persistence collaborator used by the inventory ledger."""
from decimal import Decimal

from sqlalchemy import update

from stockpos.exceptions import InsufficientStockError, ProductNotFoundError, SaleNotFoundError
from stockpos.models import Product, Sale, SaleItem, StockMovement


class StockStore:
    """
    Ledger-facing queries bound to one session.

    Every method must be called inside an open unit of work
    (see ``Database.unit_of_work``); nothing here commits.
    """

    def __init__(self, session):
        self.session = session

    def find_product_by_id(self, product_id, lock=False):
        """Return the product or None. ``lock`` issues SELECT ... FOR UPDATE."""
        query = self.session.query(Product).filter(Product.id == product_id)
        if lock:
            query = query.with_for_update()
        return query.populate_existing().first()

    def find_products_by_ids(self, product_ids, lock=False):
        if not product_ids:
            return {}
        query = self.session.query(Product).filter(Product.id.in_(product_ids))
        if lock:
            query = query.with_for_update()
        return {p.id: p for p in query.order_by(Product.id).populate_existing().all()}

    def update_product_stock(self, product_id, delta):
        """
        Add ``delta`` to the product's stock_qty.

        Negative deltas are applied with a conditional update
        (``stock_qty >= -delta``) so a concurrent decrement can never drive
        stock below zero; no matching row means insufficient stock.
        """
        delta = Decimal(str(delta))
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock_qty=Product.stock_qty + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(Product.stock_qty >= -delta)

        result = self.session.execute(stmt)
        if result.rowcount == 0:
            product = self.find_product_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            raise InsufficientStockError(product.name, -delta, product.stock_qty)

        product = self.find_product_by_id(product_id)
        return product

    def insert_movement(self, product, movement_type, qty, reference=None):
        movement = StockMovement(
            product=product,
            type=movement_type,
            qty=qty,
            reference=reference,
        )
        self.session.add(movement)
        self.session.flush()
        return movement

    def insert_sale(self, total, line_items):
        """
        Insert a sale with its items. ``line_items`` carries dicts with
        ``product`` (loaded Product), ``qty`` and ``price``.
        """
        sale = Sale(total=total)
        for line in line_items:
            sale.items.append(SaleItem(
                product=line['product'],
                qty=line['qty'],
                price=line['price'],
            ))
        self.session.add(sale)
        self.session.flush()
        return sale

    def find_sale_by_id(self, sale_id, lock=False):
        """Return the sale or None. ``lock`` issues SELECT ... FOR UPDATE on the sale row."""
        query = self.session.query(Sale).filter(Sale.id == sale_id)
        if lock:
            query = query.with_for_update()
        return query.populate_existing().first()

    def delete_sale_and_items(self, sale_id):
        """
        Delete the sale lines first, then the sale row.

        Raises SaleNotFoundError when the sale row is already gone.
        """
        self.session.query(SaleItem).filter(SaleItem.sale_id == sale_id).delete(synchronize_session=False)
        deleted = self.session.query(Sale).filter(Sale.id == sale_id).delete(synchronize_session=False)
        if deleted == 0:
            raise SaleNotFoundError(sale_id)
        self.session.flush()
