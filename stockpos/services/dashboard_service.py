"""Dashboard summary: catalog counts, today's sales and low stock."""
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import func

from stockpos.models import Category, Product, Sale, Supplier


def get_dashboard_summary(session, today: date = None, low_stock_limit: int = 10, recent_limit: int = 5) -> dict:
    """
    Build the dashboard payload.

    Args:
        session: SQLAlchemy session
        today: day whose sales are summarized (defaults to the local date)
        low_stock_limit: how many low-stock products to list
        recent_limit: how many recent sales to list

    Returns:
        dict with counts, today's sales/revenue, low stock list and the
        most recent sales
    """
    today = today or date.today()
    start = datetime.combine(today, time.min)

    total_products = session.query(func.count(Product.id)).scalar()
    total_categories = session.query(func.count(Category.id)).scalar()
    total_suppliers = session.query(func.count(Supplier.id)).scalar()

    today_sales = session.query(func.count(Sale.id)).filter(Sale.created_at >= start).scalar()
    today_revenue = session.query(func.coalesce(func.sum(Sale.total), 0)).filter(
        Sale.created_at >= start
    ).scalar()

    low_stock = session.query(Product).filter(Product.is_low_stock).order_by(
        Product.stock_qty.asc(), Product.name
    ).all()

    recent_sales = session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc()).limit(recent_limit).all()

    return {
        'total_products': total_products,
        'total_categories': total_categories,
        'total_suppliers': total_suppliers,
        'total_sales': today_sales,
        'total_revenue': Decimal(str(today_revenue or 0)),
        'low_stock_count': len(low_stock),
        'low_stock_products': low_stock[:low_stock_limit],
        'recent_sales': recent_sales,
    }
