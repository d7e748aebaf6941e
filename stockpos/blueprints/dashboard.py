"""Dashboard API blueprint."""
from flask import Blueprint

from stockpos.database import get_session
from stockpos.services.dashboard_service import get_dashboard_summary
from stockpos.utils.http import no_cache_json
from stockpos.utils.serializers import iso, num

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


@dashboard_bp.route('', methods=['GET'])
def dashboard():
    """Counts, today's sales and revenue, low stock products and recent sales."""
    summary = get_dashboard_summary(get_session())

    return no_cache_json({
        'totalProducts': summary['total_products'],
        'totalCategories': summary['total_categories'],
        'totalSuppliers': summary['total_suppliers'],
        'totalSales': summary['total_sales'],
        'totalRevenue': num(summary['total_revenue']),
        'lowStockProducts': summary['low_stock_count'],
        'lowStockProductsList': [
            {
                'id': p.id,
                'name': p.name,
                'stockQty': num(p.stock_qty),
                'stockMin': num(p.stock_min),
            }
            for p in summary['low_stock_products']
        ],
        'recentSales': [
            {
                'id': s.id,
                'total': num(s.total),
                'createdAt': iso(s.created_at),
                'items': len(s.items),
            }
            for s in summary['recent_sales']
        ],
    })
