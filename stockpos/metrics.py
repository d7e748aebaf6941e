"""
Prometheus collectors shared by the HTTP instrumentation and the ledger.

Collectors are module-level so they register exactly once per process.
"""
import os

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry, REGISTRY
from prometheus_client import multiprocess

# Check if running in multi-process mode (Gunicorn)
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

# Use multiprocess registry in production with Gunicorn
if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
else:
    registry = REGISTRY

_collector_registry = registry if not MULTIPROCESS_MODE else None

# HTTP Request Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'http_status'],
    registry=_collector_registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=_collector_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'Number of HTTP requests currently being processed',
    registry=_collector_registry,
    multiprocess_mode='livesum'
)

# Ledger Metrics
stock_movements_total = Counter(
    'stock_movements_total',
    'Stock movements written to the ledger',
    ['type'],
    registry=_collector_registry
)

sales_recorded_total = Counter(
    'sales_recorded_total',
    'Sales committed at checkout',
    registry=_collector_registry
)

sales_cancelled_total = Counter(
    'sales_cancelled_total',
    'Sales cancelled with stock restored',
    registry=_collector_registry
)

ledger_rejections_total = Counter(
    'ledger_rejections_total',
    'Ledger operations rejected before any write',
    ['kind'],
    registry=_collector_registry
)
