"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
import time
from functools import wraps
from typing import Callable

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

services_matched = Counter(
    'services_matched_total',
    'Detected services processed by the matcher',
    ['outcome'],
    registry=registry
)

quotations_computed = Counter(
    'quotations_computed_total',
    'Quotation totals computed',
    ['source'],
    registry=registry
)

cache_hits = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['cache'],
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['cache'],
    registry=registry
)

catalog_import_rows = Counter(
    'catalog_import_rows_total',
    'Catalog CSV rows processed',
    ['status'],
    registry=registry
)

extractor_calls = Counter(
    'extractor_calls_total',
    'Upstream service extraction calls',
    ['backend', 'status'],
    registry=registry
)

extractor_duration = Histogram(
    'extractor_call_duration_seconds',
    'Upstream service extraction duration in seconds',
    ['backend'],
    registry=registry
)

webhook_deliveries = Counter(
    'webhook_deliveries_total',
    'Total webhook delivery attempts',
    ['status'],
    registry=registry
)

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total rate limit exceeded events',
    ['user_id'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)

db_connected = Gauge(
    'db_connected',
    'Database connection status (1=connected, 0=disconnected)',
    registry=registry
)


def track_extraction(backend: str):
    """Decorator to track upstream extraction calls"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
                extractor_calls.labels(backend=backend, status='success').inc()
                return result
            except Exception:
                extractor_calls.labels(backend=backend, status='error').inc()
                raise
            finally:
                extractor_duration.labels(backend=backend).observe(time.time() - start_time)
        return wrapper
    return decorator


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    from prometheus_client import generate_latest
    return generate_latest(registry).decode('utf-8')
