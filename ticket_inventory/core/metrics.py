"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Hold metrics
hold_requests = Counter(
    'inventory_holds_total',
    'Hold creation attempts',
    ['result']  # created, insufficient, not_found, invalid
)

hold_transitions = Counter(
    'inventory_hold_transitions_total',
    'Holds leaving the ACTIVE state',
    ['status']  # completed, expired, released
)

active_holds = Gauge(
    'inventory_active_holds',
    'Number of ACTIVE holds in this process'
)

# Purchase metrics
purchase_attempts = Counter(
    'inventory_purchases_total',
    'Purchase completion attempts',
    ['result']  # success, hold_unavailable, persistence_failure
)

# Durable store metrics
store_failures = Counter(
    'inventory_store_failures_total',
    'Durable store read/write failures',
    ['operation']  # fetch, record_sale, adjust
)

# Sweeper metrics
sweep_duration = Histogram(
    'inventory_sweep_duration_seconds',
    'Expiry sweep duration',
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1]
)

listener_errors = Counter(
    'inventory_listener_errors_total',
    'Exceptions raised by inventory update listeners'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_hold_request(result: str):
    """Record hold attempt. Result: created, insufficient, not_found, invalid"""
    hold_requests.labels(result=result).inc()


def record_hold_transition(status: str):
    hold_transitions.labels(status=status).inc()


def record_purchase(result: str):
    """Record purchase completion. Result: success, hold_unavailable, persistence_failure"""
    purchase_attempts.labels(result=result).inc()


def record_store_failure(operation: str):
    store_failures.labels(operation=operation).inc()
