"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Workflow metrics
workflow_transitions = Counter(
    'accommodation_transitions_total',
    'Accommodation workflow transitions',
    ['event', 'result']  # assign/respond/cancel/check_in/check_out, success/rejected
)

assignment_latency = Histogram(
    'accommodation_assignment_latency_seconds',
    'Hotel assignment latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Inventory metrics
room_reservations = Counter(
    'room_reservation_attempts_total',
    'Conditional room reservation attempts',
    ['result']  # reserved, conflict
)

confirmation_code_collisions = Counter(
    'confirmation_code_collisions_total',
    'Confirmation codes regenerated after a collision'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
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

# Convenience functions for instrumentation
def record_transition(event: str, success: bool):
    """Record a workflow transition attempt."""
    result = "success" if success else "rejected"
    workflow_transitions.labels(event=event, result=result).inc()

def record_room_reservation(reserved: bool):
    """Record the outcome of a conditional room decrement."""
    result = "reserved" if reserved else "conflict"
    room_reservations.labels(result=result).inc()

def record_code_collision():
    confirmation_code_collisions.inc()

def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
