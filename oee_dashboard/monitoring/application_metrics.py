"""
OEE Floor Dashboard - Application Metrics

Prometheus collectors for dashboard query latency, query outcomes,
superseded requests and record store mutations.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

registry = CollectorRegistry()

dashboard_query_duration = Histogram(
    "oee_dashboard_query_duration_seconds",
    "Time spent building one dashboard result",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    registry=registry,
)

dashboard_queries_total = Counter(
    "oee_dashboard_queries_total",
    "Dashboard queries by outcome",
    ["outcome"],
    registry=registry,
)

superseded_requests_total = Counter(
    "oee_dashboard_superseded_requests_total",
    "Dashboard requests discarded because a newer request was issued",
    registry=registry,
)

store_mutations_total = Counter(
    "oee_dashboard_store_mutations_total",
    "Record store mutations by entity and action",
    ["entity", "action"],
    registry=registry,
)


def record_mutation(entity: str, action: str) -> None:
    """Count one record store mutation."""
    store_mutations_total.labels(entity=entity, action=action).inc()


def render_latest() -> bytes:
    """Render all collectors in the Prometheus text format."""
    return generate_latest(registry)
