"""
Prometheus Metrics for the Event Dead Letter Store
"""

from prometheus_client import Counter, Gauge, Histogram, start_http_server
import structlog

logger = structlog.get_logger(__name__)

# Counters
dead_letters_stored_total = Counter(
    "event_dead_letters_stored_total",
    "Total failed deliveries recorded, by listener group",
    ["group"],
)

remove_requests_total = Counter(
    "event_dead_letters_remove_requests_total",
    "Total remove requests, by listener group (absent records included)",
    ["group"],
)

undecodable_events_total = Counter(
    "event_dead_letters_undecodable_total",
    "Stored payloads that could not be decoded, by reason",
    ["reason"],
)

redeliveries_total = Counter(
    "event_dead_letters_redeliveries_total",
    "Redelivery attempts by outcome",
    ["group", "outcome"],
)

# Gauges
groups_with_failed_events = Gauge(
    "event_dead_letters_groups_with_failed_events",
    "Number of listener groups holding at least one dead letter",
)

# Histograms
backend_operation_duration_seconds = Histogram(
    "event_dead_letters_backend_operation_duration_seconds",
    "Time taken by dead letter backend operations",
    ["backend", "operation"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server

    Args:
        port: HTTP port to expose /metrics endpoint (default 9090)
    """
    start_http_server(port)
    logger.info("Prometheus metrics server started", port=port)


def increment_stored(group: str) -> None:
    """Increment dead letters stored counter"""
    dead_letters_stored_total.labels(group=group).inc()


def increment_remove_requests(group: str) -> None:
    """Increment remove requests counter; remove is a no-op for absent records"""
    remove_requests_total.labels(group=group).inc()


def increment_undecodable(reason: str) -> None:
    """Increment undecodable payloads counter"""
    undecodable_events_total.labels(reason=reason).inc()


def increment_redelivery(group: str, success: bool) -> None:
    """Increment redelivery counter for one outcome"""
    outcome = "success" if success else "failure"
    redeliveries_total.labels(group=group, outcome=outcome).inc()


def set_groups_with_failed_events(count: int) -> None:
    """Set groups with failed events gauge"""
    groups_with_failed_events.set(count)


def observe_backend_operation(backend: str, operation: str, duration_seconds: float) -> None:
    """Observe backend operation duration histogram"""
    backend_operation_duration_seconds.labels(backend=backend, operation=operation).observe(
        duration_seconds
    )
