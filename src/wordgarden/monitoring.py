"""Monitoring configuration for WordGarden."""
from prometheus_client import Counter, Gauge, Histogram, start_http_server

# Sync metrics
sync_operations = Counter(
    "wordgarden_sync_operations_total",
    "Total number of sync operations started",
    ["operation"],
)

sync_errors = Counter(
    "wordgarden_sync_errors_total",
    "Total number of sync operations that failed",
    ["error_type"],
)

sync_duration = Histogram(
    "wordgarden_sync_duration_seconds",
    "Duration of sync operations in seconds",
    ["operation"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 30.0],
)

syncs_in_flight = Gauge(
    "wordgarden_syncs_in_flight",
    "Number of sync operations currently running",
)

# Merge metrics
words_merged = Counter(
    "wordgarden_words_merged_total",
    "Total number of remote words added to the local snapshot",
)

contract_violations = Counter(
    "wordgarden_snapshot_contract_violations_total",
    "Total number of malformed snapshots rejected by the merge guard",
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
