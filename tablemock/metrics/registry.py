from prometheus_client import Counter, Gauge, Histogram

STORE_CHANGES_TOTAL = Counter(
    "tablemock_store_changes_total",
    "Pending changes applied to a backing store",
    ["table", "kind", "status"],
)

STORE_APPLY_LATENCY_SECONDS = Histogram(
    "tablemock_store_apply_latency_seconds",
    "Time spent draining and applying the pending change buffer",
    ["table"],
)

STORE_PENDING_CHANGES = Gauge(
    "tablemock_store_pending_changes",
    "Changes buffered and not yet applied",
    ["table"],
)
