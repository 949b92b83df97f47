from __future__ import annotations

from ..metrics.registry import (
    STORE_APPLY_LATENCY_SECONDS,
    STORE_CHANGES_TOTAL,
    STORE_PENDING_CHANGES,
)


def observe_change(table: str, kind: str, status: str) -> None:
    STORE_CHANGES_TOTAL.labels(table=table, kind=kind, status=status).inc()


def observe_apply(table: str, latency_s: float) -> None:
    STORE_APPLY_LATENCY_SECONDS.labels(table=table).observe(latency_s)


def set_pending(table: str, count: int) -> None:
    STORE_PENDING_CHANGES.labels(table=table).set(count)
