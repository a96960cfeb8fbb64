from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

_log = logging.getLogger(__name__)


def _best_effort(msg: str, fn: Callable[[], Any]) -> None:
    # Metrics must never break a validation call.
    try:
        fn()
    except Exception as e:  # pragma: no cover
        _log.debug("%s: %s", msg, e)


def _lookup(reg: CollectorRegistry, name: str) -> Any:
    names_map = getattr(reg, "_names_to_collectors", None)
    if isinstance(names_map, dict):
        return names_map.get(name)
    return None


def _get_or_create_counter(
    name: str,
    doc: str,
    labelnames: Tuple[str, ...] = (),
    registry: Optional[CollectorRegistry] = None,
) -> Counter:
    reg = registry or REGISTRY
    existing = _lookup(reg, name)
    if isinstance(existing, Counter):
        return existing
    try:
        return Counter(name, doc, labelnames=labelnames, registry=reg)
    except ValueError:
        # Registered under the "_total" suffix by an earlier import.
        found = _lookup(reg, f"{name}_total") or _lookup(reg, name)
        if isinstance(found, Counter):
            return found
        raise


def _get_or_create_histogram(
    name: str,
    doc: str,
    labelnames: Tuple[str, ...] = (),
    registry: Optional[CollectorRegistry] = None,
) -> Histogram:
    reg = registry or REGISTRY
    existing = _lookup(reg, name)
    if isinstance(existing, Histogram):
        return existing
    try:
        return Histogram(name, doc, labelnames=labelnames, registry=reg)
    except ValueError:
        found = _lookup(reg, f"{name}_count") or _lookup(reg, name)
        if isinstance(found, Histogram):
            return found
        raise


# --- Verdicts -----------------------------------------------------------------

verdicts_total = _get_or_create_counter(
    "promguard_verdicts_total",
    "Guardrail verdicts by outcome and triggering rule",
    ("outcome", "rule"),
)

# --- Metadata fetches ---------------------------------------------------------

metadata_fetch_seconds = _get_or_create_histogram(
    "promguard_metadata_fetch_seconds",
    "Latency of metadata snapshot fetches",
    ("provider",),
)
metadata_fetch_errors_total = _get_or_create_counter(
    "promguard_metadata_fetch_errors_total",
    "Metadata snapshot fetches that failed",
    ("provider",),
)


def record_verdict(safe: bool, rule: Optional[str]) -> None:
    outcome = "safe" if safe else "unsafe"
    _best_effort(
        "inc verdict counter",
        lambda: verdicts_total.labels(outcome=outcome, rule=rule or "none").inc(),
    )


def observe_metadata_fetch(provider: str, seconds: float) -> None:
    _best_effort(
        "observe metadata fetch",
        lambda: metadata_fetch_seconds.labels(provider=provider).observe(seconds),
    )


def record_metadata_error(provider: str) -> None:
    _best_effort(
        "inc metadata error counter",
        lambda: metadata_fetch_errors_total.labels(provider=provider).inc(),
    )
