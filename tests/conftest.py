# tests/conftest.py
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from promguard.metadata import MetadataSnapshot, StaticMetadataProvider  # noqa: E402

SERIES = {
    "http_requests_total": 500,
    "http_request_duration_seconds_bucket": 1200,
    "http_latency_bucket": 900,
    "some_very_high_cardinality_metric": 15000,
    "my_metric": 10,
    "cpu_usage": 40,
    "up": 12,
    "node_cpu_seconds_total": 64,
}

LABELS = {
    "__name__": 8,
    "job": 5,
    "instance": 30,
    "pod": 50,
    "status": 6,
    "environment": 3,
    "service": 7,
    "mode": 8,
}


@pytest.fixture()
def snapshot() -> MetadataSnapshot:
    return MetadataSnapshot(series_count_by_metric=SERIES, label_value_count_by_label=LABELS)


@pytest.fixture()
def provider(snapshot: MetadataSnapshot) -> StaticMetadataProvider:
    return StaticMetadataProvider(snapshot)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Minimal asyncio support without requiring pytest-asyncio."""

    test_func = pyfuncitem.obj
    if asyncio.iscoroutinefunction(test_func):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            call_kwargs = {
                name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
            }
            loop.run_until_complete(test_func(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None
