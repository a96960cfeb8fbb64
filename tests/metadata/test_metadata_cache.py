from __future__ import annotations

import pytest

from promguard.metadata import (
    CachingMetadataProvider,
    MetadataSnapshot,
    MetadataUnavailable,
    StaticMetadataProvider,
)


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class _Flaky:
    name = "flaky"

    def __init__(self) -> None:
        self.fail = True
        self.calls = 0

    async def fetch_stats(self, time_range=None):
        self.calls += 1
        if self.fail:
            raise MetadataUnavailable("down")
        return MetadataSnapshot(series_count_by_metric={"up": 1})


def test_ttl_must_be_positive(provider) -> None:
    with pytest.raises(ValueError):
        CachingMetadataProvider(provider, 0)


def test_name_wraps_inner(provider) -> None:
    assert CachingMetadataProvider(provider, 5).name == "cached:static"


async def test_snapshot_reused_within_ttl(provider) -> None:
    clock = _Clock()
    cached = CachingMetadataProvider(provider, 10, clock=clock)

    first = await cached.fetch_stats()
    clock.now += 9.9
    second = await cached.fetch_stats()

    assert first is second
    assert provider.calls == 1


async def test_snapshot_refetched_after_ttl(provider) -> None:
    clock = _Clock()
    cached = CachingMetadataProvider(provider, 10, clock=clock)

    await cached.fetch_stats()
    clock.now += 10
    await cached.fetch_stats()

    assert provider.calls == 2


async def test_failures_are_not_cached() -> None:
    inner = _Flaky()
    cached = CachingMetadataProvider(inner, 60, clock=_Clock())

    with pytest.raises(MetadataUnavailable):
        await cached.fetch_stats()
    inner.fail = False
    snap = await cached.fetch_stats()
    await cached.fetch_stats()

    assert snap.series_count_by_metric["up"] == 1
    assert inner.calls == 2


async def test_invalidate_forces_fetch(provider) -> None:
    cached = CachingMetadataProvider(provider, 60, clock=_Clock())
    await cached.fetch_stats()
    cached.invalidate()
    await cached.fetch_stats()
    assert provider.calls == 2


def test_snapshot_mappings_are_read_only(snapshot) -> None:
    with pytest.raises(TypeError):
        snapshot.series_count_by_metric["new"] = 1  # type: ignore[index]


def test_snapshot_from_dict_accepts_both_key_styles() -> None:
    short = MetadataSnapshot.from_dict({"series": {"up": 3}, "labels": {"job": 2}})
    camel = MetadataSnapshot.from_dict(
        {"seriesCountByMetric": {"up": 3}, "labelValueCountByLabel": {"job": 2}}
    )
    assert dict(short.series_count_by_metric) == dict(camel.series_count_by_metric) == {"up": 3}
    assert dict(short.label_value_count_by_label) == {"job": 2}


async def test_static_provider_counts_calls(provider, snapshot) -> None:
    assert await provider.fetch_stats() is snapshot
    assert provider.calls == 1
    assert isinstance(provider, StaticMetadataProvider)
