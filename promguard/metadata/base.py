from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Protocol

from promguard.timeutil import TimeRange


class MetadataUnavailable(Exception):
    """The backend could not be reached or returned an unusable payload."""


@dataclass(frozen=True)
class MetadataSnapshot:
    """Point-in-time series/label cardinalities taken from one backend call.

    A missing key means "not observed", not zero.
    """

    series_count_by_metric: Mapping[str, int] = field(default_factory=dict)
    label_value_count_by_label: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the mappings so a snapshot shared across checks stays unchanged.
        object.__setattr__(
            self, "series_count_by_metric", MappingProxyType(dict(self.series_count_by_metric))
        )
        object.__setattr__(
            self,
            "label_value_count_by_label",
            MappingProxyType(dict(self.label_value_count_by_label)),
        )

    @classmethod
    def from_dict(cls, data: Any) -> "MetadataSnapshot":
        """Build from ``{"series": {...}, "labels": {...}}`` (snapshot files, fixtures).

        Raises ``ValueError`` when the document is not that shape or a count
        is not a non-negative integer.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"snapshot must be a JSON object, got {type(data).__name__}")
        series = _first_present(data, "series", "seriesCountByMetric")
        labels = _first_present(data, "labels", "labelValueCountByLabel")
        return cls(
            series_count_by_metric=_counts(series, "series"),
            label_value_count_by_label=_counts(labels, "labels"),
        )


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return {}


def _counts(raw: Any, section: str) -> Dict[str, int]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"snapshot {section!r} must map names to counts")
    out: Dict[str, int] = {}
    for name, count in raw.items():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(
                f"snapshot {section!r}: count for {name!r} must be a non-negative integer, "
                f"got {count!r}"
            )
        out[str(name)] = count
    return out


class MetadataProvider(Protocol):
    """Source of :class:`MetadataSnapshot` objects.

    Implementations own retries, timeouts and authentication, and raise
    :class:`MetadataUnavailable` when no snapshot can be produced.
    """

    name: str

    async def fetch_stats(self, time_range: Optional[TimeRange] = None) -> MetadataSnapshot: ...


class StaticMetadataProvider:
    """Serves a fixed snapshot; used for offline validation and tests."""

    name = "static"

    def __init__(self, snapshot: MetadataSnapshot) -> None:
        self._snapshot = snapshot
        self.calls = 0

    async def fetch_stats(self, time_range: Optional[TimeRange] = None) -> MetadataSnapshot:
        self.calls += 1
        return self._snapshot
