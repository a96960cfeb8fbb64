from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import httpx

from promguard.metadata.base import MetadataSnapshot, MetadataUnavailable
from promguard.telemetry.logging import bind
from promguard.telemetry.metrics import observe_metadata_fetch, record_metadata_error
from promguard.timeutil import TimeRange

TSDB_STATUS_PATH = "/api/v1/status/tsdb"

# Entries per statistic; Prometheus returns only its top 10 without a limit.
DEFAULT_STATS_LIMIT = 10000


def _stats_to_map(items: Any, field_name: str) -> Dict[str, int]:
    if items is None:
        return {}
    if not isinstance(items, list):
        raise MetadataUnavailable(f"TSDB status field {field_name!r} is not a list")
    out: Dict[str, int] = {}
    for entry in items:
        if not isinstance(entry, Mapping) or "name" not in entry:
            raise MetadataUnavailable(f"malformed entry in TSDB status field {field_name!r}")
        try:
            out[str(entry["name"])] = int(entry.get("value", 0))
        except (TypeError, ValueError) as exc:
            raise MetadataUnavailable(
                f"non-numeric value for {entry['name']!r} in {field_name!r}"
            ) from exc
    return out


def snapshot_from_tsdb_payload(payload: Any) -> MetadataSnapshot:
    """Decode the JSON body of ``/api/v1/status/tsdb``."""
    if not isinstance(payload, Mapping):
        raise MetadataUnavailable("TSDB status response is not a JSON object")
    status = payload.get("status")
    if status != "success":
        error = payload.get("error") or "unknown error"
        raise MetadataUnavailable(f"TSDB status request failed ({status}): {error}")
    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise MetadataUnavailable("TSDB status response has no data object")
    return MetadataSnapshot(
        series_count_by_metric=_stats_to_map(
            data.get("seriesCountByMetricName"), "seriesCountByMetricName"
        ),
        label_value_count_by_label=_stats_to_map(
            data.get("labelValueCountByLabelName"), "labelValueCountByLabelName"
        ),
    )


class PrometheusTSDBProvider:
    """
    Reads cardinality statistics from the Prometheus (or Thanos) TSDB status API.

    The endpoint reports head-block statistics and takes no time range; the
    requested range is only logged. ``limit`` bounds the entries returned per
    statistic; metrics outside the returned set look absent to the engine.
    ``limit=None`` leaves the server default (10).
    """

    name = "prometheus"

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout_s: float = 30.0,
        verify_tls: bool = True,
        limit: Optional[int] = DEFAULT_STATS_LIMIT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout_s = timeout_s
        self._verify_tls = verify_tls
        self._limit = limit
        self._client = client
        self._log = bind(logging.getLogger(__name__), provider=self.name, backend=self._base_url)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _params(self) -> Dict[str, str]:
        return {"limit": str(self._limit)} if self._limit else {}

    async def _get(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.get(
            f"{self._base_url}{TSDB_STATUS_PATH}",
            params=self._params(),
            headers=self._headers(),
        )

    async def fetch_stats(self, time_range: Optional[TimeRange] = None) -> MetadataSnapshot:
        if time_range is not None:
            self._log.debug(
                "fetching TSDB stats",
                extra={
                    "start": time_range.start,
                    "end": time_range.end,
                    "window_s": time_range.duration.total_seconds(),
                },
            )
        t0 = time.perf_counter()
        try:
            if self._client is not None:
                response = await self._get(self._client)
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout_s, verify=self._verify_tls
                ) as client:
                    response = await self._get(client)
            response.raise_for_status()
            snapshot = snapshot_from_tsdb_payload(response.json())
        except httpx.HTTPStatusError as exc:
            record_metadata_error(self.name)
            self._log.warning(
                "TSDB status request rejected",
                extra={"status_code": exc.response.status_code},
            )
            raise MetadataUnavailable(
                f"metrics backend answered HTTP {exc.response.status_code} for {TSDB_STATUS_PATH}"
            ) from exc
        except httpx.HTTPError as exc:
            record_metadata_error(self.name)
            self._log.warning("TSDB status request failed", extra={"error": str(exc)})
            raise MetadataUnavailable(f"cannot reach metrics backend: {exc}") from exc
        except ValueError as exc:
            # invalid JSON body
            record_metadata_error(self.name)
            raise MetadataUnavailable(f"invalid TSDB status response: {exc}") from exc
        except MetadataUnavailable:
            record_metadata_error(self.name)
            raise
        finally:
            observe_metadata_fetch(self.name, time.perf_counter() - t0)

        self._log.debug(
            "fetched TSDB stats",
            extra={
                "metrics": len(snapshot.series_count_by_metric),
                "labels": len(snapshot.label_value_count_by_label),
            },
        )
        return snapshot


__all__: List[str] = [
    "DEFAULT_STATS_LIMIT",
    "PrometheusTSDBProvider",
    "TSDB_STATUS_PATH",
    "snapshot_from_tsdb_payload",
]
