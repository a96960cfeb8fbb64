"""Rule evaluation for PromQL queries.

Order is fixed: parse, one metadata fetch, mandatory existence checks,
per-selector structural rules, then cardinality rules. The first failing
check decides the verdict. Every outcome is returned as a :class:`Verdict`;
nothing here raises for a bad query or an unreachable backend.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from promguard.guardrails import explain
from promguard.guardrails.config import GuardrailsConfig
from promguard.guardrails.parser import PromQLParser, QueryParser, QuerySyntaxError
from promguard.guardrails.selectors import (
    METRIC_NAME_LABEL,
    blanket_regex_labels,
    iter_vector_selectors,
    label_names,
    metric_names,
    selector_display_name,
    selector_matchers,
    selector_name,
)
from promguard.guardrails.verdict import Rule, Verdict
from promguard.metadata.base import MetadataProvider, MetadataSnapshot, MetadataUnavailable
from promguard.telemetry.logging import bind
from promguard.telemetry.metrics import record_verdict
from promguard.timeutil import TimeRange

log = bind(logging.getLogger(__name__), component="guardrails")

_DEFAULT_PARSER = PromQLParser()


def _finish(query: str, verdict: Verdict) -> Verdict:
    record_verdict(verdict.safe, verdict.rule.value if verdict.rule else None)
    if verdict.safe:
        log.debug("query allowed", extra={"query": query})
    else:
        log.info(
            "query rejected",
            extra={"query": query, "rule": verdict.rule.value if verdict.rule else None},
        )
    return verdict


# --------------------------------------------------------------------------
# Mandatory checks
# --------------------------------------------------------------------------


def check_metrics_exist(metrics: List[str], snapshot: MetadataSnapshot) -> Optional[Verdict]:
    for metric in metrics:
        if snapshot.series_count_by_metric.get(metric, 0) == 0:
            return Verdict.reject(Rule.METRIC_NOT_FOUND, explain.metric_not_found(metric))
    return None


def check_labels_exist(
    labels: List[str], snapshot: MetadataSnapshot, query: str
) -> Optional[Verdict]:
    for label in labels:
        if label not in snapshot.label_value_count_by_label:
            return Verdict.reject(Rule.LABEL_NOT_FOUND, explain.label_not_found(label, query))
    return None


# --------------------------------------------------------------------------
# Structural checks
# --------------------------------------------------------------------------


def check_selectors(
    selectors: List[Any], config: GuardrailsConfig, query: str
) -> Optional[Verdict]:
    for vs in selectors:
        matchers = selector_matchers(vs)

        if config.disallow_explicit_name_label and not selector_name(vs):
            if any(m.name == METRIC_NAME_LABEL for m in matchers):
                return Verdict.reject(Rule.EXPLICIT_NAME_LABEL, explain.explicit_name_label(query))

        if config.require_label_matcher:
            if not any(m.name != METRIC_NAME_LABEL for m in matchers):
                return Verdict.reject(
                    Rule.MISSING_LABEL_MATCHER,
                    explain.missing_label_matcher(selector_display_name(vs)),
                )
    return None


# --------------------------------------------------------------------------
# Cardinality checks
# --------------------------------------------------------------------------


def check_metric_cardinality(
    metrics: List[str], snapshot: MetadataSnapshot, config: GuardrailsConfig
) -> Optional[Verdict]:
    limit = config.max_metric_cardinality
    if limit <= 0:
        return None
    for metric in metrics:
        count = snapshot.series_count_by_metric.get(metric)
        if count is not None and count > limit:
            return Verdict.reject(
                Rule.METRIC_CARDINALITY_EXCEEDED,
                explain.metric_cardinality_exceeded(metric, count, limit),
            )
    return None


def check_blanket_regex(
    labels: List[str], snapshot: MetadataSnapshot, config: GuardrailsConfig, query: str
) -> Optional[Verdict]:
    if not config.disallow_blanket_regex or not labels:
        return None
    limit = config.max_label_cardinality
    if limit == 0:
        return Verdict.reject(
            Rule.BLANKET_REGEX_DISALLOWED, explain.blanket_regex_disallowed(query, labels[0])
        )
    for label in labels:
        # Unknown labels pass: their cost cannot be shown.
        count = snapshot.label_value_count_by_label.get(label)
        if count is not None and count > limit:
            return Verdict.reject(
                Rule.LABEL_CARDINALITY_EXCEEDED,
                explain.label_cardinality_exceeded(query, label, count, limit),
            )
    return None


# --------------------------------------------------------------------------
# Entry points
# --------------------------------------------------------------------------


async def _fetch_snapshot(
    provider: MetadataProvider,
    time_range: Optional[TimeRange],
    timeout_s: Optional[float],
) -> MetadataSnapshot:
    pending = provider.fetch_stats(time_range)
    if timeout_s is None:
        return await pending
    return await asyncio.wait_for(pending, timeout=timeout_s)


async def validate(
    query: str,
    provider: MetadataProvider,
    config: Optional[GuardrailsConfig],
    *,
    time_range: Optional[TimeRange] = None,
    parser: Optional[QueryParser] = None,
    timeout_s: Optional[float] = None,
) -> Verdict:
    """Decide whether ``query`` is safe to run.

    ``config=None`` disables every rule: only the syntax check runs and the
    provider is never called. Otherwise the provider is asked for exactly
    one snapshot, which all checks share. A provider failure or a fetch
    slower than ``timeout_s`` rejects the query as unverifiable.
    """
    active_parser = parser or _DEFAULT_PARSER
    try:
        ast = active_parser.parse(query)
    except QuerySyntaxError as exc:
        return _finish(
            query, Verdict.reject(Rule.SYNTAX_ERROR, explain.syntax_error(query, exc.detail))
        )

    if config is None:
        return _finish(query, Verdict.allow())

    selectors = list(iter_vector_selectors(ast))
    metrics = sorted(metric_names(selectors))
    labels = sorted(label_names(selectors))

    # Cancellation of the calling task propagates; only deadline expiry becomes a verdict.
    try:
        snapshot = await _fetch_snapshot(provider, time_range, timeout_s)
    except asyncio.TimeoutError:
        log.warning("metadata fetch timed out", extra={"timeout_s": timeout_s})
        return _finish(
            query,
            Verdict.reject(
                Rule.METADATA_UNAVAILABLE,
                explain.metadata_unavailable(f"metadata fetch timed out after {timeout_s}s"),
            ),
        )
    except MetadataUnavailable as exc:
        log.warning("metadata unavailable", extra={"error": str(exc)})
        return _finish(
            query, Verdict.reject(Rule.METADATA_UNAVAILABLE, explain.metadata_unavailable(str(exc)))
        )
    except Exception as exc:
        log.warning("metadata provider failed", exc_info=True)
        return _finish(
            query,
            Verdict.reject(
                Rule.METADATA_UNAVAILABLE,
                explain.metadata_unavailable(f"{type(exc).__name__}: {exc}"),
            ),
        )

    verdict = (
        check_metrics_exist(metrics, snapshot)
        or check_labels_exist(labels, snapshot, query)
        or check_selectors(selectors, config, query)
        or check_metric_cardinality(metrics, snapshot, config)
        or check_blanket_regex(sorted(blanket_regex_labels(selectors)), snapshot, config, query)
        or Verdict.allow()
    )
    return _finish(query, verdict)


def validate_sync(
    query: str,
    provider: MetadataProvider,
    config: Optional[GuardrailsConfig],
    **kwargs: Any,
) -> Verdict:
    """Blocking wrapper around :func:`validate` for callers without a loop."""
    return asyncio.run(validate(query, provider, config, **kwargs))


__all__ = [
    "check_blanket_regex",
    "check_labels_exist",
    "check_metric_cardinality",
    "check_metrics_exist",
    "check_selectors",
    "validate",
    "validate_sync",
]
