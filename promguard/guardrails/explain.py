"""Diagnostic messages for triggered rules.

Messages are read by an agent that will retry with a corrected query, so
each one names the exact construct and says what to do instead.
"""

from __future__ import annotations

from typing import Optional


def syntax_error(query: str, detail: str) -> str:
    return (
        f"the PromQL query '{query}' has a syntax error. Error details: {detail}. "
        "Please check the query syntax and ensure all metric names, labels, and "
        "functions are correct and properly formatted"
    )


def metadata_unavailable(detail: Optional[str] = None) -> str:
    suffix = f" Error details: {detail}." if detail else ""
    return (
        "cannot verify query safety: failed to retrieve metrics information from "
        f"the metrics backend.{suffix} The query was rejected because its cost could "
        "not be checked. Please verify that the backend is reachable and retry"
    )


def metric_not_found(metric: str) -> str:
    return (
        f"the metric '{metric}' does not exist in the metrics backend. "
        "You can list the available metric names to find the right one, or check "
        "if the metric name is spelled correctly"
    )


def label_not_found(label: str, query: str) -> str:
    return (
        f"the label '{label}' used in query '{query}' does not exist in the metrics "
        "backend. Please check if the label name is spelled correctly. Common labels "
        "include 'job', 'instance', etc. You may need to verify which labels are "
        "available for your metrics"
    )


def explicit_name_label(query: str) -> str:
    return (
        f"the query '{query}' uses explicit {{__name__=\"...\"}} syntax, which is not "
        "allowed. Please use the direct metric name syntax instead (e.g., use "
        "'metric_name{label=\"value\"}' instead of "
        "'{__name__=\"metric_name\",label=\"value\"}')"
    )


def missing_label_matcher(metric: str) -> str:
    return (
        f"the query for metric '{metric}' does not have any label filters, which is "
        "required for safety. Queries without label matchers can be very expensive as "
        "they return all series for a metric. Please add at least one label filter "
        f"(e.g., '{metric}{{job=\"...\"}}' or '{metric}{{instance=\"...\"}}')"
    )


def metric_cardinality_exceeded(metric: str, count: int, limit: int) -> str:
    return (
        f"the metric '{metric}' has {count} time series, which exceeds the maximum "
        f"allowed limit of {limit}. This metric has too many unique label combinations, "
        "making queries expensive. Please add more specific label filters to reduce the "
        "number of series returned, or use aggregation functions to reduce cardinality"
    )


def blanket_regex_disallowed(query: str, label: str) -> str:
    return (
        f"the query '{query}' uses a blanket regex pattern (=~ \".*\" or =~ \".+\") on "
        f"label '{label}', which is not allowed. Blanket regex patterns match all values "
        "and can be extremely expensive. Please use more specific label matchers or "
        "exact value matches instead"
    )


def label_cardinality_exceeded(query: str, label: str, count: int, limit: int) -> str:
    return (
        f"the query '{query}' uses a blanket regex pattern on label '{label}', which has "
        f"{count} unique values ({count} > {limit}). This exceeds the maximum allowed "
        f"limit of {limit} for regex patterns. Blanket regex on high-cardinality labels "
        "is very expensive. Please use specific label values or more restrictive regex "
        "patterns instead"
    )
