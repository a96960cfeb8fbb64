from __future__ import annotations

from typing import Any, Protocol

import promql_parser


class QuerySyntaxError(Exception):
    """The query could not be parsed."""

    def __init__(self, query: str, detail: str) -> None:
        super().__init__(f"{detail} in query: {query!r}")
        self.query = query
        self.detail = detail


class QueryParser(Protocol):
    def parse(self, query: str) -> Any: ...


class PromQLParser:
    """Adapter over the ``promql_parser`` bindings."""

    def parse(self, query: str) -> Any:
        if not query or not query.strip():
            raise QuerySyntaxError(query, "empty query")
        try:
            return promql_parser.parse(query)
        except Exception as exc:  # the bindings raise ValueError on bad input
            raise QuerySyntaxError(query, str(exc)) from exc


__all__ = ["PromQLParser", "QueryParser", "QuerySyntaxError"]
