"""Vector selector traversal and extraction helpers.

Everything here walks the ``promql_parser`` AST with an explicit stack, so
a selector nested under aggregations, calls, binary operators, parentheses,
subqueries or range selectors is reached the same way as a top-level one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Set

import promql_parser

METRIC_NAME_LABEL = "__name__"

BLANKET_REGEX_VALUES = frozenset({".*", ".+"})

# Attributes holding child expressions, in source order.
_CHILD_ATTRS = ("param", "expr", "lhs", "rhs", "vector_selector", "vs")

_EXPR_TYPES = (promql_parser.Expr,)
_LEAF_TYPES = tuple(
    t
    for t in (
        getattr(promql_parser, "NumberLiteral", None),
        getattr(promql_parser, "StringLiteral", None),
        promql_parser.VectorSelector,
    )
    if t is not None
)


class MatchOp(str, Enum):
    EQUAL = "="
    NOT_EQUAL = "!="
    REGEX = "=~"
    NOT_REGEX = "!~"


_PARSER_OPS = (
    ("Equal", MatchOp.EQUAL),
    ("NotEqual", MatchOp.NOT_EQUAL),
    ("Re", MatchOp.REGEX),
    ("NotRe", MatchOp.NOT_REGEX),
)


@dataclass(frozen=True)
class LabelMatcher:
    name: str
    op: MatchOp
    value: str

    @property
    def is_regex(self) -> bool:
        return self.op in (MatchOp.REGEX, MatchOp.NOT_REGEX)


def _normalize_op(op: Any) -> MatchOp:
    if isinstance(op, MatchOp):
        return op
    parser_ops = getattr(promql_parser, "MatchOp", None)
    for attr, ours in _PARSER_OPS:
        member = getattr(parser_ops, attr, None)
        if member is not None and op == member:
            return ours
    text = str(op).rsplit(".", 1)[-1]
    for attr, ours in _PARSER_OPS:
        if text in (attr, ours.value):
            return ours
    raise ValueError(f"unsupported label match operator: {op!r}")


def _is_vector_selector(node: Any) -> bool:
    return isinstance(node, promql_parser.VectorSelector)


def _is_expr(value: Any) -> bool:
    return isinstance(value, _EXPR_TYPES)


def _children(node: Any) -> List[Any]:
    out: List[Any] = []
    for attr in _CHILD_ATTRS:
        child = getattr(node, attr, None)
        if _is_expr(child):
            out.append(child)
    args = getattr(node, "args", None)
    if args:
        out.extend(a for a in args if _is_expr(a))
    if not out and not isinstance(node, _LEAF_TYPES):
        # Node kinds added by newer parser releases: take any expression attribute.
        for attr in sorted(a for a in dir(node) if not a.startswith("_")):
            child = getattr(node, attr, None)
            if _is_expr(child):
                out.append(child)
    return out


def iter_vector_selectors(ast: Any) -> Iterator[Any]:
    """Yield every vector selector in ``ast`` once, depth-first, left to right."""
    stack: List[Any] = [ast]
    while stack:
        node = stack.pop()
        if _is_vector_selector(node):
            yield node
            continue
        stack.extend(reversed(_children(node)))


def selector_name(selector: Any) -> str:
    return getattr(selector, "name", None) or ""


def selector_matchers(selector: Any) -> List[LabelMatcher]:
    raw = getattr(selector, "matchers", None)
    if raw is None:
        return []
    items: Iterable[Any] = getattr(raw, "matchers", raw)
    out = [LabelMatcher(m.name, _normalize_op(m.op), m.value) for m in items]
    # "or" groups ({a="1" or b="2"}) are flattened; every matcher counts.
    for group in getattr(raw, "or_matchers", None) or []:
        out.extend(LabelMatcher(m.name, _normalize_op(m.op), m.value) for m in group)
    return out


def selector_display_name(selector: Any) -> str:
    """Best human-readable name for a selector in diagnostics."""
    name = selector_name(selector)
    if name:
        return name
    for m in selector_matchers(selector):
        if m.name == METRIC_NAME_LABEL and m.op is MatchOp.EQUAL:
            return m.value
    return "<unnamed selector>"


def is_blanket_regex(matcher: LabelMatcher) -> bool:
    return matcher.is_regex and matcher.value in BLANKET_REGEX_VALUES


def metric_names(selectors: Iterable[Any]) -> Set[str]:
    names: Set[str] = set()
    for vs in selectors:
        name = selector_name(vs)
        if name:
            names.add(name)
        for m in selector_matchers(vs):
            if m.name == METRIC_NAME_LABEL and m.op is MatchOp.EQUAL:
                names.add(m.value)
    return names


def label_names(selectors: Iterable[Any]) -> Set[str]:
    return {
        m.name
        for vs in selectors
        for m in selector_matchers(vs)
        if m.name != METRIC_NAME_LABEL
    }


def blanket_regex_labels(selectors: Iterable[Any]) -> Set[str]:
    return {m.name for vs in selectors for m in selector_matchers(vs) if is_blanket_regex(m)}


def extract_metric_names(ast: Any) -> Set[str]:
    return metric_names(iter_vector_selectors(ast))


def extract_label_names(ast: Any) -> Set[str]:
    """Label names used by any matcher, the metric name label excluded."""
    return label_names(iter_vector_selectors(ast))


def extract_blanket_regex_labels(ast: Any) -> Set[str]:
    """Labels matched with ``=~``/``!~`` against exactly ``.*`` or ``.+``."""
    return blanket_regex_labels(iter_vector_selectors(ast))


__all__ = [
    "BLANKET_REGEX_VALUES",
    "LabelMatcher",
    "METRIC_NAME_LABEL",
    "MatchOp",
    "blanket_regex_labels",
    "extract_blanket_regex_labels",
    "extract_label_names",
    "extract_metric_names",
    "is_blanket_regex",
    "iter_vector_selectors",
    "label_names",
    "metric_names",
    "selector_display_name",
    "selector_matchers",
    "selector_name",
]
