from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Rule(str, Enum):
    SYNTAX_ERROR = "syntax-error"
    METADATA_UNAVAILABLE = "metadata-unavailable"
    METRIC_NOT_FOUND = "metric-not-found"
    LABEL_NOT_FOUND = "label-not-found"
    EXPLICIT_NAME_LABEL = "explicit-name-label"
    MISSING_LABEL_MATCHER = "missing-label-matcher"
    METRIC_CARDINALITY_EXCEEDED = "metric-cardinality-exceeded"
    BLANKET_REGEX_DISALLOWED = "blanket-regex-disallowed"
    LABEL_CARDINALITY_EXCEEDED = "label-cardinality-exceeded"


@dataclass(frozen=True)
class Verdict:
    """Outcome of a single validation call.

    An unsafe verdict always carries the rule that fired and a non-empty
    reason naming the offending construct.
    """

    safe: bool
    reason: Optional[str] = None
    rule: Optional[Rule] = None

    def __post_init__(self) -> None:
        if not self.safe and not (self.reason and self.reason.strip()):
            raise ValueError("unsafe verdict requires a reason")
        if not self.safe and self.rule is None:
            raise ValueError("unsafe verdict requires a rule")

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(safe=True)

    @classmethod
    def reject(cls, rule: Rule, reason: str) -> "Verdict":
        return cls(safe=False, reason=reason, rule=rule)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "safe": self.safe,
            "reason": self.reason,
            "rule": self.rule.value if self.rule is not None else None,
        }


__all__ = ["Rule", "Verdict"]
