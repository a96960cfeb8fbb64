"""Guardrail rule toggles and thresholds.

The rule list accepted on the command line / in settings is a tiny
language: ``all``, ``none`` or a comma separated list of rule names.
Cardinality thresholds are supplied separately and merged afterwards.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from promguard.config import Settings

DISALLOW_EXPLICIT_NAME_LABEL = "disallow-explicit-name-label"
REQUIRE_LABEL_MATCHER = "require-label-matcher"
DISALLOW_BLANKET_REGEX = "disallow-blanket-regex"

RULE_NAMES = (
    DISALLOW_EXPLICIT_NAME_LABEL,
    REQUIRE_LABEL_MATCHER,
    DISALLOW_BLANKET_REGEX,
)

DEFAULT_MAX_METRIC_CARDINALITY = 20000
DEFAULT_MAX_LABEL_CARDINALITY = 500


class GuardrailsConfigError(ValueError):
    """Raised for an unknown rule name or an invalid threshold."""


@dataclass(frozen=True)
class GuardrailsConfig:
    disallow_explicit_name_label: bool = False
    require_label_matcher: bool = False
    disallow_blanket_regex: bool = False
    # 0 disables the metric cardinality check
    max_metric_cardinality: int = 0
    # 0 rejects every blanket regex when disallow_blanket_regex is set
    max_label_cardinality: int = 0

    def __post_init__(self) -> None:
        for field_name in ("max_metric_cardinality", "max_label_cardinality"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise GuardrailsConfigError(
                    f"{field_name} must be a non-negative integer, got {value!r}"
                )

    @classmethod
    def defaults(cls) -> "GuardrailsConfig":
        return cls(
            disallow_explicit_name_label=True,
            require_label_matcher=True,
            disallow_blanket_regex=True,
            max_metric_cardinality=DEFAULT_MAX_METRIC_CARDINALITY,
            max_label_cardinality=DEFAULT_MAX_LABEL_CARDINALITY,
        )

    def with_thresholds(
        self,
        *,
        max_metric_cardinality: Optional[int] = None,
        max_label_cardinality: Optional[int] = None,
    ) -> "GuardrailsConfig":
        changes: Dict[str, int] = {}
        if max_metric_cardinality is not None:
            changes["max_metric_cardinality"] = max_metric_cardinality
        if max_label_cardinality is not None:
            changes["max_label_cardinality"] = max_label_cardinality
        return replace(self, **changes) if changes else self

    def enabled_rules(self) -> List[str]:
        flags = {
            DISALLOW_EXPLICIT_NAME_LABEL: self.disallow_explicit_name_label,
            REQUIRE_LABEL_MATCHER: self.require_label_matcher,
            DISALLOW_BLANKET_REGEX: self.disallow_blanket_regex,
        }
        return [name for name in RULE_NAMES if flags[name]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_guardrails(value: Optional[str]) -> Optional[GuardrailsConfig]:
    """Parse a rule list.

    ``None``, blank and ``"none"`` disable guardrails and return ``None``.
    ``"all"`` returns :meth:`GuardrailsConfig.defaults`. Anything else must
    be a comma separated list of rule names; thresholds stay at 0 until
    merged with :meth:`GuardrailsConfig.with_thresholds`.
    """
    text = (value or "").strip().lower()
    if text in ("", "none"):
        return None
    if text == "all":
        return GuardrailsConfig.defaults()

    enabled = set()
    for raw in text.split(","):
        name = raw.strip()
        if not name:
            continue
        if name not in RULE_NAMES:
            raise GuardrailsConfigError(
                f"unknown guardrail: {name!r} (valid options: {', '.join(RULE_NAMES)})"
            )
        enabled.add(name)

    return GuardrailsConfig(
        disallow_explicit_name_label=DISALLOW_EXPLICIT_NAME_LABEL in enabled,
        require_label_matcher=REQUIRE_LABEL_MATCHER in enabled,
        disallow_blanket_regex=DISALLOW_BLANKET_REGEX in enabled,
    )


def load_guardrails(
    settings: "Settings", rules: Optional[str] = None
) -> Optional[GuardrailsConfig]:
    """Parse ``rules`` (default ``settings.GUARDRAILS``) and merge the threshold settings."""
    parsed = parse_guardrails(settings.GUARDRAILS if rules is None else rules)
    if parsed is None:
        return None
    return parsed.with_thresholds(
        max_metric_cardinality=settings.GUARDRAILS_MAX_METRIC_CARDINALITY,
        max_label_cardinality=settings.GUARDRAILS_MAX_LABEL_CARDINALITY,
    )


__all__ = [
    "DEFAULT_MAX_LABEL_CARDINALITY",
    "DEFAULT_MAX_METRIC_CARDINALITY",
    "DISALLOW_BLANKET_REGEX",
    "DISALLOW_EXPLICIT_NAME_LABEL",
    "GuardrailsConfig",
    "GuardrailsConfigError",
    "REQUIRE_LABEL_MATCHER",
    "RULE_NAMES",
    "load_guardrails",
    "parse_guardrails",
]
