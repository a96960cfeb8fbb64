"""Query safety guardrails for PromQL."""

from .config import GuardrailsConfig, GuardrailsConfigError, load_guardrails, parse_guardrails
from .engine import validate, validate_sync
from .parser import PromQLParser, QueryParser, QuerySyntaxError
from .verdict import Rule, Verdict

__all__ = [
    "GuardrailsConfig",
    "GuardrailsConfigError",
    "PromQLParser",
    "QueryParser",
    "QuerySyntaxError",
    "Rule",
    "Verdict",
    "load_guardrails",
    "parse_guardrails",
    "validate",
    "validate_sync",
]
