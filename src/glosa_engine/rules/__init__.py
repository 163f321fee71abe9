"""Operator-specific glosa rules."""

from glosa_engine.rules.operators import (
    DEFAULT_REGISTRY,
    OPERATOR_RULES,
    build_operator_rules,
    default_registry,
)
from glosa_engine.rules.registry import (
    SEVERITY_PROBABILITY,
    OperatorRule,
    OperatorRuleRegistry,
    normalize_operator,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "OPERATOR_RULES",
    "SEVERITY_PROBABILITY",
    "build_operator_rules",
    "default_registry",
    "OperatorRule",
    "OperatorRuleRegistry",
    "normalize_operator",
]
