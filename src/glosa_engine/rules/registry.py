"""Operator rule registry for payer-specific glosa patterns.

Rules are pure predicates grouped by operator key. The registry is an
immutable mapping; supporting a new operator means registering a new tuple
of rules, never touching the evaluation code.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from glosa_engine.schemas import RuleSeverity

logger = logging.getLogger(__name__)

# Fixed severity-to-probability table (empirically tuned, not learned)
SEVERITY_PROBABILITY: Mapping[RuleSeverity, float] = MappingProxyType(
    {
        RuleSeverity.CRITICAL: 0.95,
        RuleSeverity.HIGH: 0.75,
        RuleSeverity.MEDIUM: 0.50,
    }
)

GuidePredicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class OperatorRule:
    """A payer-specific rejection pattern.

    The rule fires when ``predicate(guide)`` is true, predicting the
    rejection reason identified by ``code``.
    """

    code: str
    description: str
    severity: RuleSeverity
    predicate: GuidePredicate

    @property
    def probability(self) -> float:
        """Glosa probability implied by the rule's severity tier."""
        return SEVERITY_PROBABILITY[self.severity]

    def fires(self, guide: Mapping[str, Any]) -> bool:
        """Evaluate the rule; a predicate that raises counts as not fired."""
        try:
            return bool(self.predicate(guide))
        except Exception as e:
            logger.warning(f"Operator rule {self.code} failed to evaluate: {e}")
            return False


def normalize_operator(operator_name: Optional[str]) -> str:
    """Canonical registry key for an operator name ("  Unimed " -> "UNIMED")."""
    return (operator_name or "").strip().upper()


class OperatorRuleRegistry:
    """Read-only mapping from operator key to its rules."""

    def __init__(self, rules: Optional[Mapping[str, Iterable[OperatorRule]]] = None):
        """Initialize the registry.

        Args:
            rules: Mapping of operator name to rules. Keys are normalized.
        """
        table: Dict[str, Tuple[OperatorRule, ...]] = {}
        for operator, operator_rules in (rules or {}).items():
            key = normalize_operator(operator)
            table[key] = table.get(key, ()) + tuple(operator_rules)
        self._rules: Mapping[str, Tuple[OperatorRule, ...]] = MappingProxyType(table)

    @property
    def operators(self) -> List[str]:
        """Registered operator keys, sorted."""
        return sorted(self._rules)

    def rules_for(self, operator_name: Optional[str]) -> List[OperatorRule]:
        """Rules registered for an operator (empty for unknown operators)."""
        return list(self._rules.get(normalize_operator(operator_name), ()))

    def evaluate(
        self, guide: Mapping[str, Any], operator_name: Optional[str]
    ) -> List[OperatorRule]:
        """Return the rules of ``operator_name`` that fire on ``guide``.

        Rules are independent, so evaluation order does not affect the result.
        """
        data = guide if isinstance(guide, Mapping) else {}
        fired = [rule for rule in self.rules_for(operator_name) if rule.fires(data)]
        if fired:
            logger.debug(
                f"Operator {normalize_operator(operator_name)}: "
                f"{len(fired)} rule(s) fired ({', '.join(r.code for r in fired)})"
            )
        return fired

    def with_rules(
        self, operator_name: str, rules: Iterable[OperatorRule]
    ) -> "OperatorRuleRegistry":
        """Return a new registry with ``rules`` added for ``operator_name``."""
        merged: Dict[str, List[OperatorRule]] = {k: list(v) for k, v in self._rules.items()}
        merged.setdefault(normalize_operator(operator_name), []).extend(rules)
        return OperatorRuleRegistry(merged)
