"""Risk aggregator producing the unified glosa risk verdict.

Pipeline:
1. Operator rules -> one prediction per fired rule (severity probability)
2. Schema validation errors -> one prediction each (probability 0.85)
3. Risk augmentor -> additional external predictions (best effort)
4. probability = max over predictions, banded into a risk level

Schema warnings are not converted into predictions; only errors feed the
probability set. The verdict probability is the maximum over issues, not a
joint probability.
"""

import logging
from typing import Any, List, Mapping, Optional

from glosa_engine import fields
from glosa_engine.autofix import dotted_cid
from glosa_engine.prediction.augmentor import RiskAugmentor
from glosa_engine.rules.operators import default_registry
from glosa_engine.rules.registry import OperatorRuleRegistry
from glosa_engine.schemas import (
    GlosaPrediction,
    GlosaRisk,
    RiskLevel,
    ValidationFinding,
)
from glosa_engine.validation import schema_validator as sv
from glosa_engine.validation.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR = "UNIMED"

# Fixed probability for schema validation errors
VALIDATION_ERROR_PROBABILITY = 0.85

# Finding codes the auto-fixer (or a reviewer) can correct without new data
AUTO_FIXABLE_CODES = frozenset({
    sv.INVALID_FORMAT,
    sv.INVALID_CID_FORMAT,
    sv.HIGH_VALUE,
})

# (lower bound, level), checked from the top
RISK_BANDS = (
    (0.90, RiskLevel.CRITICAL),
    (0.70, RiskLevel.HIGH),
    (0.40, RiskLevel.MEDIUM),
)

ISSUE_RULE_VIOLATION = "rule_violation"
ISSUE_VALIDATION_ERROR = "validation_error"


def risk_level_for(probability: float) -> RiskLevel:
    """Band a probability: >=0.90 critical, >=0.70 high, >=0.40 medium, else low."""
    for lower_bound, level in RISK_BANDS:
        if probability >= lower_bound:
            return level
    return RiskLevel.LOW


def can_auto_fix(finding: ValidationFinding) -> bool:
    return finding.code in AUTO_FIXABLE_CODES


def suggested_fix(finding: ValidationFinding, guide: Mapping[str, Any]) -> Optional[str]:
    """Suggested correction for a validation finding, if one is known."""
    if finding.code == sv.INVALID_CID_FORMAT:
        return dotted_cid(guide.get(fields.CID_CODE))
    if finding.code == sv.MISSING_REQUIRED_FIELD:
        return f"Fill in required field: {finding.field}"
    return None


class RiskAggregator:
    """Merges rule, schema and external findings into one GlosaRisk."""

    def __init__(
        self,
        validator: Optional[SchemaValidator] = None,
        registry: Optional[OperatorRuleRegistry] = None,
        augmentor: Optional[RiskAugmentor] = None,
        default_operator: str = DEFAULT_OPERATOR,
    ):
        """Initialize the aggregator.

        Args:
            validator: Schema validator. Uses defaults if not provided.
            registry: Operator rule registry. Uses the default table, on the
                validator's clock, if not provided.
            augmentor: Risk augmentor. Augmentation is disabled if not provided.
            default_operator: Operator used when none is given.
        """
        self.validator = validator or SchemaValidator()
        self.registry = registry or default_registry(self.validator.today)
        self.augmentor = augmentor or RiskAugmentor()
        self.default_operator = default_operator

    def rule_predictions(
        self, guide: Mapping[str, Any], operator_name: str
    ) -> List[GlosaPrediction]:
        """One prediction per fired operator rule (never auto-fixable)."""
        return [
            GlosaPrediction(
                issue_type=ISSUE_RULE_VIOLATION,
                description=rule.description,
                glosa_code=rule.code,
                probability=rule.probability,
                auto_fixable=False,
            )
            for rule in self.registry.evaluate(guide, operator_name)
        ]

    def validation_predictions(self, guide: Mapping[str, Any]) -> List[GlosaPrediction]:
        """One prediction per schema validation error of the guide's declared type."""
        result = self.validator.validate(guide, guide.get(fields.GUIDE_TYPE))
        return [
            GlosaPrediction(
                issue_type=ISSUE_VALIDATION_ERROR,
                description=finding.message,
                glosa_code=finding.code,
                probability=VALIDATION_ERROR_PROBABILITY,
                auto_fixable=can_auto_fix(finding),
                suggested_fix=suggested_fix(finding, guide),
            )
            for finding in result.errors
        ]

    def analyze(self, guide: Any, operator_name: Optional[str] = None) -> GlosaRisk:
        """Analyze the glosa risk of a guide for an operator.

        Args:
            guide: Guide mapping
            operator_name: Target operator; the default operator if not provided

        Returns:
            GlosaRisk verdict. Never raises on guide content or provider failure.
        """
        data = fields.as_mapping(guide)
        operator = operator_name or self.default_operator

        issues: List[GlosaPrediction] = []
        issues.extend(self.rule_predictions(data, operator))
        issues.extend(self.validation_predictions(data))
        issues.extend(self.augmentor.augment(data, operator, issues))

        probability = max((i.probability for i in issues), default=0.0)
        risk = GlosaRisk(
            probability=probability,
            risk_level=risk_level_for(probability),
            predicted_issues=issues,
            can_auto_fix=any(i.auto_fixable for i in issues),
            estimated_loss=max(fields.get_guide_value(data), 0.0) * probability,
        )
        logger.debug(
            f"Glosa risk for {operator}: {risk.risk_level.value} "
            f"(p={probability:.2f}, {len(issues)} issue(s))"
        )
        return risk
