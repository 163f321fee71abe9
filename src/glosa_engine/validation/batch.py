"""Batch schema validation across a sequence of guides."""

import logging
from typing import Any, Iterable, List, Optional

from glosa_engine import fields
from glosa_engine.schemas import ValidationFinding, ValidationResult
from glosa_engine.validation.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)

VALID_BATCH_MESSAGE = "Batch valid, ready to submit"


def _relabel(finding: ValidationFinding, position: int) -> ValidationFinding:
    return finding.model_copy(update={"field": f"Guide #{position} - {finding.field}"})


def validate_batch(
    guides: Iterable[Any],
    validator: Optional[SchemaValidator] = None,
) -> ValidationResult:
    """Validate every guide of a batch and merge the findings.

    Each guide is validated with its own declared type (the ``tipo`` field),
    falling back to the validator's default type. Finding fields are
    prefixed with the 1-based guide position: "Guide #2 - numeroCarteira".

    Args:
        guides: Guides in submission order
        validator: Validator to use; a default one if not provided

    Returns:
        Aggregated ValidationResult, valid iff no guide has errors
    """
    validator = validator or SchemaValidator()
    errors: List[ValidationFinding] = []
    warnings: List[ValidationFinding] = []
    count = 0

    for position, guide in enumerate(guides, start=1):
        count = position
        guide_type = fields.as_mapping(guide).get(fields.GUIDE_TYPE)
        result = validator.validate(guide, guide_type)
        errors.extend(_relabel(f, position) for f in result.errors)
        warnings.extend(_relabel(f, position) for f in result.warnings)

    logger.info(
        f"Batch validation: {count} guides, {len(errors)} errors, {len(warnings)} warnings"
    )
    return ValidationResult.from_findings(errors, warnings)


def get_validation_summary(result: ValidationResult) -> str:
    """Render a one-line, human-readable summary of a validation result."""
    if not result.errors and not result.warnings:
        return VALID_BATCH_MESSAGE

    parts = []
    if result.errors:
        parts.append(f"{len(result.errors)} critical error(s)")
    if result.warnings:
        parts.append(f"{len(result.warnings)} warning(s)")
    return " | ".join(parts)
