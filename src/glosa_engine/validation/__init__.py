"""Schema validation of TISS guides, single and batch."""

from glosa_engine.validation.batch import get_validation_summary, validate_batch
from glosa_engine.validation.schema_validator import (
    REQUIRED_FIELDS,
    SchemaValidator,
    ValidatorConfig,
    validate_guide,
)

__all__ = [
    "REQUIRED_FIELDS",
    "SchemaValidator",
    "ValidatorConfig",
    "get_validation_summary",
    "validate_batch",
    "validate_guide",
]
