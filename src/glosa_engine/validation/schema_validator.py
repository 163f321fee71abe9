"""Schema validation for TISS guides.

Checks a single guide against the required-field set of its guide type and
the field-format rules of the TISS standard. Every check is total: missing
or wrong-typed fields fail the relevant check instead of raising.

Checks:
1. Required fields for the guide type -> error
2. Guide number longer than 20 characters -> error
3. Card number outside 16-20 digits -> error
4. CID-10 not in the dotted pattern (e.g. J06.9) -> warning
5. Procedure code not 8 digits (TUSS table) -> warning
6. Service date in the future / unparseable -> error; older than a year -> warning
7. Monetary value non-numeric or <= 0 -> error; above threshold -> warning
8. Executing professional's CRM not digits + UF -> warning
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from glosa_engine import fields
from glosa_engine.normalizers import digits_only, is_blank, safe_float, safe_string
from glosa_engine.schemas import (
    FindingSeverity,
    GuideType,
    ValidationFinding,
    ValidationResult,
)
from glosa_engine.utils.date_parsing import one_year_before, parse_date

logger = logging.getLogger(__name__)

# Finding codes
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
INVALID_FORMAT = "INVALID_FORMAT"
INVALID_CARD_NUMBER = "INVALID_CARD_NUMBER"
INVALID_CID_FORMAT = "INVALID_CID_FORMAT"
INVALID_PROCEDURE_CODE = "INVALID_PROCEDURE_CODE"
INVALID_DATE = "INVALID_DATE"
FUTURE_DATE = "FUTURE_DATE"
OLD_DATE = "OLD_DATE"
INVALID_VALUE = "INVALID_VALUE"
HIGH_VALUE = "HIGH_VALUE"
INVALID_CRM_FORMAT = "INVALID_CRM_FORMAT"

# TISS 3.0.4 required fields by guide type
REQUIRED_FIELDS: Dict[GuideType, Tuple[str, ...]] = {
    GuideType.CONSULTATION: (
        fields.GUIDE_NUMBER,
        fields.SERVICE_DATE,
        fields.PROCEDURE_CODE,
        fields.PROCEDURE_VALUE,
        fields.BENEFICIARY_NAME,
        fields.CARD_NUMBER,
    ),
    GuideType.ANCILLARY_SERVICE: (
        fields.GUIDE_NUMBER,
        fields.EXECUTION_DATE,
        fields.PROCEDURE_CODE,
        "quantidadeSolicitada",
        fields.TOTAL_VALUE,
        fields.CARD_NUMBER,
    ),
    GuideType.PRIOR_AUTHORIZATION_REQUEST: (
        fields.GUIDE_NUMBER_ALT,
        "dataSolicitacao",
        "nomeProfissionalSolicitante",
        "numeroConselhoSolicitante",
        "procedimentosSolicitados",
    ),
    GuideType.HOSPITALIZATION: (
        fields.GUIDE_NUMBER_ALT,
        "dataInternacao",
        "tipoAcomodacao",
        "diariasAutorizadas",
        fields.CARD_NUMBER,
    ),
}

MAX_GUIDE_NUMBER_LENGTH = 20
CARD_DIGITS_RANGE = (16, 20)
PROCEDURE_CODE_DIGITS = 8
DEFAULT_HIGH_VALUE_THRESHOLD = 10000.0

CID_PATTERN = re.compile(r"^[A-Z]\d{2}(\.\d{1,2})?$")
CRM_PATTERN = re.compile(r"^\d{4,7}[A-Z]{2}$")


@dataclass
class ValidatorConfig:
    """Configuration for the schema validator."""

    # Values above this are flagged as likely data-entry mistakes
    high_value_threshold: float = DEFAULT_HIGH_VALUE_THRESHOLD

    # Guide type used when the caller declares none or an unknown one
    default_guide_type: GuideType = GuideType.CONSULTATION

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ValidatorConfig":
        """Create config from dictionary."""
        return cls(
            high_value_threshold=float(
                config.get("high_value_threshold", DEFAULT_HIGH_VALUE_THRESHOLD)
            ),
            default_guide_type=GuideType.parse(config.get("default_guide_type")),
        )


class _Findings:
    """Accumulates errors and warnings for one guide."""

    def __init__(self) -> None:
        self.errors: List[ValidationFinding] = []
        self.warnings: List[ValidationFinding] = []

    def error(self, field: str, code: str, message: str) -> None:
        self.errors.append(
            ValidationFinding(
                field=field, code=code, message=message, severity=FindingSeverity.ERROR
            )
        )

    def warning(self, field: str, code: str, message: str) -> None:
        self.warnings.append(
            ValidationFinding(
                field=field, code=code, message=message, severity=FindingSeverity.WARNING
            )
        )

    def result(self) -> ValidationResult:
        return ValidationResult.from_findings(self.errors, self.warnings)


class SchemaValidator:
    """Validates TISS guides against required fields and field formats."""

    def __init__(
        self,
        config: Optional[ValidatorConfig] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """Initialize the validator.

        Args:
            config: Validator configuration. Uses defaults if not provided.
            today: Clock returning the current date (injectable for tests).
        """
        self.config = config or ValidatorConfig()
        self._today = today or date.today

    @property
    def today(self) -> Callable[[], date]:
        """Clock the date checks compare against."""
        return self._today

    def required_fields(self, guide_type: Any) -> Tuple[str, ...]:
        """Required fields for a guide type (unknown types use the default type)."""
        resolved = GuideType.parse(guide_type, self.config.default_guide_type)
        return REQUIRED_FIELDS[resolved]

    def validate(self, guide: Any, guide_type: Any = None) -> ValidationResult:
        """Validate a single guide.

        Args:
            guide: Guide mapping (anything else is treated as an empty guide)
            guide_type: Declared guide type; defaults to the configured type

        Returns:
            ValidationResult with errors and warnings
        """
        data = fields.as_mapping(guide)
        findings = _Findings()

        self._check_required(data, guide_type, findings)
        self._check_guide_number(data, findings)
        self._check_card_number(data, findings)
        self._check_cid(data, findings)
        self._check_procedure_code(data, findings)
        self._check_service_dates(data, findings)
        self._check_values(data, findings)
        self._check_crm(data, findings)

        result = findings.result()
        logger.debug(
            "Validated guide %s: %d errors, %d warnings",
            safe_string(data.get(fields.GUIDE_NUMBER)) or "<no number>",
            len(result.errors),
            len(result.warnings),
        )
        return result

    def _check_required(self, data, guide_type, findings: _Findings) -> None:
        for field in self.required_fields(guide_type):
            if is_blank(data.get(field)):
                findings.error(
                    field, MISSING_REQUIRED_FIELD, f'Required field "{field}" is missing'
                )

    def _check_guide_number(self, data, findings: _Findings) -> None:
        for field in fields.GUIDE_NUMBER_FIELDS:
            value = data.get(field)
            if value is None:
                continue
            text = value if isinstance(value, str) else safe_string(value)
            if len(text) > MAX_GUIDE_NUMBER_LENGTH:
                findings.error(
                    field,
                    INVALID_FORMAT,
                    f"Guide number exceeds {MAX_GUIDE_NUMBER_LENGTH} characters",
                )

    def _check_card_number(self, data, findings: _Findings) -> None:
        value = data.get(fields.CARD_NUMBER)
        if is_blank(value):
            return
        low, high = CARD_DIGITS_RANGE
        if not low <= len(digits_only(value)) <= high:
            findings.error(
                fields.CARD_NUMBER,
                INVALID_CARD_NUMBER,
                f"Invalid card number (must have {low}-{high} digits)",
            )

    def _check_cid(self, data, findings: _Findings) -> None:
        value = data.get(fields.CID_CODE)
        if is_blank(value):
            return
        if not isinstance(value, str) or not CID_PATTERN.match(value):
            findings.warning(
                fields.CID_CODE,
                INVALID_CID_FORMAT,
                f'CID-10 "{safe_string(value)}" does not follow the standard pattern (e.g. J06.9)',
            )

    def _check_procedure_code(self, data, findings: _Findings) -> None:
        value = data.get(fields.PROCEDURE_CODE)
        if is_blank(value):
            return
        if len(digits_only(value)) != PROCEDURE_CODE_DIGITS:
            findings.warning(
                fields.PROCEDURE_CODE,
                INVALID_PROCEDURE_CODE,
                f"Procedure code must have {PROCEDURE_CODE_DIGITS} digits (TUSS table)",
            )

    def _check_service_dates(self, data, findings: _Findings) -> None:
        today = self._today()
        for field in fields.SERVICE_DATE_FIELDS:
            value = data.get(field)
            if is_blank(value):
                continue
            service_date = parse_date(value)
            if service_date is None:
                findings.error(
                    field, INVALID_DATE, f'Service date "{safe_string(value)}" is not a valid date'
                )
                continue
            if service_date > today:
                findings.error(field, FUTURE_DATE, "Service date cannot be in the future")
            elif service_date < one_year_before(today):
                findings.warning(
                    field, OLD_DATE, "Service date older than one year may be rejected"
                )

    def _check_values(self, data, findings: _Findings) -> None:
        for field in fields.MONETARY_FIELDS:
            if field not in data or data[field] is None:
                continue
            value = safe_float(data[field])
            if value is None or value <= 0:
                findings.error(field, INVALID_VALUE, "Value must be a number greater than zero")
            elif value > self.config.high_value_threshold:
                findings.warning(
                    field,
                    HIGH_VALUE,
                    f"Unusually high value (R$ {value:,.2f}), check for typing mistakes",
                )

    def _check_crm(self, data, findings: _Findings) -> None:
        value = data.get(fields.EXECUTING_CRM)
        if is_blank(value):
            return
        if not isinstance(value, str) or not CRM_PATTERN.match(value):
            findings.warning(
                fields.EXECUTING_CRM,
                INVALID_CRM_FORMAT,
                "CRM must be digits followed by the state (e.g. 123456SP)",
            )


_default_validator = SchemaValidator()


def validate_guide(guide: Any, guide_type: Any = None) -> ValidationResult:
    """Validate a guide with the default validator configuration."""
    return _default_validator.validate(guide, guide_type)
