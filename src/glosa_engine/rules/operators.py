"""Default operator rule table.

Each entry encodes a rejection pattern observed empirically for one payer.
Predicates read the guide through the total accessors in
``glosa_engine.fields`` so they never raise on malformed guides.
"""

from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

from glosa_engine import fields
from glosa_engine.normalizers import safe_float
from glosa_engine.rules.registry import GuidePredicate, OperatorRule, OperatorRuleRegistry
from glosa_engine.schemas import GuideType, RuleSeverity
from glosa_engine.utils.date_parsing import one_year_before
from glosa_engine.validation.schema_validator import CRM_PATTERN

Clock = Callable[[], date]

# Unimed fee-table ceiling for a standard office consultation
UNIMED_CONSULTATION_CODE = "10101012"
UNIMED_CONSULTATION_CEILING = 500.0

# TUSS prefix for orthopedic procedures / CID chapter for respiratory diseases
ORTHOPEDIC_PROCEDURE_PREFIX = "407"
RESPIRATORY_CID_PREFIX = "J"

MIN_CARD_DIGITS = 16

# Procedures Bradesco only pays with a prior-authorization number
BRADESCO_PRIOR_AUTH_PROCEDURES = frozenset({"40813010", "40815013"})


def _unimed_consultation_above_table(guide: Mapping[str, Any]) -> bool:
    if fields.get_digits(guide, fields.PROCEDURE_CODE) != UNIMED_CONSULTATION_CODE:
        return False
    value = safe_float(guide.get(fields.PROCEDURE_VALUE))
    return value is not None and value > UNIMED_CONSULTATION_CEILING


def _orthopedic_procedure_with_respiratory_cid(guide: Mapping[str, Any]) -> bool:
    procedure = fields.get_digits(guide, fields.PROCEDURE_CODE)
    cid = fields.get_text(guide, fields.CID_CODE).upper()
    return procedure.startswith(ORTHOPEDIC_PROCEDURE_PREFIX) and cid.startswith(
        RESPIRATORY_CID_PREFIX
    )


def _card_missing_or_short(guide: Mapping[str, Any]) -> bool:
    return len(fields.get_digits(guide, fields.CARD_NUMBER)) < MIN_CARD_DIGITS


def _sadt_without_request_guide(guide: Mapping[str, Any]) -> bool:
    guide_type = GuideType.parse(guide.get(fields.GUIDE_TYPE))
    return guide_type == GuideType.ANCILLARY_SERVICE and not fields.get_text(
        guide, fields.REQUEST_GUIDE_NUMBER
    )


def _prior_auth_procedure_without_authorization(guide: Mapping[str, Any]) -> bool:
    procedure = fields.get_digits(guide, fields.PROCEDURE_CODE)
    return procedure in BRADESCO_PRIOR_AUTH_PROCEDURES and not fields.get_text(
        guide, fields.AUTHORIZATION_NUMBER
    )


def _executing_crm_invalid(guide: Mapping[str, Any]) -> bool:
    crm = guide.get(fields.EXECUTING_CRM)
    return not isinstance(crm, str) or not CRM_PATTERN.match(crm)


def _service_date_in_future(today: Clock) -> GuidePredicate:
    def predicate(guide: Mapping[str, Any]) -> bool:
        service_date = fields.get_service_date(guide)
        return service_date is not None and service_date > today()

    return predicate


def _service_date_stale(today: Clock) -> GuidePredicate:
    def predicate(guide: Mapping[str, Any]) -> bool:
        service_date = fields.get_service_date(guide)
        return service_date is not None and service_date < one_year_before(today())

    return predicate


def build_operator_rules(today: Optional[Clock] = None) -> Dict[str, List[OperatorRule]]:
    """Default rule table; date rules compare against ``today()``."""
    today = today or date.today
    return {
        "UNIMED": [
            OperatorRule(
                code="UNI_001",
                description="Consultation value above the Unimed fee table",
                severity=RuleSeverity.HIGH,
                predicate=_unimed_consultation_above_table,
            ),
            OperatorRule(
                code="UNI_002",
                description="CID-10 incompatible with procedure (respiratory CID on orthopedic procedure)",
                severity=RuleSeverity.CRITICAL,
                predicate=_orthopedic_procedure_with_respiratory_cid,
            ),
            OperatorRule(
                code="UNI_003",
                description="Guide without a valid beneficiary card number",
                severity=RuleSeverity.CRITICAL,
                predicate=_card_missing_or_short,
            ),
        ],
        "BRADESCO": [
            OperatorRule(
                code="BRA_001",
                description="Missing request guide (SADT)",
                severity=RuleSeverity.CRITICAL,
                predicate=_sadt_without_request_guide,
            ),
            OperatorRule(
                code="BRA_002",
                description="Procedure not previously authorized",
                severity=RuleSeverity.CRITICAL,
                predicate=_prior_auth_procedure_without_authorization,
            ),
        ],
        "SULAMERICA": [
            OperatorRule(
                code="SUL_001",
                description="Invalid executing professional CRM",
                severity=RuleSeverity.HIGH,
                predicate=_executing_crm_invalid,
            ),
            OperatorRule(
                code="SUL_002",
                description="Service date in the future",
                severity=RuleSeverity.CRITICAL,
                predicate=_service_date_in_future(today),
            ),
            OperatorRule(
                code="SUL_003",
                description="Service date older than one year (late submission)",
                severity=RuleSeverity.MEDIUM,
                predicate=_service_date_stale(today),
            ),
        ],
    }


def default_registry(today: Optional[Clock] = None) -> OperatorRuleRegistry:
    """Registry over the default rule table, sharing the caller's clock."""
    return OperatorRuleRegistry(build_operator_rules(today))


OPERATOR_RULES = build_operator_rules()

DEFAULT_REGISTRY = OperatorRuleRegistry(OPERATOR_RULES)
