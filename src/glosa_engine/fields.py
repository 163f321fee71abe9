"""TISS guide field names and typed accessors.

Guides are plain mappings keyed by the TISS field names used across the
clinic system. Accessors here are total: a non-mapping guide behaves like an
empty one.
"""

from datetime import date
from typing import Any, Mapping, Optional

from glosa_engine.normalizers import digits_only, safe_float, safe_string
from glosa_engine.utils.date_parsing import parse_date

# Identification
GUIDE_NUMBER = "numeroGuiaPrestador"
GUIDE_NUMBER_ALT = "numeroGuia"
REQUEST_GUIDE_NUMBER = "numeroGuiaSolicitacao"
AUTHORIZATION_NUMBER = "numeroAutorizacao"
GUIDE_TYPE = "tipo"

# Beneficiary
CARD_NUMBER = "numeroCarteira"
BENEFICIARY_NAME = "nomeBeneficiario"

# Coding
PROCEDURE_CODE = "codigoProcedimento"
CID_CODE = "codigoCID"

# Values
PROCEDURE_VALUE = "valorProcedimento"
TOTAL_VALUE = "valorTotal"

# Dates
SERVICE_DATE = "dataAtendimento"
EXECUTION_DATE = "dataRealizacao"

# Professionals
EXECUTING_CRM = "numeroConselhoExecutante"

GUIDE_NUMBER_FIELDS = (GUIDE_NUMBER, GUIDE_NUMBER_ALT)
MONETARY_FIELDS = (PROCEDURE_VALUE, TOTAL_VALUE)
SERVICE_DATE_FIELDS = (SERVICE_DATE, EXECUTION_DATE)


def as_mapping(guide: Any) -> Mapping[str, Any]:
    """Return ``guide`` if it is a mapping, otherwise an empty dict."""
    return guide if isinstance(guide, Mapping) else {}


def get_text(guide: Any, field: str) -> str:
    """Stripped string value of a field ("" when absent)."""
    return safe_string(as_mapping(guide).get(field))


def get_digits(guide: Any, field: str) -> str:
    """Digits of a field value ("" when absent)."""
    return digits_only(as_mapping(guide).get(field))


def get_service_date(guide: Any) -> Optional[date]:
    """First parseable service date of the guide, if any."""
    data = as_mapping(guide)
    for field in SERVICE_DATE_FIELDS:
        parsed = parse_date(data.get(field))
        if parsed is not None:
            return parsed
    return None


def get_guide_value(guide: Any) -> float:
    """Monetary value of the guide: procedure value, else total value, else 0.

    A zero or negative amount falls through to the next field.
    """
    data = as_mapping(guide)
    for field in MONETARY_FIELDS:
        value = safe_float(data.get(field))
        if value is not None and value > 0:
            return value
    return 0.0
