"""Total value coercion helpers for loosely-typed guide fields.

Guides arrive from XML parsers, spreadsheets and manual forms, so any field
may hold a string, a number, a list or nothing at all. These helpers never
raise; they return a default when a value cannot be interpreted.
"""

import math
import re
from typing import Any, Optional

_RE_NON_DIGIT = re.compile(r"\D")
_RE_UNIT_SUFFIX = re.compile(r"\s+[a-zA-Z%]+\.?$")


def safe_string(value: Any) -> str:
    """
    Convert any value to a stripped string.

    Args:
        value: Any field value (str, list, number, None, etc.)

    Returns:
        String representation of the value, "" for None or empty lists
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            return ""
        if len(value) == 1:
            return str(value[0]).strip()
        return " ".join(str(v) for v in value).strip()
    return str(value).strip()


def safe_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Convert a monetary value to float safely.

    Handles Brazilian formats ("R$ 1.234,56", "249,77"), US formats
    ("1,234.50") and plain numbers. Booleans, NaN and infinities are
    treated as non-numeric.

    Args:
        value: Any field value
        default: Value returned when conversion fails

    Returns:
        Float representation of the value, or default if conversion fails
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else default
    if not isinstance(value, str):
        return default

    cleaned = value.strip()
    cleaned = _RE_UNIT_SUFFIX.sub("", cleaned)
    for currency in ("R$", "BRL"):
        cleaned = cleaned.replace(currency, "")
    cleaned = cleaned.replace(" ", "").strip()
    if not cleaned:
        return default

    # "1.234,50" -> 1234.50 (dot=thousands, comma=decimal)
    # "249,77"   -> 249.77
    # "1,234.50" -> 1234.50 (US)
    has_dot = "." in cleaned
    has_comma = "," in cleaned
    if has_dot and has_comma:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif has_comma:
        cleaned = cleaned.replace(",", ".")

    try:
        number = float(cleaned)
    except ValueError:
        return default
    return number if math.isfinite(number) else default


def digits_only(value: Any) -> str:
    """Strip every non-digit character from the string form of ``value``."""
    return _RE_NON_DIGIT.sub("", safe_string(value))


def is_blank(value: Any) -> bool:
    """True when a value counts as absent: None, blank string or empty collection."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False
