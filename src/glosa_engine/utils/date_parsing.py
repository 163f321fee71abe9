"""Date parsing utilities for Brazilian and ISO date formats.

Handles the formats commonly found in TISS guides and clinic exports:
ISO (optionally with a time part), numeric DD/MM/YYYY variants and
Portuguese long dates ("15 de março de 2026").
"""

import re
from datetime import date, datetime
from typing import Any, Optional

# Portuguese month names (lowercase) -> month number
_PORTUGUESE_MONTHS = {
    "janeiro": 1, "fevereiro": 2, "março": 3, "marco": 3,
    "abril": 4, "maio": 5, "junho": 6,
    "julho": 7, "agosto": 8, "setembro": 9,
    "outubro": 10, "novembro": 11, "dezembro": 12,
}

# ISO: 2026-01-23 (optionally followed by T or space + time)
_RE_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")

# Named month: "15 de março de 2026", "15 março 2026"
_RE_NAMED_MONTH = re.compile(
    r"^(\d{1,2})\s+(?:de\s+)?([A-Za-zà-ü]+)\s+(?:de\s+)?(\d{4})$",
    re.IGNORECASE,
)

# Numeric with separators: DD/MM/YYYY, DD.MM.YYYY, DD-MM-YYYY
# Optionally followed by space + time part
_RE_NUMERIC = re.compile(r"^(\d{1,2})[./\-](\d{1,2})[./\-](\d{2,4})(?:\s.*)?$")


def _expand_year(year: int) -> int:
    """Expand 2-digit year to 4-digit (assume 2000-2099)."""
    if year < 100:
        return 2000 + year
    return year


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(_expand_year(year), month, day)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse a guide date into a ``date``.

    Supported inputs:
    - ``date`` / ``datetime`` objects (datetimes are truncated to their date)
    - ISO: 2026-01-23, 2026-01-23T10:30:00
    - Brazilian numeric: 23/01/2026, 23.01.2026, 23-01-2026, 23/01/26
    - Portuguese long: "23 de janeiro de 2026"

    Numeric formats always assume DD/MM/YYYY.

    Args:
        value: Date value of any type.

    Returns:
        The parsed date, or None if unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None

    m = _RE_ISO.match(text)
    if m:
        return _build_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _RE_NAMED_MONTH.match(text)
    if m:
        month_num = _PORTUGUESE_MONTHS.get(m.group(2).lower())
        if month_num is not None:
            return _build_date(int(m.group(3)), month_num, int(m.group(1)))
        return None

    m = _RE_NUMERIC.match(text)
    if m:
        return _build_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    return None


def parse_date_to_iso(value: Any) -> Optional[str]:
    """Parse a date in any supported format to ISO YYYY-MM-DD, or None."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed is not None else None


def one_year_before(reference: date) -> date:
    """Same calendar day one year earlier (Feb 29 maps to Feb 28)."""
    try:
        return reference.replace(year=reference.year - 1)
    except ValueError:
        return reference.replace(year=reference.year - 1, day=28)
