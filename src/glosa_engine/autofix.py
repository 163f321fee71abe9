"""Auto-fixer for safely correctable guide defects.

Applies deterministic, idempotent normalizations and reports each change.
The input guide is never mutated; a new dict is returned. Fields that
cannot be transformed safely are left untouched.

Fixes, applied in order:
1. Trim leading/trailing whitespace from every string field
2. Insert the missing CID-10 separator ("J069" -> "J06.9")
3. Strip non-digit characters from the beneficiary card number
"""

import logging
from typing import Any, Dict, List, Optional

from glosa_engine import fields
from glosa_engine.schemas import AutoFixResult

logger = logging.getLogger(__name__)

UNDOTTED_CID_LENGTH = 4


def dotted_cid(cid: Any) -> Optional[str]:
    """Return ``cid`` with the separator inserted, or None if not applicable.

    Only 4-character codes without a separator qualify: "J069" -> "J06.9".
    """
    if not isinstance(cid, str) or "." in cid or len(cid) != UNDOTTED_CID_LENGTH:
        return None
    return f"{cid[:3]}.{cid[3:]}"


def auto_fix_guide(guide: Any) -> AutoFixResult:
    """Apply all safe fixes to a copy of ``guide``.

    Args:
        guide: Guide mapping (anything else yields an empty fixed guide)

    Returns:
        AutoFixResult with the fixed copy and human-readable changes.
        Running it again on ``fixed`` yields the same guide and no changes.
    """
    fixed: Dict[str, Any] = dict(fields.as_mapping(guide))
    changes: List[str] = []

    for key, value in list(fixed.items()):
        if isinstance(value, str):
            trimmed = value.strip()
            if trimmed != value:
                fixed[key] = trimmed
                changes.append(f"Trimmed whitespace: {key}")

    cid = fixed.get(fields.CID_CODE)
    dotted = dotted_cid(cid)
    if dotted is not None:
        fixed[fields.CID_CODE] = dotted
        changes.append(f"CID-10 formatted: {cid} -> {dotted}")

    card = fixed.get(fields.CARD_NUMBER)
    if isinstance(card, str):
        digits = fields.get_digits(fixed, fields.CARD_NUMBER)
        if digits != card:
            fixed[fields.CARD_NUMBER] = digits
            changes.append(f"Card number normalized: {card} -> {digits}")

    if changes:
        logger.debug(f"Auto-fix applied {len(changes)} change(s)")
    return AutoFixResult(fixed=fixed, changes=changes)
