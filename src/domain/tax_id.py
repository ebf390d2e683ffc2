"""RNC / Cédula helpers"""

import re
from typing import Optional

TAX_ID_PATTERN = re.compile(r"^\d{9,11}$")


def normalize_tax_id(raw: Optional[str]) -> Optional[str]:
    """Strip dashes and spaces; None when the result is not 9-11 digits"""
    if raw is None:
        return None
    cleaned = re.sub(r"[\s-]", "", str(raw))
    if not TAX_ID_PATTERN.match(cleaned):
        return None
    return cleaned
