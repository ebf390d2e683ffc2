"""e-NCF numbering convention

An electronic fiscal number is a letter prefix, the two-digit document type
and a ten-digit zero-padded sequence, e.g. ``E310000000001``.
"""

import re
from typing import NamedTuple, Optional

NCF_PREFIX = "E"
SEQUENCE_DIGITS = 10
MAX_SEQUENCE = 10 ** SEQUENCE_DIGITS - 1

# Accepts legacy 8 and 9 digit sequences as well
NCF_PATTERN = re.compile(r"^E\d{2}\d{8,10}$")


class ParsedNcf(NamedTuple):
    prefix: str
    document_type: str
    sequence: int


def format_number(document_type: str, sequence: int, prefix: str = NCF_PREFIX) -> str:
    """
    Build the e-NCF for a sequence number

    Raises:
        ValueError: sequence outside 1..MAX_SEQUENCE or malformed type code
    """
    if not isinstance(sequence, int) or sequence < 1 or sequence > MAX_SEQUENCE:
        raise ValueError(f"Sequence number out of range: {sequence}")
    code = str(document_type)
    if len(code) != 2 or not code.isdigit():
        raise ValueError(f"Invalid document type code: {document_type}")
    return f"{prefix}{code}{sequence:0{SEQUENCE_DIGITS}d}"


def is_valid_format(ncf: Optional[str]) -> bool:
    return bool(ncf) and NCF_PATTERN.match(ncf) is not None


def parse_number(ncf: str) -> Optional[ParsedNcf]:
    """Split an e-NCF into its parts, None when the format is invalid"""
    if not is_valid_format(ncf):
        return None
    return ParsedNcf(prefix=ncf[0], document_type=ncf[1:3], sequence=int(ncf[3:]))
