"""Status normalization

The certification service reports document status through a mix of a
``procesado`` flag, a numeric ``codigo`` and free-text ``estado``/``mensaje``.
``normalize`` maps that to NormalizedStatus using an explicit decision table,
first matching row wins:

1. processed and code in {0, 1}           -> APPROVED
2. processed and code > 1                 -> code table (unmapped -> ERROR)
3. keyword groups on the upper-cased text -> first matching group
4. any code, processed or not             -> code table (unmapped -> ERROR)
5. otherwise                              -> UNKNOWN
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from src.domain.normalized_status import NormalizedStatus

logger = logging.getLogger(__name__)

SUCCESS_CODES = frozenset({0, 1})


def _codes(status: NormalizedStatus, *codes: int) -> Dict[int, NormalizedStatus]:
    return {code: status for code in codes}


CODE_TABLE: Dict[int, NormalizedStatus] = {
    **_codes(NormalizedStatus.APPROVED, 0, 1),
    **_codes(NormalizedStatus.IN_PROGRESS, 2, 4, 10, 15, 95, 99),
    **_codes(NormalizedStatus.INVALID_NCF, 108),       # NCF already submitted
    **_codes(NormalizedStatus.EXPIRED_NCF, 109),       # NCF expired or out of range
    **_codes(NormalizedStatus.UNAUTHORIZED_TAXID, 110),
    **_codes(NormalizedStatus.INVALID_DATA, 111, 112, 113, 114),
    **_codes(NormalizedStatus.NOT_FOUND, 120),
    **_codes(NormalizedStatus.REJECTED, 200, 201, 202, 203, 613, 634),
    **_codes(NormalizedStatus.VOIDED, 300, 301),
}


def _any(*words: str) -> Callable[[str], bool]:
    return lambda text: any(word in text for word in words)


KEYWORD_RULES: List[Tuple[NormalizedStatus, Callable[[str], bool]]] = [
    (
        NormalizedStatus.APPROVED,
        lambda text: text == "OK" or _any(
            "APROBADA", "ACEPTADA", "ACEPTADO", "PROCESADA", "EXITOSA", "SUCCESS"
        )(text),
    ),
    (NormalizedStatus.IN_PROGRESS, _any("PROCESO", "PROCESANDO", "VALIDANDO", "PENDING")),
    (
        NormalizedStatus.INVALID_NCF,
        lambda text: "NCF" in text and _any("INVALIDO", "USADO")(text),
    ),
    (
        NormalizedStatus.UNAUTHORIZED_TAXID,
        lambda text: "RNC" in text and "NO_AUTORIZADO" in text,
    ),
    (NormalizedStatus.REJECTED, _any("RECHAZADA", "ERROR", "FAILED", "INVALID")),
    (NormalizedStatus.VOIDED, _any("ANULADA", "CANCELADA", "CANCELLED")),
]


def extract_code(payload: Optional[Mapping[str, Any]]) -> Optional[int]:
    """``codigo`` as an int; numeric strings are accepted, anything else is None"""
    if not payload:
        return None
    value = payload.get("codigo")
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def is_processed(payload: Optional[Mapping[str, Any]]) -> bool:
    if not payload:
        return False
    value = payload.get("procesado")
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def extract_raw_status(payload: Optional[Mapping[str, Any]]) -> str:
    """Free-text status: ``estado``, else ``status``, else ``mensaje``"""
    if not payload:
        return ""
    for key in ("estado", "status", "mensaje"):
        value = payload.get(key)
        if value:
            return str(value)
    return ""


def _from_code_table(code: int) -> NormalizedStatus:
    status = CODE_TABLE.get(code)
    if status is None:
        logger.warning(f"Unmapped certification status code: {code}")
        return NormalizedStatus.ERROR
    return status


def normalize(raw_status: Optional[str], raw_payload: Optional[Mapping[str, Any]]) -> NormalizedStatus:
    code = extract_code(raw_payload)
    processed = is_processed(raw_payload)

    if processed and code in SUCCESS_CODES:
        return NormalizedStatus.APPROVED

    if processed and code is not None and code > 1:
        return _from_code_table(code)

    text = (raw_status or "").strip().upper()
    if text:
        for status, matches in KEYWORD_RULES:
            if matches(text):
                return status

    if code is not None:
        return _from_code_table(code)

    return NormalizedStatus.UNKNOWN
