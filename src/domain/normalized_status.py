"""Canonical document status

Derived from the certification service's raw (code, processed, message)
triple. Never persisted as authoritative; always recomputed.
"""

from enum import Enum


class NormalizedStatus(str, Enum):
    APPROVED = "APPROVED"
    IN_PROGRESS = "IN_PROGRESS"
    INVALID_NCF = "INVALID_NCF"
    EXPIRED_NCF = "EXPIRED_NCF"
    UNAUTHORIZED_TAXID = "UNAUTHORIZED_TAXID"
    INVALID_DATA = "INVALID_DATA"
    NOT_FOUND = "NOT_FOUND"
    REJECTED = "REJECTED"
    VOIDED = "VOIDED"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"
