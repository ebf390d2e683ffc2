from .base import BaseModel, utc_now
from .document_type import DocumentType, DocumentTypeRule, TotalsLayout, get_rule, requires_expiration
from .normalized_status import NormalizedStatus
from .sequence_range import SequenceRange, SequenceStatus, derive_status
from .simplified_invoice import SimplifiedInvoice

__all__ = [
    "BaseModel",
    "utc_now",
    "DocumentType",
    "DocumentTypeRule",
    "TotalsLayout",
    "get_rule",
    "requires_expiration",
    "NormalizedStatus",
    "SequenceRange",
    "SequenceStatus",
    "derive_status",
    "SimplifiedInvoice",
]
