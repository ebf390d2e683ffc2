"""Data Transfer Objects for Certification Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from src.app.services.qr_renderer import QrFormat
from src.domain.normalized_status import NormalizedStatus


class InitialStatusDTO(BaseModel):
    """
    Result of the status query performed right after an accepted submission

    ``succeeded=False`` only means the query itself failed; it says nothing
    about the document.
    """

    succeeded: bool
    status: Optional[NormalizedStatus] = None
    original_status: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    raw_response: Optional[Dict[str, Any]] = None


class SubmitInvoiceResponseDTO(BaseModel):
    """Accepted submission"""

    document_number: str
    document_type: str
    status: NormalizedStatus
    code: Optional[int] = None
    message: Optional[str] = None
    security_code: Optional[str] = None
    signature_date: Optional[str] = None
    issue_date: Optional[str] = None
    xml_base64: Optional[str] = None
    total: str = Field(..., description="Canonical total after discounts")
    verification_url: str
    initial_status: Optional[InitialStatusDTO] = None
    raw_response: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "document_number": "E310000000001",
                "document_type": "31",
                "status": "APPROVED",
                "code": 0,
                "message": "Documento procesado",
                "security_code": "A1b2C3",
                "signature_date": "01-06-2025 10:20:30",
                "total": "1180.00",
                "verification_url": "https://ecf.dgii.gov.do/ecf/ConsultaTimbre?RncEmisor=130862346&...",
                "initial_status": {"succeeded": True, "status": "IN_PROGRESS"}
            }
        }


class QueryDocumentStatusCommandDTO(BaseModel):
    document_number: str = Field(..., min_length=1, description="e-NCF to look up")
    retry_delay_seconds: float = Field(
        default=0, ge=0, le=60, description="Wait before querying (document may still be in transit)"
    )


class DocumentStatusDTO(BaseModel):
    """
    Document status as reported by the certification service

    A failed query is never a negative answer about the document.
    """

    document_number: str
    status: NormalizedStatus
    original_status: str = Field(default="", description="Raw estado/status/mensaje text")
    code: Optional[int] = None
    message: Optional[str] = None
    processed: bool = False
    advisory: Optional[str] = None
    raw_response: Dict[str, Any] = Field(default_factory=dict)


class AnnulmentEntryDTO(BaseModel):
    """One document or one contiguous block of documents to annul"""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"tipoDocumento": "31", "ncf": "E310000000098"},
                {"tipoDocumento": "32", "ncfDesde": "E320000000010", "ncfHasta": "E320000000015"},
            ]
        },
    )

    document_type: str = Field(..., alias="tipoDocumento")
    ncf: Optional[str] = Field(default=None, alias="ncf")
    ncf_from: Optional[str] = Field(default=None, alias="ncfDesde")
    ncf_to: Optional[str] = Field(default=None, alias="ncfHasta")


class AnnulDocumentsCommandDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tax_id: str = Field(..., alias="rnc", description="Issuer RNC")
    entries: List[AnnulmentEntryDTO] = Field(..., alias="anulaciones")
    annulled_at: Optional[str] = Field(
        default=None, alias="fechaHoraAnulacion", description="DD-MM-YYYY HH:MM:SS, defaults to now"
    )


class AnnulDocumentsResponseDTO(BaseModel):
    tax_id: str
    total_count: int
    processed: bool
    code: Optional[int] = None
    message: Optional[str] = None
    xml_base64: Optional[str] = None
    request: Dict[str, Any] = Field(default_factory=dict, description="Anulacion batch as sent")
    raw_response: Dict[str, Any] = Field(default_factory=dict)


class DownloadDocumentCommandDTO(BaseModel):
    tax_id: str
    document_number: str
    extension: str = Field(default="xml", description="xml or pdf")


class DownloadDocumentResponseDTO(BaseModel):
    document_number: str
    extension: str
    file_base64: str
    code: Optional[int] = None
    message: Optional[str] = None


class CertificationHealthDTO(BaseModel):
    """Outcome of a fresh authentication against the certification service"""

    status: Literal["OPERATIONAL", "SERVER_DOWN", "AUTHENTICATION_FAILED", "TIMEOUT"]
    healthy: bool
    message: str
    recommendation: str
    response_time_ms: int
    checked_at: datetime


class TokenCacheClearedDTO(BaseModel):
    cleared: bool = Field(..., description="A token was cached before clearing")


class VerificationQrCommandDTO(BaseModel):
    """
    Either a ready verification ``url`` or the values to build one

    When ``url`` is absent, document_type, issuer_tax_id, document_number,
    total and security_code are required.
    """

    url: Optional[str] = None
    document_type: Optional[str] = None
    issuer_tax_id: Optional[str] = None
    buyer_tax_id: Optional[str] = None
    document_number: Optional[str] = None
    total: Optional[str] = None
    security_code: Optional[str] = None
    issue_date: Optional[str] = None
    signature_date: Optional[str] = None
    format: QrFormat = QrFormat.SVG
    size: int = Field(default=200, ge=50, le=1000)


class VerificationUrlDTO(BaseModel):
    url: str


class VerificationQrDTO(BaseModel):
    url: str
    format: QrFormat
    media_type: str
    content: bytes
