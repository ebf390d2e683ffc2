"""Certification service use cases"""
from .submit_invoice import SubmitInvoice
from .query_document_status import QueryDocumentStatus
from .annul_documents import AnnulDocuments
from .download_document import DownloadDocument
from .check_certification_service import CheckCertificationService
from .clear_token_cache import ClearTokenCache
from .generate_verification_qr import BuildVerificationUrl, GenerateVerificationQr
from .dtos import (
    InitialStatusDTO,
    SubmitInvoiceResponseDTO,
    QueryDocumentStatusCommandDTO,
    DocumentStatusDTO,
    AnnulmentEntryDTO,
    AnnulDocumentsCommandDTO,
    AnnulDocumentsResponseDTO,
    DownloadDocumentCommandDTO,
    DownloadDocumentResponseDTO,
    CertificationHealthDTO,
    TokenCacheClearedDTO,
    VerificationQrCommandDTO,
    VerificationUrlDTO,
    VerificationQrDTO,
)

__all__ = [
    "SubmitInvoice",
    "QueryDocumentStatus",
    "AnnulDocuments",
    "DownloadDocument",
    "CheckCertificationService",
    "ClearTokenCache",
    "BuildVerificationUrl",
    "GenerateVerificationQr",
    "InitialStatusDTO",
    "SubmitInvoiceResponseDTO",
    "QueryDocumentStatusCommandDTO",
    "DocumentStatusDTO",
    "AnnulmentEntryDTO",
    "AnnulDocumentsCommandDTO",
    "AnnulDocumentsResponseDTO",
    "DownloadDocumentCommandDTO",
    "DownloadDocumentResponseDTO",
    "CertificationHealthDTO",
    "TokenCacheClearedDTO",
    "VerificationQrCommandDTO",
    "VerificationUrlDTO",
    "VerificationQrDTO",
]
