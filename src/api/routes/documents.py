"""Document API Routes

FastAPI routes for submitting, querying, annulling and downloading e-CF
documents, plus DGII verification links.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from src.api.schemas.document_request import DownloadRequestSchema, QueryStatusRequestSchema
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import CertificationService
from src.app.services.document_transformer import DocumentTransformer
from src.app.services.failure_notifier import FailureNotifier
from src.app.services.qr_link_builder import QRLinkBuilder
from src.app.services.qr_renderer import QrRenderer
from src.app.use_cases.certification.dtos import (
    AnnulDocumentsCommandDTO,
    AnnulDocumentsResponseDTO,
    DocumentStatusDTO,
    DownloadDocumentCommandDTO,
    DownloadDocumentResponseDTO,
    QueryDocumentStatusCommandDTO,
    SubmitInvoiceResponseDTO,
    VerificationQrCommandDTO,
    VerificationUrlDTO,
)
from src.app.use_cases.certification.annul_documents import AnnulDocuments
from src.app.use_cases.certification.download_document import DownloadDocument
from src.app.use_cases.certification.generate_verification_qr import (
    BuildVerificationUrl,
    GenerateVerificationQr,
)
from src.app.use_cases.certification.query_document_status import QueryDocumentStatus
from src.app.use_cases.certification.submit_invoice import SubmitInvoice
from src.domain.simplified_invoice import SimplifiedInvoice
from src.depends import (
    get_certification_service,
    get_document_transformer,
    get_failure_notifier,
    get_link_builder,
    get_qr_renderer,
    get_token_cache,
)
from src.api.error import ClientError

router = APIRouter(prefix="/documents", tags=["Documents"])

STATUS_RETRY_DELAY_SECONDS = 2


@router.post(
    "/submit",
    response_model=SubmitInvoiceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid invoice or rejected by the certification service",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VALIDATION_ERROR",
                            "message": "Invoice failed validation",
                            "reason": "comprador.rnc is required",
                            "details": {"errors": ["comprador.rnc is required"]}
                        }
                    }
                }
            }
        },
        401: {
            "description": "Token rejected; retry the request",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "TOKEN_EXPIRED",
                            "message": "Authentication token expired or was rejected",
                            "retryable": True
                        }
                    }
                }
            }
        },
        408: {
            "description": "Timeout: the document may or may not have been received",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "AMBIGUOUS_OUTCOME",
                            "message": "Certification service did not answer in time",
                            "suggestion": "Query the document status before resubmitting"
                        }
                    }
                }
            }
        }
    }
)
async def submit_invoice(
    invoice: SimplifiedInvoice,
    certification_service: CertificationService = Depends(get_certification_service),
    token_cache: AuthTokenCache = Depends(get_token_cache),
    transformer: DocumentTransformer = Depends(get_document_transformer),
    link_builder: QRLinkBuilder = Depends(get_link_builder),
    notifier: FailureNotifier = Depends(get_failure_notifier),
):
    """
    Submit a simplified invoice for certification.

    The invoice is validated and transformed into the certification
    service's document shape. Failures after validation are reported to
    support in the background.

    **Returns:**
    - 200: Accepted, with the verification URL and the initial status
    - 400: Validation or business error
    - 401: Token rejected (cache invalidated, safe to retry)
    - 408: Ambiguous outcome, reconcile with POST /documents/status
    - 503: Certification service unavailable
    """
    use_case = SubmitInvoice(certification_service, token_cache, transformer, link_builder, notifier)
    result = await use_case.execute(invoice)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/status",
    response_model=DocumentStatusDTO,
    status_code=status.HTTP_200_OK,
)
async def query_document_status(
    request: QueryStatusRequestSchema,
    certification_service: CertificationService = Depends(get_certification_service),
    token_cache: AuthTokenCache = Depends(get_token_cache),
):
    """
    Query the status of a submitted document.

    With `reintentar`, the query waits a couple of seconds first, for
    documents that were just submitted.
    """
    command = QueryDocumentStatusCommandDTO(
        document_number=request.document_number,
        retry_delay_seconds=STATUS_RETRY_DELAY_SECONDS if request.retry else 0,
    )

    use_case = QueryDocumentStatus(certification_service, token_cache)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/annul",
    response_model=AnnulDocumentsResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid batch",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VALIDATION_ERROR",
                            "message": "Invalid annulment request",
                            "details": {"errors": ["anulaciones[0]: ncf E310000000098 does not match type 32"]}
                        }
                    }
                }
            }
        }
    }
)
async def annul_documents(
    command: AnnulDocumentsCommandDTO,
    certification_service: CertificationService = Depends(get_certification_service),
    token_cache: AuthTokenCache = Depends(get_token_cache),
):
    """
    Annul unused e-NCF numbers, one by one or in contiguous blocks.

    **Request body:**
    - `rnc` (required): Issuer RNC
    - `anulaciones` (required): entries with `tipoDocumento` and either `ncf`
      or `ncfDesde`/`ncfHasta`
    - `fechaHoraAnulacion` (optional): DD-MM-YYYY HH:MM:SS, defaults to now
    """
    use_case = AnnulDocuments(certification_service, token_cache)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/download",
    response_model=DownloadDocumentResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def download_document(
    request: DownloadRequestSchema,
    certification_service: CertificationService = Depends(get_certification_service),
    token_cache: AuthTokenCache = Depends(get_token_cache),
):
    """Download the certified document as base64 XML or PDF."""
    command = DownloadDocumentCommandDTO(
        tax_id=request.tax_id,
        document_number=request.document_number,
        extension=request.extension,
    )

    use_case = DownloadDocument(certification_service, token_cache)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/verification-url",
    response_model=VerificationUrlDTO,
    status_code=status.HTTP_200_OK,
)
async def build_verification_url(
    command: VerificationQrCommandDTO,
    link_builder: QRLinkBuilder = Depends(get_link_builder),
):
    """Build the DGII verification URL from the document values."""
    use_case = BuildVerificationUrl(link_builder)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/qr",
    status_code=status.HTTP_200_OK,
    responses={
        200: {
            "description": "QR image",
            "content": {"image/svg+xml": {}, "application/pdf": {}}
        }
    }
)
async def generate_verification_qr(
    command: VerificationQrCommandDTO,
    link_builder: QRLinkBuilder = Depends(get_link_builder),
    renderer: QrRenderer = Depends(get_qr_renderer),
):
    """
    Render the DGII verification link as a QR image.

    Pass either a ready `url` or the document values. `format` is `svg`
    (default) or `pdf`.
    """
    use_case = GenerateVerificationQr(link_builder, renderer)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return Response(
        content=result.value.content,
        media_type=result.value.media_type,
        headers={"X-Verification-Url": result.value.url},
    )
