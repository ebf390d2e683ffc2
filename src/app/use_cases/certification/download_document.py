"""DownloadDocument Use Case

Fetches the signed XML or the printable PDF of a certified document.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import CertificationService
from src.app.services.status_normalizer import extract_code, is_processed
from .common import classify_certification_error, mentions_invalid_token, token_expired_error
from .dtos import DownloadDocumentCommandDTO, DownloadDocumentResponseDTO

logger = logging.getLogger(__name__)

DOWNLOAD_SUCCESS_CODES = (0, 130)
ALLOWED_EXTENSIONS = ("xml", "pdf")


class DownloadDocument:
    """
    Use Case: Download a certified document

    Business Rules:
    1. rnc and documento are required, extension is xml or pdf
    2. Success requires procesado=true and codigo 0 or 130
    """

    def __init__(self, certification_service: CertificationService, token_cache: AuthTokenCache):
        self.certification_service = certification_service
        self.token_cache = token_cache

    async def execute(self, command: DownloadDocumentCommandDTO) -> Result[DownloadDocumentResponseDTO]:
        extension = (command.extension or "").strip().lower()
        errors = []
        if not command.tax_id or not command.tax_id.strip():
            errors.append("rnc is required")
        if not command.document_number or not command.document_number.strip():
            errors.append("documento is required")
        if extension not in ALLOWED_EXTENSIONS:
            errors.append("extension must be 'xml' or 'pdf'")
        if errors:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Invalid download request",
                    reason="; ".join(errors),
                    details={"errors": errors},
                )
            )

        document_number = command.document_number.strip()
        try:
            token = await self.token_cache.get_token()
            logger.info(f"Downloading {extension} of {document_number}")
            response = await self.certification_service.download(
                token, command.tax_id.strip(), document_number, extension
            )

            code = extract_code(response)
            if not (is_processed(response) and code in DOWNLOAD_SUCCESS_CODES) or not response.get("archivo"):
                message = response.get("mensaje")
                details = {"code": response.get("codigo"), "original_message": message}
                if mentions_invalid_token(message):
                    return Return.err(token_expired_error(self.token_cache, message, details=details))
                return Return.err(
                    Error(
                        code="BUSINESS_ERROR",
                        message=f"Download failed: {message or 'no file returned'}",
                        reason=message,
                        details=details,
                    )
                )

            return Return.ok(
                DownloadDocumentResponseDTO(
                    document_number=document_number,
                    extension=extension,
                    file_base64=response["archivo"],
                    code=code,
                    message=response.get("mensaje"),
                )
            )

        except Exception as e:
            return Return.err(classify_certification_error(e, self.token_cache, "Download document"))
