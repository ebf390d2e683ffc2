"""SubmitInvoice Use Case

Validates and transforms a simplified invoice, sends it to the certification
service and derives the DGII verification link.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional
from libs.result import Result, Return, Error
from src.app.services.auth_token_cache import AuthTokenCache, utc_now
from src.app.services.certification_service import CertificationService
from src.app.services.document_transformer import (
    DocumentTransformer,
    InvoiceValidationError,
    document_total,
)
from src.app.services.failure_notifier import FailureNotifier
from src.app.services.qr_link_builder import QRLinkBuilder
from src.app.services.status_normalizer import (
    extract_code,
    extract_raw_status,
    is_processed,
    normalize,
)
from src.domain.normalized_status import NormalizedStatus
from src.domain.simplified_invoice import SimplifiedInvoice
from .common import classify_certification_error, mentions_invalid_token, token_expired_error
from .dtos import InitialStatusDTO, SubmitInvoiceResponseDTO

logger = logging.getLogger(__name__)

BUSINESS_ERROR_MESSAGES = {
    108: "NCF was already submitted",
    109: "NCF expired or outside its authorized range",
    110: "RNC not authorized for this document type",
    111: "Invalid invoice data",
}


class SubmitInvoice:
    """
    Use Case: Submit an electronic invoice

    Business Rules:
    1. Invalid input is rejected before contacting the service, not notified
    2. Accepted means procesado=true and codigo=0; anything else is a business error
    3. Auth rejections invalidate the cached token and are retryable by the caller
    4. Timeouts are ambiguous: the caller must reconcile with a status query
    5. Every failure after validation is reported to support in the background
    6. The post-submission status query is best-effort

    Flow:
    1. Transform (validates everything at once)
    2. Get a token and stamp it on the document
    3. Submit
    4. Interpret the response
    5. Query the initial status (failures recorded, not propagated)
    6. Build the verification URL from the canonical total
    """

    def __init__(
        self,
        certification_service: CertificationService,
        token_cache: AuthTokenCache,
        transformer: DocumentTransformer,
        link_builder: QRLinkBuilder,
        notifier: FailureNotifier,
        today: Optional[Callable[[], date]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.certification_service = certification_service
        self.token_cache = token_cache
        self.transformer = transformer
        self.link_builder = link_builder
        self.notifier = notifier
        self.today = today or date.today
        self.clock = clock

    async def execute(self, invoice: SimplifiedInvoice) -> Result[SubmitInvoiceResponseDTO]:
        document_number = invoice.header.ncf if invoice.header else None

        # Step 1: Transform
        try:
            document = self.transformer.transform(invoice, token="", today=self.today())
        except InvoiceValidationError as e:
            logger.warning(f"Invoice {document_number} rejected: {e}")
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Invoice failed validation",
                    reason="; ".join(e.errors),
                    details={"errors": e.errors},
                )
            )

        stage = "authentication"
        response: Dict[str, Any] = {}
        try:
            # Step 2: Token
            document["Token"] = await self.token_cache.get_token()

            # Step 3: Submit
            stage = "submission"
            logger.info(f"Submitting {document_number}")
            response = await self.certification_service.submit(document)

            # Step 4: Interpret
            stage = "response"
            code = extract_code(response)
            if not (is_processed(response) and code == 0):
                error = self._business_error(response, code)
                self._notify(invoice, error, stage, response)
                return Return.err(error)

            # Step 5: Initial status
            stage = "post-submission"
            initial_status = await self._initial_status(document["Token"], document_number)

            # Step 6: Verification URL
            total = document_total(document)
            verification_url = self.link_builder.build_verification_url(response, invoice, total=total)

            logger.info(f"Invoice {document_number} accepted by certification service")
            return Return.ok(
                SubmitInvoiceResponseDTO(
                    document_number=document_number,
                    document_type=invoice.header.document_type,
                    status=NormalizedStatus.APPROVED,
                    code=code,
                    message=response.get("mensaje"),
                    security_code=response.get("codigoSeguridad"),
                    signature_date=response.get("fechaFirma"),
                    issue_date=response.get("fechaEmision"),
                    xml_base64=response.get("xmlBase64"),
                    total=total,
                    verification_url=verification_url,
                    initial_status=initial_status,
                    raw_response=response,
                )
            )

        except Exception as e:
            error = classify_certification_error(e, self.token_cache, "Submit invoice")
            logger.error(f"Submission of {document_number} failed at {stage}: {error.code} {error.reason}")
            self._notify(invoice, error, stage, response)
            return Return.err(error)

    async def drain_notifications(self) -> None:
        await self.notifier.drain()

    def _business_error(self, response: Dict[str, Any], code: Optional[int]) -> Error:
        service_message = response.get("mensaje")
        details = {
            "code": response.get("codigo"),
            "original_message": service_message,
            "processed": response.get("procesado"),
            "security_code": response.get("codigoSeguridad"),
            "response": response,
        }
        if mentions_invalid_token(service_message):
            return token_expired_error(self.token_cache, service_message, details=details)

        message = BUSINESS_ERROR_MESSAGES.get(code) or service_message or "Unknown certification error"
        logger.warning(f"Certification service rejected document: codigo={code} mensaje={service_message}")
        return Error(
            code="BUSINESS_ERROR",
            message=f"Certification service rejected the document: {message}",
            reason=service_message,
            details=details,
        )

    async def _initial_status(self, token: str, document_number: str) -> InitialStatusDTO:
        try:
            payload = await self.certification_service.query_status(token, document_number)
        except Exception as e:
            logger.warning(f"Initial status query for {document_number} failed: {e}")
            return InitialStatusDTO(succeeded=False, error=str(e))

        raw_status = extract_raw_status(payload)
        return InitialStatusDTO(
            succeeded=True,
            status=normalize(raw_status, payload),
            original_status=raw_status,
            message=payload.get("mensaje"),
            raw_response=payload,
        )

    def _notify(
        self,
        invoice: SimplifiedInvoice,
        error: Error,
        stage: str,
        response: Dict[str, Any],
    ) -> None:
        self.notifier.schedule(
            invoice.to_payload(),
            {
                "code": error.code,
                "message": error.message,
                "reason": error.reason,
                "suggestion": error.suggestion,
                "stage": stage,
                "document_number": invoice.header.ncf if invoice.header else None,
                "document_type": invoice.header.document_type if invoice.header else None,
                "certification_response": response or None,
                "occurred_at": self.clock().isoformat(),
            },
        )
