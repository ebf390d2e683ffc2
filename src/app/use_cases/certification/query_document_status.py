"""QueryDocumentStatus Use Case

Looks up a submitted document and normalizes the reported status.
"""

import asyncio
import logging
from typing import Awaitable, Callable
from libs.result import Result, Return, Error
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import CertificationService
from src.app.services.status_normalizer import (
    extract_code,
    extract_raw_status,
    is_processed,
    normalize,
)
from src.domain.normalized_status import NormalizedStatus
from .common import classify_certification_error, mentions_invalid_token, token_expired_error
from .dtos import DocumentStatusDTO, QueryDocumentStatusCommandDTO

logger = logging.getLogger(__name__)

NOT_FOUND_CODE = 120
NOT_FOUND_ADVISORY = (
    "The document is not in the certification service database. Possible causes: "
    "1) it was never submitted, "
    "2) environment mismatch (demo vs production), "
    "3) wrong RNC in the query, "
    "4) the service has not synchronized it yet."
)


class QueryDocumentStatus:
    """
    Use Case: Query the status of a submitted document

    Business Rules:
    1. A failed query is never a negative answer about the document
    2. Code 120 (not found) carries an advisory with the usual causes
    3. Auth rejections invalidate the cached token

    Flow:
    1. Optionally wait (document may still be in transit)
    2. Query with the cached token
    3. Normalize the status
    """

    def __init__(
        self,
        certification_service: CertificationService,
        token_cache: AuthTokenCache,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.certification_service = certification_service
        self.token_cache = token_cache
        self.sleep = sleep

    async def execute(self, command: QueryDocumentStatusCommandDTO) -> Result[DocumentStatusDTO]:
        document_number = command.document_number.strip()
        try:
            # Step 1: Optional wait
            if command.retry_delay_seconds > 0:
                await self.sleep(command.retry_delay_seconds)

            # Step 2: Query
            token = await self.token_cache.get_token()
            payload = await self.certification_service.query_status(token, document_number)

            message = payload.get("mensaje") or payload.get("description")
            if mentions_invalid_token(message):
                return Return.err(token_expired_error(self.token_cache, message))

            # Step 3: Normalize
            code = extract_code(payload)
            raw_status = extract_raw_status(payload)
            status = normalize(raw_status, payload)

            advisory = None
            if status == NormalizedStatus.NOT_FOUND or code == NOT_FOUND_CODE:
                logger.warning(f"Document {document_number} not found by certification service")
                advisory = NOT_FOUND_ADVISORY

            logger.info(f"Status of {document_number}: {status.value} (codigo={code})")
            return Return.ok(
                DocumentStatusDTO(
                    document_number=document_number,
                    status=status,
                    original_status=raw_status,
                    code=code,
                    message=message,
                    processed=is_processed(payload),
                    advisory=advisory,
                    raw_response=payload,
                )
            )

        except Exception as e:
            cause = classify_certification_error(e, self.token_cache, "Status query")
            if cause.code == "TOKEN_EXPIRED":
                return Return.err(cause)
            logger.warning(f"Status query for {document_number} failed: {cause.code} {cause.reason}")
            return Return.err(
                Error(
                    code="STATUS_QUERY_FAILED",
                    message=f"Status of {document_number} could not be determined",
                    reason=cause.reason,
                    suggestion="This is not a rejection; query again later",
                    details={"cause": cause.code, **(cause.details or {})},
                    retryable=True,
                )
            )
