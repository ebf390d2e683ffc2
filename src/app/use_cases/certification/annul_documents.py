"""AnnulDocuments Use Case

Annuls issued or unused e-NCFs, singly or in contiguous blocks, in one
batch request.
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from libs.result import Result, Return, Error
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import CertificationService
from src.app.services.status_normalizer import extract_code, is_processed
from src.domain.document_type import DocumentType
from src.domain.ncf import parse_number
from .common import classify_certification_error, mentions_invalid_token, token_expired_error
from .dtos import AnnulDocumentsCommandDTO, AnnulDocumentsResponseDTO, AnnulmentEntryDTO

logger = logging.getLogger(__name__)

ANNULMENT_SUCCESS_CODES = (0, 100)
ANNULMENT_TIMESTAMP = re.compile(r"^\d{2}-\d{2}-\d{4} \d{2}:\d{2}:\d{2}$")
ANNULMENT_TIMESTAMP_FORMAT = "%d-%m-%Y %H:%M:%S"


def _count(value: int) -> str:
    return str(value).zfill(2)


class AnnulDocuments:
    """
    Use Case: Annul e-NCFs

    Business Rules:
    1. Each entry names one NCF (ncf) or a block (ncfDesde..ncfHasta)
    2. NCFs match E + 2-digit type + 8-10 digit sequence
    3. The type in the NCF must equal the declared type; ncfHasta >= ncfDesde
    4. All entries go in one batch with per-line and total counts
    5. Accepted when procesado=true or codigo is 0 or 100

    Flow:
    1. Validate every entry (all errors reported together)
    2. Build the Anulacion batch
    3. Send with the cached token
    4. Interpret the response
    """

    def __init__(
        self,
        certification_service: CertificationService,
        token_cache: AuthTokenCache,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.certification_service = certification_service
        self.token_cache = token_cache
        self.clock = clock

    async def execute(self, command: AnnulDocumentsCommandDTO) -> Result[AnnulDocumentsResponseDTO]:
        # Step 1: Validate
        errors: List[str] = []
        if not command.tax_id or not command.tax_id.strip():
            errors.append("rnc is required")
        if not command.entries:
            errors.append("at least one annulment entry is required")

        blocks: List[Tuple[str, str, str, int]] = []
        for index, entry in enumerate(command.entries):
            block = self._validate_entry(index + 1, entry, errors)
            if block is not None:
                blocks.append(block)

        annulled_at = command.annulled_at
        if annulled_at is not None and not ANNULMENT_TIMESTAMP.match(annulled_at.strip()):
            errors.append("fechaHoraAnulacion must be DD-MM-YYYY HH:MM:SS")

        if errors:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Invalid annulment request",
                    reason="; ".join(errors),
                    details={"errors": errors},
                )
            )

        # Step 2: Build batch
        timestamp = annulled_at.strip() if annulled_at else self.clock().strftime(ANNULMENT_TIMESTAMP_FORMAT)
        total_count = sum(block[3] for block in blocks)
        annulment = {
            "Encabezado": {
                "RNC": command.tax_id.strip(),
                "Cantidad": _count(total_count),
                "FechaHoraAnulacioneNCF": timestamp,
            },
            "DetallesAnulacion": [
                {
                    "NumeroLinea": str(line),
                    "TipoDocumento": document_type,
                    "TablaSecuenciasAnuladas": [{"NCFDesde": first, "NCFHasta": last}],
                    "Cantidad": _count(count),
                }
                for line, (document_type, first, last, count) in enumerate(blocks, start=1)
            ],
        }

        try:
            # Step 3: Send
            token = await self.token_cache.get_token()
            logger.info(f"Annulling {total_count} NCF(s) for RNC {command.tax_id} in {len(blocks)} line(s)")
            response = await self.certification_service.annul(token, annulment)

            # Step 4: Interpret
            code = extract_code(response)
            if not (is_processed(response) or code in ANNULMENT_SUCCESS_CODES):
                message = response.get("mensaje")
                details = {"code": response.get("codigo"), "original_message": message, "response": response}
                if mentions_invalid_token(message):
                    return Return.err(token_expired_error(self.token_cache, message, details=details))
                logger.warning(f"Annulment rejected: codigo={code} mensaje={message}")
                return Return.err(
                    Error(
                        code="BUSINESS_ERROR",
                        message=f"Certification service rejected the annulment: {message or 'unknown error'}",
                        reason=message,
                        details=details,
                    )
                )

            return Return.ok(
                AnnulDocumentsResponseDTO(
                    tax_id=command.tax_id.strip(),
                    total_count=total_count,
                    processed=is_processed(response),
                    code=code,
                    message=response.get("mensaje"),
                    xml_base64=response.get("xmlBase64"),
                    request=annulment,
                    raw_response=response,
                )
            )

        except Exception as e:
            return Return.err(classify_certification_error(e, self.token_cache, "Annul documents"))

    @staticmethod
    def _validate_entry(
        line: int, entry: AnnulmentEntryDTO, errors: List[str]
    ) -> Optional[Tuple[str, str, str, int]]:
        prefix = f"entry {line}"
        document_type = (entry.document_type or "").strip()
        if DocumentType.parse(document_type) is None:
            errors.append(
                f"{prefix}: tipoDocumento must be one of {', '.join(DocumentType.codes())}"
            )
            return None

        first = (entry.ncf_from or entry.ncf or "").strip()
        last = (entry.ncf_to or "").strip() or first
        if not first:
            errors.append(f"{prefix}: provide 'ncf' or 'ncfDesde' (with 'ncfHasta' for a block)")
            return None

        parsed: Dict[str, Any] = {}
        for name, value in (("ncfDesde", first), ("ncfHasta", last)):
            number = parse_number(value)
            if number is None:
                errors.append(
                    f"{prefix}: {name} '{value}' must be E + 2-digit type + 8 to 10 digit sequence"
                )
                continue
            if number.document_type != document_type:
                errors.append(
                    f"{prefix}: tipoDocumento {document_type} does not match {name} type {number.document_type}"
                )
                continue
            parsed[name] = number

        if len(parsed) != 2:
            return None
        if parsed["ncfHasta"].sequence < parsed["ncfDesde"].sequence:
            errors.append(f"{prefix}: ncfHasta must be greater than or equal to ncfDesde")
            return None

        count = parsed["ncfHasta"].sequence - parsed["ncfDesde"].sequence + 1
        return document_type, first, last, count
