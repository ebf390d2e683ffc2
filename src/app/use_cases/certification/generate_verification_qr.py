"""Verification link use cases

BuildVerificationUrl derives the DGII verification link of a document;
GenerateVerificationQr renders it as a QR image.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.qr_link_builder import QRLinkBuilder
from src.app.services.qr_renderer import QR_MEDIA_TYPES, QrFormat, QrRenderer
from src.domain.document_type import DocumentType
from .dtos import VerificationQrCommandDTO, VerificationQrDTO, VerificationUrlDTO

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("document_type", "issuer_tax_id", "document_number", "total", "security_code")


def _invalid(errors) -> Result:
    return Return.err(
        Error(
            code="VALIDATION_ERROR",
            message="Provide url or the document values",
            reason="; ".join(errors),
            details={"errors": errors},
        )
    )


class BuildVerificationUrl:
    """
    Use Case: DGII verification link from document values

    Business Rules:
    1. A given url is returned as is
    2. Non final-consumer documents also need buyer_tax_id and issue_date
    """

    def __init__(self, link_builder: QRLinkBuilder):
        self.link_builder = link_builder

    async def execute(self, command: VerificationQrCommandDTO) -> Result[VerificationUrlDTO]:
        url = (command.url or "").strip()
        if url:
            return Return.ok(VerificationUrlDTO(url=url))

        errors = [f"{name} is required" for name in REQUIRED_FIELDS if not getattr(command, name)]
        document_type = DocumentType.parse(command.document_type)
        if command.document_type and document_type is None:
            errors.append(f"document_type must be one of {', '.join(DocumentType.codes())}")
        if document_type is not None and document_type != DocumentType.FINAL_CONSUMER:
            if not command.buyer_tax_id:
                errors.append("buyer_tax_id is required")
            if not command.issue_date:
                errors.append("issue_date is required")
        if errors:
            return _invalid(errors)

        try:
            url = self.link_builder.build(
                document_type=document_type.value,
                issuer_tax_id=command.issuer_tax_id,
                document_number=command.document_number,
                total=command.total,
                security_code=command.security_code,
                buyer_tax_id=command.buyer_tax_id,
                issue_date=command.issue_date,
                signature_date=command.signature_date,
            )
        except ArithmeticError:
            return _invalid([f"total '{command.total}' is not a valid amount"])
        return Return.ok(VerificationUrlDTO(url=url))


class GenerateVerificationQr:
    """
    Use Case: QR code for a verification link

    Accepts a full url or the document values (see BuildVerificationUrl).
    """

    def __init__(self, link_builder: QRLinkBuilder, renderer: QrRenderer):
        self.build_url = BuildVerificationUrl(link_builder)
        self.renderer = renderer

    async def execute(self, command: VerificationQrCommandDTO) -> Result[VerificationQrDTO]:
        url_result = await self.build_url.execute(command)
        if url_result.is_err():
            return url_result
        url = url_result.value.url

        try:
            fmt = QrFormat(command.format)
            content = self.renderer.render(url, fmt=fmt, size=command.size)
            return Return.ok(
                VerificationQrDTO(url=url, format=fmt, media_type=QR_MEDIA_TYPES[fmt], content=content)
            )
        except Exception as e:
            logger.error(f"QR rendering failed for {url}: {e}")
            return Return.err(
                Error(code="GENERATE_QR_FAILED", message="Failed to render QR code", reason=str(e))
            )
