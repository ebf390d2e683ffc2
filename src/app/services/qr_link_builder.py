"""DGII verification link

Builds the URL printed as a QR code on every e-CF. Final consumer invoices
(type 32) use the reduced ConsultaTimbreFC endpoint; every other type uses
ConsultaTimbre with buyer and dates.
"""

from decimal import Decimal
from typing import Any, Mapping, Optional, Union
from urllib.parse import urlencode
from src.app.services.formatting import DateLike, format_amount, format_dgii_date
from src.domain.document_type import DocumentType
from src.domain.simplified_invoice import SimplifiedInvoice

DEFAULT_QR_URL = "https://ecf.dgii.gov.do/ecf/ConsultaTimbre"
DEFAULT_QR_URL_FINAL_CONSUMER = "https://fc.dgii.gov.do/ecf/ConsultaTimbreFC"


class QRLinkBuilder:
    def __init__(
        self,
        base_url: str = DEFAULT_QR_URL,
        final_consumer_url: str = DEFAULT_QR_URL_FINAL_CONSUMER,
    ):
        self.base_url = base_url
        self.final_consumer_url = final_consumer_url

    def build(
        self,
        document_type: str,
        issuer_tax_id: str,
        document_number: str,
        total: Union[Decimal, float, int, str, None],
        security_code: str,
        buyer_tax_id: Optional[str] = None,
        issue_date: DateLike = None,
        signature_date: DateLike = None,
    ) -> str:
        """Verification URL from individual values, parameters in DGII order"""
        if str(document_type) == DocumentType.FINAL_CONSUMER.value:
            params = [
                ("RncEmisor", issuer_tax_id or ""),
                ("ENCF", document_number or ""),
                ("MontoTotal", format_amount(total)),
                ("CodigoSeguridad", security_code or ""),
            ]
            return f"{self.final_consumer_url}?{urlencode(params)}"

        params = [
            ("RncEmisor", issuer_tax_id or ""),
            ("RncComprador", buyer_tax_id or ""),
            ("ENCF", document_number or ""),
            ("FechaEmision", format_dgii_date(issue_date)),
            ("MontoTotal", format_amount(total)),
            ("FechaFirma", format_dgii_date(signature_date or issue_date, keep_time=True)),
            ("CodigoSeguridad", security_code or ""),
        ]
        return f"{self.base_url}?{urlencode(params)}"

    def build_verification_url(
        self,
        submission: Mapping[str, Any],
        invoice: SimplifiedInvoice,
        total: Union[Decimal, float, int, str, None] = None,
    ) -> str:
        """
        Verification URL for an accepted submission

        total should be the canonical (post-discount) total; the declared
        invoice total is used when it is not given.
        """
        header = invoice.header
        return self.build(
            document_type=header.document_type,
            issuer_tax_id=invoice.issuer.tax_id if invoice.issuer else "",
            document_number=header.ncf,
            total=total if total is not None else header.total,
            security_code=submission.get("codigoSeguridad") or "",
            buyer_tax_id=invoice.buyer.tax_id if invoice.buyer else None,
            issue_date=submission.get("fechaEmision") or header.issue_date,
            signature_date=submission.get("fechaFirma") or submission.get("fechaEmision"),
        )
