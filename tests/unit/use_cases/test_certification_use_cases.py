"""Unit tests for certification use cases

Tests cover:
- Invoice submission (validation, business errors, token and transport failures)
- Status query (not found advisory, failed query)
- Annulment batches, downloads, health check, token cache clearing
- Verification URL and QR generation
"""

import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qsl, urlsplit

from src.app.services.certification_service import (
    AuthToken,
    CertificationAuthError,
    CertificationHTTPError,
    CertificationTransportError,
    TransportErrorKind,
)
from src.app.services.document_transformer import DocumentTransformer
from src.app.services.qr_link_builder import QRLinkBuilder
from src.app.services.qr_renderer import QrFormat
from src.app.use_cases.certification import (
    AnnulDocuments,
    AnnulDocumentsCommandDTO,
    BuildVerificationUrl,
    CheckCertificationService,
    ClearTokenCache,
    DownloadDocument,
    DownloadDocumentCommandDTO,
    GenerateVerificationQr,
    QueryDocumentStatus,
    QueryDocumentStatusCommandDTO,
    SubmitInvoice,
    VerificationQrCommandDTO,
)
from src.app.use_cases.certification.query_document_status import NOT_FOUND_ADVISORY
from src.domain.normalized_status import NormalizedStatus
from src.domain.simplified_invoice import SimplifiedInvoice

TODAY = date(2025, 6, 1)
NOW = datetime(2025, 6, 1, 14, 30, 5)

ACCEPTED = {
    "procesado": True,
    "codigo": 0,
    "mensaje": "Documento procesado correctamente",
    "codigoSeguridad": "A1b2C3",
    "fechaEmision": "01-06-2025",
    "fechaFirma": "01-06-2025 10:20:30",
    "xmlBase64": "PHhtbC8+",
}


def make_invoice(document_type="31", **overrides) -> SimplifiedInvoice:
    data = {
        "emisor": {"rnc": "130862346", "razonSocial": "Clínica Ejemplo SRL"},
        "comprador": {"rnc": "101010101", "nombre": "Cliente Ejemplo"},
        "factura": {
            "tipo": document_type,
            "ncf": f"E{document_type}0000000001",
            "fecha": "2025-06-01",
            "fechaVencNCF": "31-12-2026",
        },
        "items": [{"nombre": "Consulta", "precio": "1000.00", "itbis": True}],
    }
    data.update(overrides)
    return SimplifiedInvoice.model_validate(data)


@pytest.fixture
def mock_certification_service():
    """Mock certification service"""
    service = MagicMock()
    service.authenticate = AsyncMock(
        return_value=AuthToken(token="fresh", expires_at=datetime(2025, 6, 2))
    )
    service.submit = AsyncMock(return_value=dict(ACCEPTED))
    service.query_status = AsyncMock(return_value={"procesado": False, "estado": "En Proceso"})
    service.annul = AsyncMock(return_value={"procesado": True, "codigo": 100, "mensaje": "Anulado"})
    service.download = AsyncMock(return_value={"procesado": True, "codigo": 130, "archivo": "JVBERi0="})
    return service


@pytest.fixture
def mock_token_cache():
    """Mock token cache handing out a fixed token"""
    cache = MagicMock()
    cache.get_token = AsyncMock(return_value="tok-123")
    cache.invalidate = MagicMock()
    cache.peek = MagicMock(return_value=None)
    return cache


@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.schedule = MagicMock()
    notifier.drain = AsyncMock()
    return notifier


@pytest.fixture
def submit_use_case(mock_certification_service, mock_token_cache, mock_notifier):
    return SubmitInvoice(
        certification_service=mock_certification_service,
        token_cache=mock_token_cache,
        transformer=DocumentTransformer(),
        link_builder=QRLinkBuilder(),
        notifier=mock_notifier,
        today=lambda: TODAY,
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
class TestSubmitInvoice:

    async def test_accepted_submission(self, submit_use_case, mock_certification_service, mock_notifier):
        """
        Given: Valid type 31 invoice and a service that accepts it
        When: SubmitInvoice is executed
        Then: APPROVED with verification URL, initial status and no notification
        """
        # Act
        result = await submit_use_case.execute(make_invoice())

        # Assert
        assert result.is_ok()
        dto = result.value
        assert dto.status == NormalizedStatus.APPROVED
        assert dto.security_code == "A1b2C3"
        assert dto.total == "1000.00"
        assert dto.initial_status.succeeded
        assert dto.initial_status.status == NormalizedStatus.IN_PROGRESS

        sent = mock_certification_service.submit.call_args[0][0]
        assert sent["Token"] == "tok-123"
        mock_certification_service.query_status.assert_called_once_with("tok-123", "E310000000001")

        params = dict(parse_qsl(urlsplit(dto.verification_url).query))
        assert params["ENCF"] == "E310000000001"
        assert params["MontoTotal"] == "1000.00"
        assert params["CodigoSeguridad"] == "A1b2C3"
        mock_notifier.schedule.assert_not_called()

    async def test_validation_error_is_not_sent_or_notified(
        self, submit_use_case, mock_certification_service, mock_token_cache, mock_notifier
    ):
        invoice = SimplifiedInvoice.model_validate({"factura": {"tipo": "31"}})

        result = await submit_use_case.execute(invoice)

        assert result.error.code == "VALIDATION_ERROR"
        assert "items must contain at least one line" in result.error.details["errors"]
        mock_token_cache.get_token.assert_not_called()
        mock_certification_service.submit.assert_not_called()
        mock_notifier.schedule.assert_not_called()

    async def test_known_business_code_gets_readable_message(
        self, submit_use_case, mock_certification_service, mock_notifier
    ):
        """
        Given: Service answers procesado=true, codigo=108
        When: SubmitInvoice is executed
        Then: BUSINESS_ERROR with the 108 message, support notified
        """
        mock_certification_service.submit = AsyncMock(
            return_value={"procesado": True, "codigo": 108, "mensaje": "NCF ya presentado"}
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "BUSINESS_ERROR"
        assert "NCF was already submitted" in result.error.message
        assert result.error.details["original_message"] == "NCF ya presentado"
        mock_notifier.schedule.assert_called_once()
        original, context = mock_notifier.schedule.call_args[0]
        assert original["factura"]["ncf"] == "E310000000001"
        assert context["stage"] == "response"
        assert context["code"] == "BUSINESS_ERROR"
        assert context["occurred_at"] == NOW.isoformat()

    async def test_unknown_code_keeps_service_message(self, submit_use_case, mock_certification_service):
        mock_certification_service.submit = AsyncMock(
            return_value={"procesado": False, "codigo": 613, "mensaje": "Firma inválida"}
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "BUSINESS_ERROR"
        assert result.error.message.endswith("Firma inválida")

    async def test_token_message_invalidates_cache(
        self, submit_use_case, mock_certification_service, mock_token_cache
    ):
        mock_certification_service.submit = AsyncMock(
            return_value={"procesado": False, "codigo": 1, "mensaje": "Token inválido o expirado"}
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "TOKEN_EXPIRED"
        assert result.error.retryable
        mock_token_cache.invalidate.assert_called_once()

    async def test_auth_rejection_invalidates_cache(
        self, submit_use_case, mock_certification_service, mock_token_cache
    ):
        mock_certification_service.submit = AsyncMock(
            side_effect=CertificationAuthError("Unauthorized", status_code=401)
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "TOKEN_EXPIRED"
        mock_token_cache.invalidate.assert_called_once()

    async def test_timeout_is_ambiguous_and_notified(
        self, submit_use_case, mock_certification_service, mock_notifier
    ):
        """
        Given: Submission times out
        When: SubmitInvoice is executed
        Then: AMBIGUOUS_OUTCOME suggesting a status query, support notified
        """
        mock_certification_service.submit = AsyncMock(
            side_effect=CertificationTransportError(TransportErrorKind.TIMEOUT, "read timeout")
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "AMBIGUOUS_OUTCOME"
        assert "status" in result.error.suggestion
        assert not result.error.retryable
        context = mock_notifier.schedule.call_args[0][1]
        assert context["stage"] == "submission"

    async def test_connection_refused_is_upstream_unavailable(
        self, submit_use_case, mock_certification_service
    ):
        mock_certification_service.submit = AsyncMock(
            side_effect=CertificationTransportError(TransportErrorKind.CONNECTION_REFUSED, "refused")
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "UPSTREAM_UNAVAILABLE"
        assert result.error.retryable

    async def test_authentication_failure_reported_at_authentication_stage(
        self, submit_use_case, mock_token_cache, mock_notifier
    ):
        mock_token_cache.get_token = AsyncMock(side_effect=CertificationAuthError("bad credentials", code=1))

        result = await submit_use_case.execute(make_invoice())

        assert result.error.code == "TOKEN_EXPIRED"
        assert mock_notifier.schedule.call_args[0][1]["stage"] == "authentication"

    async def test_initial_status_failure_does_not_fail_submission(
        self, submit_use_case, mock_certification_service
    ):
        mock_certification_service.query_status = AsyncMock(
            side_effect=CertificationHTTPError(502, {"raw": "Bad Gateway"})
        )

        result = await submit_use_case.execute(make_invoice())

        assert result.is_ok()
        assert result.value.initial_status.succeeded is False
        assert result.value.initial_status.error == "HTTP 502"


@pytest.mark.asyncio
class TestQueryDocumentStatus:

    async def test_normalizes_status(self, mock_certification_service, mock_token_cache):
        mock_certification_service.query_status = AsyncMock(
            return_value={"procesado": True, "codigo": 1, "estado": "Aceptado", "mensaje": "OK"}
        )
        use_case = QueryDocumentStatus(mock_certification_service, mock_token_cache)

        result = await use_case.execute(QueryDocumentStatusCommandDTO(document_number=" E310000000001 "))

        assert result.value.document_number == "E310000000001"
        assert result.value.status == NormalizedStatus.APPROVED
        assert result.value.original_status == "Aceptado"
        assert result.value.advisory is None

    async def test_not_found_carries_advisory(self, mock_certification_service, mock_token_cache):
        mock_certification_service.query_status = AsyncMock(
            return_value={"procesado": False, "codigo": 120, "mensaje": "Documento no encontrado"}
        )
        use_case = QueryDocumentStatus(mock_certification_service, mock_token_cache)

        result = await use_case.execute(QueryDocumentStatusCommandDTO(document_number="E310000000001"))

        assert result.value.status == NormalizedStatus.NOT_FOUND
        assert result.value.advisory == NOT_FOUND_ADVISORY

    async def test_waits_before_querying(self, mock_certification_service, mock_token_cache):
        sleep = AsyncMock()
        use_case = QueryDocumentStatus(mock_certification_service, mock_token_cache, sleep=sleep)

        await use_case.execute(
            QueryDocumentStatusCommandDTO(document_number="E310000000001", retry_delay_seconds=2)
        )

        sleep.assert_called_once_with(2)

    async def test_failed_query_is_not_a_rejection(self, mock_certification_service, mock_token_cache):
        mock_certification_service.query_status = AsyncMock(
            side_effect=CertificationTransportError(TransportErrorKind.DNS_FAILURE, "no such host")
        )
        use_case = QueryDocumentStatus(mock_certification_service, mock_token_cache)

        result = await use_case.execute(QueryDocumentStatusCommandDTO(document_number="E310000000001"))

        assert result.error.code == "STATUS_QUERY_FAILED"
        assert result.error.retryable
        assert result.error.details["cause"] == "UPSTREAM_UNAVAILABLE"

    async def test_token_message_invalidates_cache(self, mock_certification_service, mock_token_cache):
        mock_certification_service.query_status = AsyncMock(
            return_value={"procesado": False, "mensaje": "Token expirado"}
        )
        use_case = QueryDocumentStatus(mock_certification_service, mock_token_cache)

        result = await use_case.execute(QueryDocumentStatusCommandDTO(document_number="E310000000001"))

        assert result.error.code == "TOKEN_EXPIRED"
        mock_token_cache.invalidate.assert_called_once()


@pytest.mark.asyncio
class TestAnnulDocuments:

    @pytest.fixture
    def use_case(self, mock_certification_service, mock_token_cache):
        return AnnulDocuments(mock_certification_service, mock_token_cache, clock=lambda: NOW)

    async def test_single_and_block_entries_in_one_batch(self, use_case, mock_certification_service):
        """
        Given: One single NCF and a block of six
        When: AnnulDocuments is executed
        Then: One batch with zero-padded per-line and total counts
        """
        command = AnnulDocumentsCommandDTO.model_validate(
            {
                "rnc": "130862346",
                "anulaciones": [
                    {"tipoDocumento": "31", "ncf": "E310000000098"},
                    {"tipoDocumento": "32", "ncfDesde": "E320000000010", "ncfHasta": "E320000000015"},
                ],
            }
        )

        result = await use_case.execute(command)

        assert result.is_ok()
        assert result.value.total_count == 7
        token, batch = mock_certification_service.annul.call_args[0]
        assert token == "tok-123"
        assert batch["Encabezado"] == {
            "RNC": "130862346",
            "Cantidad": "07",
            "FechaHoraAnulacioneNCF": "01-06-2025 14:30:05",
        }
        lines = batch["DetallesAnulacion"]
        assert lines[0]["NumeroLinea"] == "1"
        assert lines[0]["Cantidad"] == "01"
        assert lines[0]["TablaSecuenciasAnuladas"] == [
            {"NCFDesde": "E310000000098", "NCFHasta": "E310000000098"}
        ]
        assert lines[1]["TipoDocumento"] == "32"
        assert lines[1]["Cantidad"] == "06"

    async def test_type_mismatch_is_rejected(self, use_case, mock_certification_service):
        command = AnnulDocumentsCommandDTO.model_validate(
            {"rnc": "130862346", "anulaciones": [{"tipoDocumento": "32", "ncf": "E310000000098"}]}
        )

        result = await use_case.execute(command)

        assert result.error.code == "VALIDATION_ERROR"
        assert "does not match" in result.error.details["errors"][0]
        mock_certification_service.annul.assert_not_called()

    async def test_all_entry_problems_reported(self, use_case):
        command = AnnulDocumentsCommandDTO.model_validate(
            {
                "rnc": "130862346",
                "anulaciones": [
                    {"tipoDocumento": "31", "ncf": "B0100000001"},
                    {"tipoDocumento": "31", "ncfDesde": "E310000000010", "ncfHasta": "E310000000005"},
                    {"tipoDocumento": "31"},
                ],
                "fechaHoraAnulacion": "2025-06-01 10:00",
            }
        )

        result = await use_case.execute(command)

        assert result.error.details["errors"] == [
            "entry 1: ncfDesde 'B0100000001' must be E + 2-digit type + 8 to 10 digit sequence",
            "entry 1: ncfHasta 'B0100000001' must be E + 2-digit type + 8 to 10 digit sequence",
            "entry 2: ncfHasta must be greater than or equal to ncfDesde",
            "entry 3: provide 'ncf' or 'ncfDesde' (with 'ncfHasta' for a block)",
            "fechaHoraAnulacion must be DD-MM-YYYY HH:MM:SS",
        ]

    async def test_rejected_annulment(self, use_case, mock_certification_service):
        mock_certification_service.annul = AsyncMock(
            return_value={"procesado": False, "codigo": 400, "mensaje": "NCF no existe"}
        )
        command = AnnulDocumentsCommandDTO.model_validate(
            {"rnc": "130862346", "anulaciones": [{"tipoDocumento": "31", "ncf": "E310000000098"}]}
        )

        result = await use_case.execute(command)

        assert result.error.code == "BUSINESS_ERROR"
        assert result.error.reason == "NCF no existe"


@pytest.mark.asyncio
class TestDownloadDocument:

    async def test_returns_file(self, mock_certification_service, mock_token_cache):
        use_case = DownloadDocument(mock_certification_service, mock_token_cache)

        result = await use_case.execute(
            DownloadDocumentCommandDTO(tax_id="130862346", document_number="E310000000001", extension="PDF")
        )

        assert result.value.file_base64 == "JVBERi0="
        assert result.value.extension == "pdf"
        mock_certification_service.download.assert_called_once_with(
            "tok-123", "130862346", "E310000000001", "pdf"
        )

    async def test_invalid_extension(self, mock_certification_service, mock_token_cache):
        use_case = DownloadDocument(mock_certification_service, mock_token_cache)

        result = await use_case.execute(
            DownloadDocumentCommandDTO(tax_id="130862346", document_number="E310000000001", extension="zip")
        )

        assert result.error.code == "VALIDATION_ERROR"
        mock_certification_service.download.assert_not_called()

    async def test_missing_file_is_business_error(self, mock_certification_service, mock_token_cache):
        mock_certification_service.download = AsyncMock(
            return_value={"procesado": True, "codigo": 0, "mensaje": "Sin archivo"}
        )
        use_case = DownloadDocument(mock_certification_service, mock_token_cache)

        result = await use_case.execute(
            DownloadDocumentCommandDTO(tax_id="130862346", document_number="E310000000001")
        )

        assert result.error.code == "BUSINESS_ERROR"


@pytest.mark.asyncio
class TestCheckCertificationService:

    @pytest.mark.parametrize(
        "side_effect, expected",
        [
            (None, "OPERATIONAL"),
            (CertificationAuthError("bad credentials", code=1), "AUTHENTICATION_FAILED"),
            (CertificationTransportError(TransportErrorKind.TIMEOUT, "timeout"), "TIMEOUT"),
            (CertificationTransportError(TransportErrorKind.CONNECTION_REFUSED, "refused"), "SERVER_DOWN"),
            (CertificationHTTPError(503), "SERVER_DOWN"),
        ],
    )
    async def test_status_classification(self, mock_certification_service, side_effect, expected):
        if side_effect is not None:
            mock_certification_service.authenticate = AsyncMock(side_effect=side_effect)
        use_case = CheckCertificationService(mock_certification_service, clock=lambda: NOW)

        result = await use_case.execute()

        assert result.is_ok()
        assert result.value.status == expected
        assert result.value.healthy == (expected == "OPERATIONAL")
        assert result.value.checked_at == NOW


@pytest.mark.asyncio
class TestClearTokenCache:

    async def test_reports_whether_a_token_was_cached(self, mock_token_cache):
        mock_token_cache.peek = MagicMock(return_value=AuthToken(token="t", expires_at=NOW))

        result = await ClearTokenCache(mock_token_cache).execute()

        assert result.value.cleared
        mock_token_cache.invalidate.assert_called_once()


@pytest.mark.asyncio
class TestVerificationQr:

    async def test_given_url_is_returned_as_is(self):
        result = await BuildVerificationUrl(QRLinkBuilder()).execute(
            VerificationQrCommandDTO(url=" https://example.com/x ")
        )

        assert result.value.url == "https://example.com/x"

    async def test_builds_final_consumer_url(self):
        command = VerificationQrCommandDTO(
            document_type="32",
            issuer_tax_id="130862346",
            document_number="E320000000001",
            total="1,180.5",
            security_code="XyZ123",
        )

        result = await BuildVerificationUrl(QRLinkBuilder()).execute(command)

        assert result.value.url.startswith("https://fc.dgii.gov.do/ecf/ConsultaTimbreFC?")
        assert dict(parse_qsl(urlsplit(result.value.url).query))["MontoTotal"] == "1180.50"

    async def test_non_final_consumer_needs_buyer_and_date(self):
        command = VerificationQrCommandDTO(
            document_type="31",
            issuer_tax_id="130862346",
            document_number="E310000000001",
            total="100",
            security_code="XyZ123",
        )

        result = await BuildVerificationUrl(QRLinkBuilder()).execute(command)

        assert result.error.details["errors"] == ["buyer_tax_id is required", "issue_date is required"]

    async def test_renders_qr(self):
        renderer = MagicMock()
        renderer.render = MagicMock(return_value=b"<svg/>")
        use_case = GenerateVerificationQr(QRLinkBuilder(), renderer)

        result = await use_case.execute(VerificationQrCommandDTO(url="https://example.com/x", size=300))

        assert result.value.content == b"<svg/>"
        assert result.value.media_type == "image/svg+xml"
        renderer.render.assert_called_once_with("https://example.com/x", fmt=QrFormat.SVG, size=300)

    async def test_renderer_failure(self):
        renderer = MagicMock()
        renderer.render = MagicMock(side_effect=ValueError("boom"))
        use_case = GenerateVerificationQr(QRLinkBuilder(), renderer)

        result = await use_case.execute(VerificationQrCommandDTO(url="https://example.com/x"))

        assert result.error.code == "GENERATE_QR_FAILED"
