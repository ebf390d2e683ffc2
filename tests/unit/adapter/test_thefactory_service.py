"""Unit tests for TheFactoryCertificationService

The HTTP layer is replaced by httpx.MockTransport.
"""

import json
import socket
import pytest
import httpx
from datetime import datetime, timedelta, timezone

from src.adapter.services.thefactory_service import (
    TheFactoryCertificationService,
    classify_transport_error,
    parse_expiration,
)
from src.app.services.certification_service import (
    CertificationAuthError,
    CertificationHTTPError,
    CertificationTransportError,
    TransportErrorKind,
)

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
BASE = "https://demo.example.test/api"


def make_service(handler) -> TheFactoryCertificationService:
    return TheFactoryCertificationService(
        auth_url=f"{BASE}/Autenticacion",
        send_url=f"{BASE}/Enviar",
        status_url=f"{BASE}/EstatusDocumento",
        annul_url=f"{BASE}/Anulacion",
        download_url=f"{BASE}/DescargaArchivo",
        username="user",
        password="secret",
        tax_id="130862346",
        default_token_ttl_seconds=1800,
        transport=httpx.MockTransport(handler),
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
class TestAuthenticate:

    async def test_returns_token_with_expiration(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(
                200, json={"codigo": 0, "token": "tok-1", "fechaExpiracion": "2025-06-01T13:00:00"}
            )

        token = await make_service(handler).authenticate()

        assert token.token == "tok-1"
        assert token.expires_at == datetime(2025, 6, 1, 13, 0, 0, tzinfo=timezone.utc)
        assert requests == [{"Usuario": "user", "Clave": "secret", "RNC": "130862346"}]

    async def test_unreadable_expiration_uses_default_ttl(self):
        def handler(request):
            return httpx.Response(200, json={"codigo": 0, "token": "tok-1", "fechaExpiracion": "mañana"})

        token = await make_service(handler).authenticate()

        assert token.expires_at == NOW + timedelta(seconds=1800)

    async def test_non_zero_code_is_auth_error(self):
        def handler(request):
            return httpx.Response(200, json={"codigo": 401, "mensaje": "Credenciales invalidas"})

        with pytest.raises(CertificationAuthError) as exc_info:
            await make_service(handler).authenticate()

        assert exc_info.value.message == "Credenciales invalidas"

    async def test_http_401_is_auth_error(self):
        def handler(request):
            return httpx.Response(401, json={"mensaje": "Unauthorized"})

        with pytest.raises(CertificationAuthError) as exc_info:
            await make_service(handler).authenticate()

        assert exc_info.value.status_code == 401


@pytest.mark.asyncio
class TestOperations:

    async def test_submit_posts_document_as_is(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"procesado": True, "codigo": 0})

        document = {"Token": "tok-1", "DocumentoElectronico": {"Encabezado": {}}}
        body = await make_service(handler).submit(document)

        assert body == {"procesado": True, "codigo": 0}
        assert seen["url"] == f"{BASE}/Enviar"
        assert seen["body"] == document

    async def test_query_status_payload(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"estado": "Aceptado"})

        await make_service(handler).query_status("tok-1", "E310000000001")

        assert seen["body"] == {"token": "tok-1", "rnc": "130862346", "documento": "E310000000001"}

    async def test_annul_and_download_payloads(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"procesado": True, "codigo": 0})

        service = make_service(handler)
        await service.annul("tok-1", {"Encabezado": {}})
        await service.download("tok-1", "130862346", "E310000000001", "pdf")

        assert bodies[0] == {"token": "tok-1", "Anulacion": {"Encabezado": {}}}
        assert bodies[1] == {"token": "tok-1", "rnc": "130862346", "documento": "E310000000001", "extension": "pdf"}

    async def test_server_error_is_http_error(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(CertificationHTTPError) as exc_info:
            await make_service(handler).submit({})

        assert exc_info.value.status_code == 502
        assert exc_info.value.payload == {"raw": "Bad Gateway"}

    async def test_timeout_is_ambiguous_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(CertificationTransportError) as exc_info:
            await make_service(handler).submit({})

        assert exc_info.value.kind == TransportErrorKind.TIMEOUT
        assert exc_info.value.is_ambiguous

    async def test_connection_refused_is_not_ambiguous(self):
        def handler(request):
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        with pytest.raises(CertificationTransportError) as exc_info:
            await make_service(handler).query_status("tok", "E310000000001")

        assert exc_info.value.kind == TransportErrorKind.CONNECTION_REFUSED
        assert not exc_info.value.is_ambiguous


class TestClassifyTransportError:

    def test_dns_failure_from_cause(self):
        error = httpx.ConnectError("connect failed")
        error.__cause__ = socket.gaierror(-2, "Name or service not known")

        assert classify_transport_error(error) == TransportErrorKind.DNS_FAILURE

    def test_reset_from_cause(self):
        error = httpx.ReadError("read failed")
        error.__cause__ = ConnectionResetError(104, "reset by peer")

        assert classify_transport_error(error) == TransportErrorKind.CONNECTION_RESET

    def test_dns_failure_from_message(self):
        error = httpx.ConnectError("[Errno -3] Temporary failure in name resolution")

        assert classify_transport_error(error) == TransportErrorKind.DNS_FAILURE

    def test_protocol_error_is_reset(self):
        assert classify_transport_error(httpx.RemoteProtocolError("peer closed")) == TransportErrorKind.CONNECTION_RESET

    def test_unknown(self):
        assert classify_transport_error(httpx.UnsupportedProtocol("ftp")) == TransportErrorKind.OTHER


def test_parse_expiration():
    assert parse_expiration("2025-06-01T13:00:00Z") == datetime(2025, 6, 1, 13, tzinfo=timezone.utc)
    assert parse_expiration(None) is None
    assert parse_expiration("not a date") is None
