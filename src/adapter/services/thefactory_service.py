"""TheFactoryHKA Certification Service Implementation

HTTP client for the certified intermediary. One httpx.AsyncClient per call,
each operation with its own timeout. Transport failures are classified so the
callers can tell "service unreachable" from "outcome unknown".
"""

import logging
import socket
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
import httpx
from src.app.services.auth_token_cache import utc_now
from src.app.services.certification_service import (
    AuthToken,
    CertificationAuthError,
    CertificationHTTPError,
    CertificationService,
    CertificationTransportError,
    TransportErrorKind,
)

logger = logging.getLogger(__name__)

_DNS_MARKERS = ("name or service not known", "nodename nor servname", "getaddrinfo", "name resolution")


def classify_transport_error(exc: BaseException) -> TransportErrorKind:
    """
    Map an httpx transport failure to a TransportErrorKind

    The underlying OS error is looked up through the exception chain first;
    httpx exception types and messages are the fallback.
    """
    if isinstance(exc, httpx.TimeoutException):
        return TransportErrorKind.TIMEOUT

    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return TransportErrorKind.DNS_FAILURE
        if isinstance(current, ConnectionRefusedError):
            return TransportErrorKind.CONNECTION_REFUSED
        if isinstance(current, ConnectionResetError):
            return TransportErrorKind.CONNECTION_RESET
        if isinstance(current, TimeoutError):
            return TransportErrorKind.TIMEOUT
        current = current.__cause__ or current.__context__

    message = str(exc).lower()
    if any(marker in message for marker in _DNS_MARKERS):
        return TransportErrorKind.DNS_FAILURE
    if "refused" in message:
        return TransportErrorKind.CONNECTION_REFUSED
    if "reset" in message:
        return TransportErrorKind.CONNECTION_RESET
    if isinstance(exc, httpx.ConnectError):
        return TransportErrorKind.CONNECTION_REFUSED
    if isinstance(exc, (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError)):
        return TransportErrorKind.CONNECTION_RESET
    return TransportErrorKind.OTHER


def parse_expiration(value: Any) -> Optional[datetime]:
    """fechaExpiracion as an aware datetime; naive values are taken as UTC"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TheFactoryCertificationService(CertificationService):
    """
    TheFactoryHKA implementation of CertificationService

    Pass ``transport`` (e.g. httpx.MockTransport) to run without network.
    """

    def __init__(
        self,
        auth_url: str,
        send_url: str,
        status_url: str,
        annul_url: str,
        download_url: str,
        username: str,
        password: str,
        tax_id: str,
        auth_timeout: float = 15.0,
        send_timeout: float = 60.0,
        status_timeout: float = 10.0,
        annul_timeout: float = 30.0,
        download_timeout: float = 30.0,
        default_token_ttl_seconds: int = 3600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.auth_url = auth_url
        self.send_url = send_url
        self.status_url = status_url
        self.annul_url = annul_url
        self.download_url = download_url
        self.username = username
        self.password = password
        self.tax_id = tax_id
        self.auth_timeout = auth_timeout
        self.send_timeout = send_timeout
        self.status_timeout = status_timeout
        self.annul_timeout = annul_timeout
        self.download_timeout = download_timeout
        self.default_token_ttl = timedelta(seconds=default_token_ttl_seconds)
        self.transport = transport
        self.clock = clock

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(
            auth_url=config.THEFACTORY_AUTH_URL,
            send_url=config.THEFACTORY_SEND_URL,
            status_url=config.THEFACTORY_STATUS_URL,
            annul_url=config.THEFACTORY_ANNUL_URL,
            download_url=config.THEFACTORY_DOWNLOAD_URL,
            username=config.THEFACTORY_USER,
            password=config.THEFACTORY_PASSWORD,
            tax_id=config.THEFACTORY_RNC,
            auth_timeout=config.THEFACTORY_AUTH_TIMEOUT,
            send_timeout=config.THEFACTORY_SEND_TIMEOUT,
            status_timeout=config.THEFACTORY_STATUS_TIMEOUT,
            annul_timeout=config.THEFACTORY_ANNUL_TIMEOUT,
            download_timeout=config.THEFACTORY_DOWNLOAD_TIMEOUT,
            default_token_ttl_seconds=config.TOKEN_DEFAULT_TTL_SECONDS,
            transport=transport,
        )

    async def authenticate(self) -> AuthToken:
        payload = {"Usuario": self.username, "Clave": self.password, "RNC": self.tax_id}
        body = await self._post(self.auth_url, payload, self.auth_timeout, "Authentication")

        code = body.get("codigo")
        token = body.get("token")
        if (code is not None and str(code).strip() != "0") or not token:
            raise CertificationAuthError(
                body.get("mensaje") or "Authentication rejected by certification service",
                code=code,
                payload=body,
            )

        expires_at = parse_expiration(body.get("fechaExpiracion"))
        if expires_at is None:
            logger.warning(
                f"Unreadable token expiration '{body.get('fechaExpiracion')}', "
                f"assuming {int(self.default_token_ttl.total_seconds())}s"
            )
            expires_at = self.clock() + self.default_token_ttl
        return AuthToken(token=token, expires_at=expires_at)

    async def submit(self, document: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post(self.send_url, document, self.send_timeout, "Submission")

    async def query_status(self, token: str, document_number: str) -> Dict[str, Any]:
        payload = {"token": token, "rnc": self.tax_id, "documento": document_number}
        return await self._post(self.status_url, payload, self.status_timeout, "Status query")

    async def annul(self, token: str, annulment: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"token": token, "Anulacion": annulment}
        return await self._post(self.annul_url, payload, self.annul_timeout, "Annulment")

    async def download(
        self, token: str, tax_id: str, document_number: str, extension: str
    ) -> Dict[str, Any]:
        payload = {
            "token": token,
            "rnc": tax_id,
            "documento": document_number,
            "extension": extension,
        }
        return await self._post(self.download_url, payload, self.download_timeout, "Download")

    async def _post(
        self, url: str, payload: Dict[str, Any], timeout: float, operation: str
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TransportError as e:
            kind = classify_transport_error(e)
            if kind == TransportErrorKind.TIMEOUT:
                message = f"{operation} timed out after {timeout}s"
            else:
                message = f"{operation} failed ({kind.value}): {e}"
            logger.error(f"{message} [{url}]")
            raise CertificationTransportError(kind, message) from e

        body = self._decode(response)
        if response.status_code in (401, 403):
            raise CertificationAuthError(
                body.get("mensaje") or f"{operation} rejected with HTTP {response.status_code}",
                status_code=response.status_code,
                code=body.get("codigo"),
                payload=body,
            )
        if response.is_error:
            detail = body.get("mensaje") or body.get("raw") or response.reason_phrase
            raise CertificationHTTPError(
                response.status_code,
                body,
                f"{operation} returned HTTP {response.status_code}: {detail}",
            )

        logger.debug(f"{operation} response: codigo={body.get('codigo')} procesado={body.get('procesado')}")
        return body

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {"raw": response.text} if response.text else {}
        if isinstance(body, dict):
            return body
        return {"data": body}
