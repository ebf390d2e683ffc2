"""Certification Service Interface

Contract of the certified intermediary (TheFactoryHKA) that signs and
forwards e-CF documents to DGII, plus the typed failures adapters raise.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel


class AuthToken(BaseModel):
    """Bearer token issued by the certification service"""
    token: str
    expires_at: datetime


class TransportErrorKind(str, Enum):
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    DNS_FAILURE = "DNS_FAILURE"
    CONNECTION_RESET = "CONNECTION_RESET"
    TIMEOUT = "TIMEOUT"
    OTHER = "OTHER"


class CertificationError(Exception):
    """Base class for certification service failures"""


class CertificationTransportError(CertificationError):
    """
    The request did not produce an HTTP response

    TIMEOUT is ambiguous: the remote side may still have processed the
    request. Every other kind means the service is unreachable.
    """

    def __init__(self, kind: TransportErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def is_ambiguous(self) -> bool:
        return self.kind == TransportErrorKind.TIMEOUT


class CertificationHTTPError(CertificationError):
    """Non-2xx response other than an authentication rejection"""

    def __init__(self, status_code: int, payload: Optional[Dict[str, Any]] = None, message: str = ""):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code
        self.payload = payload or {}
        self.message = message or f"HTTP {status_code}"


class CertificationAuthError(CertificationError):
    """Credentials or token rejected (HTTP 401/403 or a non-zero auth code)"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[Any] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.payload = payload or {}


class CertificationService(ABC):
    """
    Certification service operations

    All methods return the decoded JSON body of a 2xx response and raise
    CertificationError subclasses otherwise. Business outcomes (procesado,
    codigo) are interpreted by the callers.
    """

    @abstractmethod
    async def authenticate(self) -> AuthToken:
        pass

    @abstractmethod
    async def submit(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Send a canonical document (the Token is part of the document)"""
        pass

    @abstractmethod
    async def query_status(self, token: str, document_number: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def annul(self, token: str, annulment: Dict[str, Any]) -> Dict[str, Any]:
        """Send one Anulacion batch"""
        pass

    @abstractmethod
    async def download(
        self, token: str, tax_id: str, document_number: str, extension: str
    ) -> Dict[str, Any]:
        pass
