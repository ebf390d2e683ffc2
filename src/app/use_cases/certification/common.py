"""Shared error classification for certification use cases"""

import logging
from typing import Any, Dict, Optional
from libs.result import Error
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import (
    CertificationAuthError,
    CertificationHTTPError,
    CertificationTransportError,
)

logger = logging.getLogger(__name__)

STATUS_QUERY_SUGGESTION = (
    "The document may have been processed; query its status before resubmitting"
)
SERVICE_DOWN_SUGGESTION = "Check the certification service status and try again later"

_TOKEN_PROBLEM_WORDS = ("invalid", "inválido", "invalido", "expired", "expirado", "vencido")


def mentions_invalid_token(message: Optional[str]) -> bool:
    """Business messages like "Token inválido o expirado" mean the cached token is stale"""
    if not message:
        return False
    text = message.lower()
    return "token" in text and any(word in text for word in _TOKEN_PROBLEM_WORDS)


def token_expired_error(
    token_cache: AuthTokenCache, reason: str, details: Optional[Dict[str, Any]] = None
) -> Error:
    token_cache.invalidate()
    return Error(
        code="TOKEN_EXPIRED",
        message="Certification token expired or was rejected",
        reason=reason,
        suggestion="Retry the operation; a new token will be requested",
        details=details,
        retryable=True,
    )


def classify_certification_error(
    error: Exception, token_cache: AuthTokenCache, operation: str
) -> Error:
    """
    Map an adapter exception to an Error

    Auth failures invalidate the cached token. Timeouts are reported as
    ambiguous: the remote side may have completed the operation.
    """
    if isinstance(error, CertificationAuthError):
        return token_expired_error(
            token_cache,
            error.message,
            details={"status_code": error.status_code, "code": error.code},
        )

    if isinstance(error, CertificationTransportError):
        if error.is_ambiguous:
            return Error(
                code="AMBIGUOUS_OUTCOME",
                message=f"{operation} timed out; outcome unknown",
                reason=error.message,
                suggestion=STATUS_QUERY_SUGGESTION,
                details={"kind": error.kind.value},
            )
        return Error(
            code="UPSTREAM_UNAVAILABLE",
            message="Certification service is unavailable",
            reason=error.message,
            suggestion=SERVICE_DOWN_SUGGESTION,
            details={"kind": error.kind.value},
            retryable=True,
        )

    if isinstance(error, CertificationHTTPError):
        return Error(
            code="UPSTREAM_HTTP_ERROR",
            message=f"{operation} failed with HTTP {error.status_code}",
            reason=error.message,
            details={"status_code": error.status_code, "response": error.payload},
        )

    logger.exception(f"Unexpected error during {operation.lower()}: {error}")
    return Error(
        code=f"{operation.upper().replace(' ', '_')}_FAILED",
        message=f"{operation} failed",
        reason=str(error),
    )
