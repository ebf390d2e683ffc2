"""Certification Service API Routes"""

from fastapi import APIRouter, Depends, status

from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import CertificationService
from src.app.use_cases.certification.dtos import CertificationHealthDTO, TokenCacheClearedDTO
from src.app.use_cases.certification.check_certification_service import CheckCertificationService
from src.app.use_cases.certification.clear_token_cache import ClearTokenCache
from src.depends import get_certification_service, get_token_cache
from src.api.error import ClientError

router = APIRouter(prefix="/certification", tags=["Certification"])


@router.get(
    "/check",
    response_model=CertificationHealthDTO,
    status_code=status.HTTP_200_OK,
    responses={
        200: {
            "description": "Health report (also returned when the service is down)",
            "content": {
                "application/json": {
                    "example": {
                        "status": "SERVER_DOWN",
                        "healthy": False,
                        "message": "Certification service is unreachable: connection refused",
                        "recommendation": "Wait for the service to recover; submissions will fail meanwhile",
                        "response_time_ms": 12,
                        "checked_at": "2025-06-01T10:00:00Z"
                    }
                }
            }
        }
    }
)
async def check_certification_service(
    certification_service: CertificationService = Depends(get_certification_service),
):
    """
    Authenticate against the certification service, bypassing the token cache.
    """
    use_case = CheckCertificationService(certification_service)
    result = await use_case.execute()

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.delete(
    "/token-cache",
    response_model=TokenCacheClearedDTO,
    status_code=status.HTTP_200_OK,
)
async def clear_token_cache(
    token_cache: AuthTokenCache = Depends(get_token_cache),
):
    """Drop the cached token; the next call authenticates again."""
    use_case = ClearTokenCache(token_cache)
    result = await use_case.execute()

    if result.is_err():
        raise ClientError(result.error)

    return result.value
