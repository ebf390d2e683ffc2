"""CheckCertificationService Use Case

Health check of the certification service through a fresh authentication.
"""

import logging
import time
from datetime import datetime
from typing import Callable
from libs.result import Result, Return
from src.app.services.auth_token_cache import utc_now
from src.app.services.certification_service import (
    CertificationAuthError,
    CertificationHTTPError,
    CertificationService,
    CertificationTransportError,
)
from .dtos import CertificationHealthDTO

logger = logging.getLogger(__name__)


class CheckCertificationService:
    """
    Use Case: Check that the certification service is reachable

    Always authenticates, bypassing the token cache, so credentials are
    checked too. The outcome is reported as data, never as an error.
    """

    def __init__(
        self,
        certification_service: CertificationService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.certification_service = certification_service
        self.clock = clock

    async def execute(self) -> Result[CertificationHealthDTO]:
        started = time.monotonic()
        try:
            await self.certification_service.authenticate()
            status = "OPERATIONAL"
            message = "Certification service is operational"
            recommendation = "No action needed"
        except CertificationAuthError as e:
            status = "AUTHENTICATION_FAILED"
            message = f"Service reachable but authentication failed: {e.message}"
            recommendation = "Check THEFACTORY_USER, THEFACTORY_PASSWORD and THEFACTORY_RNC"
        except CertificationTransportError as e:
            if e.is_ambiguous:
                status = "TIMEOUT"
                message = "Certification service did not answer in time"
                recommendation = "The service may be overloaded; try again in a few minutes"
            else:
                status = "SERVER_DOWN"
                message = f"Certification service is unreachable: {e.message}"
                recommendation = "Wait for the service to recover; submissions will fail meanwhile"
        except CertificationHTTPError as e:
            status = "SERVER_DOWN"
            message = f"Certification service answered with HTTP {e.status_code}"
            recommendation = "Wait for the service to recover; submissions will fail meanwhile"
        except Exception as e:
            logger.exception(f"Unexpected error checking certification service: {e}")
            status = "SERVER_DOWN"
            message = f"Certification service check failed: {e}"
            recommendation = "Check the service URLs and network connectivity"

        elapsed_ms = int((time.monotonic() - started) * 1000)
        log = logger.info if status == "OPERATIONAL" else logger.warning
        log(f"Certification service check: {status} in {elapsed_ms}ms")
        return Return.ok(
            CertificationHealthDTO(
                status=status,
                healthy=status == "OPERATIONAL",
                message=message,
                recommendation=recommendation,
                response_time_ms=elapsed_ms,
                checked_at=self.clock(),
            )
        )
