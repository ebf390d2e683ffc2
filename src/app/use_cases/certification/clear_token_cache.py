"""ClearTokenCache Use Case"""

import logging
from libs.result import Result, Return
from src.app.services.auth_token_cache import AuthTokenCache
from .dtos import TokenCacheClearedDTO

logger = logging.getLogger(__name__)


class ClearTokenCache:
    """
    Use Case: Drop the cached certification token

    The next certification call authenticates again.
    """

    def __init__(self, token_cache: AuthTokenCache):
        self.token_cache = token_cache

    async def execute(self) -> Result[TokenCacheClearedDTO]:
        had_token = self.token_cache.peek() is not None
        self.token_cache.invalidate()
        logger.info("Certification token cache cleared by request")
        return Return.ok(TokenCacheClearedDTO(cleared=had_token))
