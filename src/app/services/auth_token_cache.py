"""Certification service token cache

Holds the bearer token shared by all requests of the process. Refreshes are
single-flight: concurrent callers that find the token missing or about to
expire all await the same authentication request.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional
from src.app.services.certification_service import AuthToken
from src.domain.base import utc_now

logger = logging.getLogger(__name__)


class AuthTokenCache:
    """
    Single-flight, TTL-aware token cache

    A token expiring within ``refresh_margin_seconds`` is treated as already
    expired. If the shared refresh fails, every waiter receives the failure
    and the next call starts a new refresh.
    """

    def __init__(
        self,
        authenticate: Callable[[], Awaitable[AuthToken]],
        clock: Callable[[], datetime] = utc_now,
        refresh_margin_seconds: int = 300,
    ):
        self._authenticate = authenticate
        self._clock = clock
        self._margin = timedelta(seconds=refresh_margin_seconds)
        self._token: Optional[AuthToken] = None
        self._inflight: Optional[asyncio.Future] = None

    def peek(self) -> Optional[AuthToken]:
        """Cached token, fresh or not, without triggering a refresh"""
        return self._token

    def is_valid(self, token: Optional[AuthToken] = None) -> bool:
        token = token if token is not None else self._token
        if token is None:
            return False
        return token.expires_at - self._margin > self._clock()

    async def get_token(self) -> str:
        token = self._token
        if token is not None and self.is_valid(token):
            return token.token

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())

        # Shielded so one cancelled waiter does not cancel the shared refresh
        fresh = await asyncio.shield(self._inflight)
        return fresh.token

    def invalidate(self) -> None:
        if self._token is not None:
            logger.info("Certification token invalidated")
        self._token = None

    async def _refresh(self) -> AuthToken:
        try:
            logger.info("Requesting new certification token")
            token = await self._authenticate()
            self._token = token
            logger.info(f"Certification token obtained, expires at {token.expires_at.isoformat()}")
            return token
        except Exception as e:
            logger.error(f"Certification authentication failed: {e}")
            raise
        finally:
            self._inflight = None
