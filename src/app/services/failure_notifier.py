"""Fire-and-forget failure notifications

Submission failures are reported to support without delaying the response to
the caller. Notification errors are logged and never reach the caller.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set
from src.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class FailureNotifier:
    def __init__(self, notification_service: Optional[NotificationService]):
        self.notification_service = notification_service
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]) -> None:
        """Start a notification in the background (requires a running loop)"""
        if self.notification_service is None:
            return
        task = asyncio.create_task(self._send(original_invoice, failure_context))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every notification scheduled so far"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _send(self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]) -> None:
        try:
            delivered = await self.notification_service.notify_failure(original_invoice, failure_context)
            if not delivered:
                logger.warning(
                    f"Failure notification for {failure_context.get('document_number')} was not delivered"
                )
        except Exception as e:
            logger.error(f"Failure notification for {failure_context.get('document_number')} raised: {e}")
