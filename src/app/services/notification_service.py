"""Notification Service Interface

Defines the contract for reporting failed e-CF submissions.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class NotificationService(ABC):
    """
    Abstract notification service for submission failures

    Implementations can send notifications via:
    - Email (Brevo)
    - Webhook (HTTP POST)
    - Logs
    """

    @abstractmethod
    async def notify_failure(
        self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]
    ) -> bool:
        """
        Report a failed submission

        Args:
            original_invoice: Invoice exactly as the caller sent it
            failure_context: error code, message, stage, document number,
                             certification response and any other details

        Returns:
            True if the notification was delivered, False otherwise
        """
        pass
