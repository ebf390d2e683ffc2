"""Email Sender Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional


class EmailSender(ABC):
    """Transactional email delivery"""

    @abstractmethod
    async def send(
        self,
        to: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send one email

        Returns:
            True if the provider accepted the message, False otherwise
        """
        pass
