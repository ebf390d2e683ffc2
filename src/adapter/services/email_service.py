"""Brevo Email Sender Implementation

Sends transactional email through the Brevo SMTP API.
"""

import logging
from typing import List, Optional
import httpx
from src.app.services.email_sender import EmailSender

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


class BrevoEmailSender(EmailSender):
    """
    Email sender backed by Brevo

    Sends JSON payload with the ``api-key`` header.
    """

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str,
        api_url: str = BREVO_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    async def send(
        self,
        to: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": address} for address in to],
            "subject": subject,
            "htmlContent": html_content,
        }
        if text_content:
            payload["textContent"] = text_content

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={
                        "api-key": self.api_key,
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                    },
                )
                response.raise_for_status()
                logger.info(f"Email '{subject}' sent to {', '.join(to)}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email '{subject}': {e}")
            return False
