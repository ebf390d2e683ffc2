"""Notification Service Implementations

Provides concrete implementations for reporting failed submissions.
"""

import html
import json
import logging
from typing import Any, Dict, Optional
import httpx
from src.app.services.email_sender import EmailSender
from src.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _document_label(original_invoice: Dict[str, Any], failure_context: Dict[str, Any]) -> str:
    factura = original_invoice.get("factura") or {}
    return str(failure_context.get("document_number") or factura.get("ncf") or "unknown")


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs failures

    Useful for development and testing, or as a fallback.
    """

    async def notify_failure(
        self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]
    ) -> bool:
        logger.warning(
            f"[SUBMISSION FAILURE] Document: {_document_label(original_invoice, failure_context)}, "
            f"Code: {failure_context.get('code')}, "
            f"Stage: {failure_context.get('stage')}, "
            f"Message: {failure_context.get('message')}"
        )
        return True


class EmailNotificationService(NotificationService):
    """
    Notification service that emails a failure report to support

    The report carries the error, the certification response and the
    invoice exactly as received so support can resubmit it.
    """

    def __init__(self, sender: EmailSender, recipient: str):
        self.sender = sender
        self.recipient = recipient

    async def notify_failure(
        self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]
    ) -> bool:
        label = _document_label(original_invoice, failure_context)
        subject = f"e-CF submission failed: {label} ({failure_context.get('code')})"
        return await self.sender.send(
            [self.recipient],
            subject,
            self.render_html(original_invoice, failure_context),
            self.render_text(original_invoice, failure_context),
        )

    @staticmethod
    def render_text(original_invoice: Dict[str, Any], failure_context: Dict[str, Any]) -> str:
        emisor = original_invoice.get("emisor") or {}
        comprador = original_invoice.get("comprador") or {}
        factura = original_invoice.get("factura") or {}
        lines = [
            "e-CF submission failed",
            "",
            f"Document: {_document_label(original_invoice, failure_context)}",
            f"Type: {factura.get('tipo', '')}",
            f"Issuer: {emisor.get('razonSocial', '')} ({emisor.get('rnc', '')})",
            f"Buyer: {comprador.get('nombre', '')} ({comprador.get('rnc', '')})",
            f"Total: {factura.get('total', '')}",
            "",
            f"Error code: {failure_context.get('code')}",
            f"Message: {failure_context.get('message')}",
            f"Stage: {failure_context.get('stage')}",
            f"Time: {failure_context.get('occurred_at')}",
        ]
        if failure_context.get("suggestion"):
            lines.append(f"Suggestion: {failure_context['suggestion']}")
        if failure_context.get("certification_response"):
            lines += [
                "",
                "Certification response:",
                json.dumps(failure_context["certification_response"], indent=2, ensure_ascii=False, default=str),
            ]
        lines += [
            "",
            "Original invoice:",
            json.dumps(original_invoice, indent=2, ensure_ascii=False, default=str),
        ]
        return "\n".join(lines)

    @staticmethod
    def render_html(original_invoice: Dict[str, Any], failure_context: Dict[str, Any]) -> str:
        rows = [
            ("Document", _document_label(original_invoice, failure_context)),
            ("Error code", failure_context.get("code")),
            ("Message", failure_context.get("message")),
            ("Stage", failure_context.get("stage")),
            ("Time", failure_context.get("occurred_at")),
            ("Suggestion", failure_context.get("suggestion")),
        ]
        table = "".join(
            f"<tr><th align=\"left\">{html.escape(name)}</th><td>{html.escape(str(value))}</td></tr>"
            for name, value in rows
            if value is not None
        )
        sections = [f"<h2>e-CF submission failed</h2><table>{table}</table>"]
        if failure_context.get("certification_response"):
            response = json.dumps(
                failure_context["certification_response"], indent=2, ensure_ascii=False, default=str
            )
            sections.append(f"<h3>Certification response</h3><pre>{html.escape(response)}</pre>")
        invoice = json.dumps(original_invoice, indent=2, ensure_ascii=False, default=str)
        sections.append(f"<h3>Original invoice</h3><pre>{html.escape(invoice)}</pre>")
        return "<html><body>" + "".join(sections) + "</body></html>"


class WebhookNotificationService(NotificationService):
    """
    Notification service that posts failures to an HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def notify_failure(
        self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]
    ) -> bool:
        label = _document_label(original_invoice, failure_context)
        payload = {
            "type": "submission_failure",
            "document_number": label,
            "failure": failure_context,
            "invoice": original_invoice,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.webhook_url,
                    content=json.dumps(payload, default=str),
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Webhook notification sent for {label} to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send webhook notification for {label}: {e}")
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + email).
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def notify_failure(
        self, original_invoice: Dict[str, Any], failure_context: Dict[str, Any]
    ) -> bool:
        """True if at least one service succeeded"""
        success = False
        for service in self.services:
            try:
                if await service.notify_failure(original_invoice, failure_context):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(
    email_sender: Optional[EmailSender] = None,
    support_email: Optional[str] = None,
    webhook_url: Optional[str] = None,
) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        email_sender: Sender used when support_email is configured
        support_email: Recipient of failure reports
        webhook_url: Optional webhook URL

    Returns:
        Logging only, or a composite of logging plus the configured channels
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if email_sender is not None and support_email:
        services.append(EmailNotificationService(email_sender, support_email))

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
