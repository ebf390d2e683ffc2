from .unit_of_work import SqlAlchemyUnitOfWork
from .thefactory_service import TheFactoryCertificationService
from .email_service import BrevoEmailSender
from .qr_renderer import ReportLabQrRenderer
from .notification_service import (
    LoggingNotificationService,
    EmailNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "TheFactoryCertificationService",
    "BrevoEmailSender",
    "ReportLabQrRenderer",
    "LoggingNotificationService",
    "EmailNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
]
