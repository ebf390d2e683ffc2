from .unit_of_work import UnitOfWork
from .certification_service import CertificationService
from .auth_token_cache import AuthTokenCache
from .notification_service import NotificationService
from .email_sender import EmailSender
from .qr_renderer import QrRenderer

__all__ = [
    "UnitOfWork",
    "CertificationService",
    "AuthTokenCache",
    "NotificationService",
    "EmailSender",
    "QrRenderer",
]
