from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.email_service import BrevoEmailSender
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.qr_renderer import ReportLabQrRenderer
from src.adapter.services.thefactory_service import TheFactoryCertificationService
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import CertificationService
from src.app.services.document_transformer import DocumentTransformer
from src.app.services.failure_notifier import FailureNotifier
from src.app.services.qr_link_builder import QRLinkBuilder
from src.app.services.qr_renderer import QrRenderer

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


# Process-wide services. The token cache and the pending notifications
# must be shared by every request.

@lru_cache(maxsize=None)
def get_certification_service() -> CertificationService:
    return TheFactoryCertificationService.from_config(ApplicationConfig)


@lru_cache(maxsize=None)
def get_token_cache() -> AuthTokenCache:
    return AuthTokenCache(
        get_certification_service().authenticate,
        refresh_margin_seconds=ApplicationConfig.TOKEN_REFRESH_MARGIN_SECONDS,
    )


@lru_cache(maxsize=None)
def get_failure_notifier() -> FailureNotifier:
    email_sender = None
    if ApplicationConfig.BREVO_API_KEY:
        email_sender = BrevoEmailSender(
            api_key=ApplicationConfig.BREVO_API_KEY,
            sender_email=ApplicationConfig.BREVO_SENDER_EMAIL,
            sender_name=ApplicationConfig.BREVO_SENDER_NAME,
            api_url=ApplicationConfig.BREVO_API_URL,
        )
    return FailureNotifier(
        create_notification_service(
            email_sender=email_sender,
            support_email=ApplicationConfig.SUPPORT_EMAIL,
            webhook_url=ApplicationConfig.NOTIFICATION_WEBHOOK,
        )
    )


def get_document_transformer() -> DocumentTransformer:
    return DocumentTransformer()


def get_link_builder() -> QRLinkBuilder:
    return QRLinkBuilder(
        base_url=ApplicationConfig.DGII_QR_URL,
        final_consumer_url=ApplicationConfig.DGII_QR_URL_FINAL_CONSUMER,
    )


def get_qr_renderer() -> QrRenderer:
    return ReportLabQrRenderer()
