import pytest
import pytest_asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import (
    get_certification_service,
    get_failure_notifier,
    get_session,
    get_token_cache,
)
from src.app.services.auth_token_cache import AuthTokenCache
from src.app.services.certification_service import AuthToken, CertificationService
from src.app.services.failure_notifier import FailureNotifier
from src.domain.base import utc_now
from src.domain.sequence_range import SequenceRange  # noqa: F401  registers the table


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create test database engine on a throwaway SQLite file"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'ecf_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def certification_service():
    """Certification service double that accepts everything"""
    service = MagicMock(spec=CertificationService)
    service.authenticate = AsyncMock(
        return_value=AuthToken(token="integration-token", expires_at=utc_now() + timedelta(hours=1))
    )
    service.submit = AsyncMock(
        return_value={
            "procesado": True,
            "codigo": 0,
            "mensaje": "Documento procesado correctamente",
            "codigoSeguridad": "Sx9Abc",
            "fechaEmision": "01-06-2025",
            "fechaFirma": "01-06-2025 10:20:30",
        }
    )
    service.query_status = AsyncMock(return_value={"procesado": True, "codigo": 1, "estado": "Aceptado"})
    service.annul = AsyncMock(return_value={"procesado": True, "codigo": 100, "mensaje": "Anulado"})
    service.download = AsyncMock(return_value={"procesado": True, "codigo": 130, "archivo": "PHhtbC8+"})
    return service


@pytest_asyncio.fixture
async def client(session_factory, certification_service):
    """Create test client with database session and certification overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Each request gets its own session, as in production
    async def override_get_session():
        async with session_factory() as session:
            yield session

    token_cache = AuthTokenCache(certification_service.authenticate)
    notifier = FailureNotifier(None)

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_certification_service] = lambda: certification_service
    app.dependency_overrides[get_token_cache] = lambda: token_cache
    app.dependency_overrides[get_failure_notifier] = lambda: notifier

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
