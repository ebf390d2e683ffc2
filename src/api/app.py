"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from src.api.error import ClientError, client_error_handler, request_validation_error_handler
from src.api.routes import certification, documents, sequences
from src.depends import engine, get_failure_notifier
from src.domain.sequence_range import SequenceRange  # noqa: F401  registers the table

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("e-CF service started")
    yield
    await get_failure_notifier().drain()
    await engine.dispose()
    logger.info("e-CF service stopped")


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title="e-CF Submission & Numbering Service",
        description=(
            "e-NCF sequence allocation and electronic invoice submission to DGII "
            "through a certified intermediary"
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(sequences.router, prefix=config.API_PREFIX)
    app.include_router(documents.router, prefix=config.API_PREFIX)
    app.include_router(certification.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
