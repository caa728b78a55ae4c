"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from api import api_router
from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.console import ConsoleEmailProvider
from infrastructure.email.protocol import EmailProvider
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.http_client import HttpClient
from middleware.request_logging import RequestLoggingMiddleware
from repositories import ensure_indexes
from routes.health_routes import router as health_router
from services.token_service import TokenService
from shared.datetime_utils import utcnow
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_email_provider(
    settings: AppSettings, http_client: Optional[HttpClient]
) -> EmailProvider:
    """ZeptoMail when an API token is configured, otherwise log to console."""
    if settings.email.zepto_api_token and http_client is not None:
        return ZeptoMailProvider(settings.email, http_client, app_name=settings.app_name)
    return ConsoleEmailProvider(app_name=settings.app_name)


def configure_app(app: FastAPI, settings: AppSettings) -> FastAPI:
    """Attach middleware, error handlers and routers to *app*."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps CORS and sees every response
    app.add_middleware(RequestLoggingMiddleware)

    register_error_handlers(app, expose_internals=not settings.is_production)
    app.include_router(health_router)
    app.include_router(api_router)
    return app


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        env=settings.env,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings
        app.state.clock = utcnow
        app.state.token_service = TokenService(settings.jwt)

        http_client = None
        if settings.email.zepto_api_token:
            http_client = HttpClient(timeout=settings.email.http_timeout_seconds)
        app.state.email_provider = build_email_provider(settings, http_client)

        await ensure_indexes(app.state.db)
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if http_client is not None:
            await http_client.aclose()
        await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    return configure_app(app, settings)
