"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.zeptomail import ZeptoMailDispatcher
from infrastructure.http_client import HttpClient
from infrastructure.identity.appwrite import AppwriteIdentityProvider
from infrastructure.inventory.sanity import SanityInventoryStore
from infrastructure.payments.razorpay import RazorpayGateway
from infrastructure.throttle.otp_throttle import redis_limit_storage
from repositories.indexes import ensure_indexes
from routes.health_routes import router as health_router
from routes.otp_routes import router as otp_router
from routes.payment_routes import router as payment_router
from routes.tenancy_routes import router as tenancy_router
from shared.logging import get_logger

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

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

        # Redis is optional; without it the OTP send throttle is off
        redis_client = None
        limit_storage = None
        if settings.redis.redis_uri:
            redis_client = aioredis.from_url(
                settings.redis.redis_uri,
                encoding="utf-8",
                decode_responses=True,
            )
            limit_storage = redis_limit_storage(settings.redis.redis_uri)
        app.state.redis = redis_client
        app.state.rate_limit_storage = limit_storage

        # One HTTP client per collaborator so timeouts stay independent
        identity_http = HttpClient(timeout=settings.identity.identity_timeout_seconds)
        inventory_http = HttpClient(timeout=settings.inventory.inventory_timeout_seconds)
        payment_http = HttpClient(timeout=settings.payment.payment_timeout_seconds)
        email_http = HttpClient()
        app.state.identity = AppwriteIdentityProvider(settings.identity, identity_http)
        app.state.inventory = SanityInventoryStore(settings.inventory, inventory_http)
        app.state.payment_gateway = RazorpayGateway(settings.payment, payment_http)
        app.state.dispatcher = ZeptoMailDispatcher(
            settings.email, email_http, app_url=settings.app_url
        )

        await ensure_indexes(app.state.db)
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        for client in (identity_http, inventory_http, payment_http, email_http):
            await client.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(otp_router)
    app.include_router(payment_router)
    app.include_router(tenancy_router)

    return app
