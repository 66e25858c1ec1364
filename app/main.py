"""
Identity backend — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `stores/`, `services/`, `api/` and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.db.base import Base
from app.db.session import async_session_factory, engine
from app.services.maintenance import TokenSweeper
from app.stores.user_store import UserLookupField, UserStore

# Ensure all models are imported so metadata.create_all can see them
from app.models.token import Token  # noqa: F401
from app.models.user import User  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_admin() -> None:
    """Create the first admin account if it does not exist yet."""
    async with async_session_factory() as session:
        users = UserStore(session)
        if await users.find_by_field(UserLookupField.EMAIL, settings.FIRST_ADMIN_EMAIL) is None:
            await users.create(
                first_name="System",
                last_name="Administrator",
                email=settings.FIRST_ADMIN_EMAIL,
                phone="",
                password=settings.FIRST_ADMIN_PASSWORD,
                role="admin",
            )
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await seed_admin()

    sweeper = TokenSweeper(async_session_factory, settings.TOKEN_SWEEP_INTERVAL_SECONDS)
    sweeper.start()

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await sweeper.stop()
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Accounts, password login and device-bound bearer tokens",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
