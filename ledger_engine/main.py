"""
Ledger Engine — FastAPI application.

create_app() is the entry point. It builds the Database from
settings, registers routers and error handlers, and disposes the
engine on shutdown. Run it with:

    uvicorn ledger_engine.main:create_app --factory
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ledger_engine.api.accounts import router as accounts_router
from ledger_engine.api.errors import register_exception_handlers
from ledger_engine.api.health import router as health_router
from ledger_engine.api.journal import router as journal_router
from ledger_engine.api.raw_transactions import router as raw_transactions_router
from ledger_engine.api.reconciliation import router as reconciliation_router
from ledger_engine.config import Settings, get_settings
from ledger_engine.database import Database
from ledger_engine.logging_config import configure_logging, get_logger

logger = get_logger("main")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL)
    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "app_started",
            extra={"environment": settings.ENVIRONMENT},
        )
        yield
        database.dispose()
        logger.info("app_stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Double-entry ledger with raw transaction reconciliation",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    register_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(accounts_router)
    app.include_router(journal_router)
    app.include_router(raw_transactions_router)
    app.include_router(reconciliation_router)

    return app
