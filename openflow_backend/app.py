"""FastAPI application factory for the OpenFlow board core."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import Settings
from .core.exceptions import setup_exception_handlers
from .core.logging import get_logger, setup_logging
from .core.middleware import RequestContextMiddleware
from .db.models import Base
from .db.session import make_engine, make_session_factory
from .mail.gateway import build_mail_gateway

logger = get_logger("openflow_backend")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(level=settings.log_level, json_output=settings.log_json)

        engine = make_engine(settings.database_url, echo=settings.sql_echo)
        # In dev mode, auto-create tables
        if settings.is_dev:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created (dev mode)")

        app.state.engine = engine
        app.state.session_factory = make_session_factory(engine)
        app.state.mail_gateway = build_mail_gateway(settings)
        logger.info(f"OpenFlow core initialized (env={settings.env})")
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("Engine disposed")

    app = FastAPI(title="OpenFlow Backend", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(RequestContextMiddleware)
    setup_exception_handlers(app)

    @app.get("/health")
    async def health(request: Request):
        db_ok = False
        try:
            async with request.app.state.session_factory() as session:
                await session.execute(text("SELECT 1"))
                db_ok = True
        except SQLAlchemyError as exc:
            logger.warning(f"Health check database probe failed: {exc}")

        return {"status": "ok" if db_ok else "degraded", "db_ok": db_ok}

    return app
