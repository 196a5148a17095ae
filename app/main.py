"""
Onward CRM FastAPI application entry point.

Routers: auth, workspaces (members and invites), invites (public token flow),
deals (pipeline), notifications.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app import __version__
from app.config import get_settings
from app.db.session import check_db_connection, engine
from app.services.errors import ServiceError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "Onward CRM starting (invite expiry %sd, position step %s)",
        settings.invite_expiry_days,
        settings.pipeline_position_step,
    )
    try:
        try:
            check_db_connection()
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise
        yield
    finally:
        engine.dispose()
        logger.info("Onward CRM stopped; connection pool closed")


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Fallback for service errors a route did not translate itself."""
    from app.api.deps import http_error

    http_exc = http_error(exc)
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.add_exception_handler(ServiceError, service_error_handler)

    from app.api import (
        auth_router,
        deals_router,
        invites_router,
        notifications_router,
        workspaces_router,
    )

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(workspaces_router, prefix="/api/workspaces", tags=["workspaces"])
    app.include_router(invites_router, prefix="/api/invites", tags=["invites"])
    app.include_router(deals_router, prefix="/api/deals", tags=["deals"])
    app.include_router(
        notifications_router, prefix="/api/notifications", tags=["notifications"]
    )

    @app.get("/health")
    def health():
        """Liveness plus DB connectivity; 503 when the database is unreachable."""
        body = {"status": "ok", "version": __version__, "database": "connected"}
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Health check failed")
            body.update(status="unhealthy", database="disconnected")
            return JSONResponse(status_code=503, content=body)
        return body

    return app


app = create_app()
