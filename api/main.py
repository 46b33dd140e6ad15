"""Reading Tracker API — FastAPI entry point.

Builds the app via create_app(): registers middleware, the tracker router,
exception handlers, and the lifespan hooks that open and close the
Database handle. Run with ``uvicorn api.main:app``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.middleware import TenantMiddleware, get_current_tenant, get_request_id
from core.config import Settings
from core.database import Database
from core.errors import TrackerError
from core.observability.logging_setup import setup_logging

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[%s] dbId=%s %s: %s", get_request_id(), get_current_tenant(), exc.code, exc.message)
    else:
        logger.warning("[%s] dbId=%s %s: %s", get_request_id(), get_current_tenant(), exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("[%s] invalid request: %s", get_request_id(), exc.errors())
    return JSONResponse(
        status_code=400,
        content={
            "error": "validation_error",
            "detail": "Invalid request",
            "details": {"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()
            ]},
        },
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[%s] unhandled error", get_request_id())
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "Internal server error"},
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API. A pre-set ``app.state.database`` is used as-is."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store on startup and dispose it on shutdown."""
        owns_database = getattr(app.state, "database", None) is None
        if owns_database:
            app.state.database = Database(settings)
        if settings.create_tables:
            await app.state.database.init_models()
        logger.info("Reading Tracker API started")
        yield
        if owns_database:
            await app.state.database.close()
        logger.info("Reading Tracker API shutting down")

    app = FastAPI(
        title="Reading Tracker",
        description="Multi-tenant reading tracker: books and collections per database",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Tenant / request-id tagging
    app.add_middleware(TenantMiddleware)

    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    from tracker.router import router as tracker_router

    app.include_router(tracker_router, tags=["Tracker"])

    # -----------------------------------------------------------------------
    # Health & root
    # -----------------------------------------------------------------------

    @app.get("/health")
    async def health(request: Request):
        healthy = await request.app.state.database.ping()
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "healthy" if healthy else "unavailable", "version": VERSION},
        )

    @app.get("/")
    async def root():
        return {"name": "Reading Tracker", "version": VERSION, "docs": "/docs"}

    return app


app = create_app()
