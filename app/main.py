"""
AccessDesk API Server

Entry point for the FastAPI application.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from app.core.config import get_settings
from app.core.database import dispose_db, engine, init_db
from app.core.errors import AccessDeskError, ValidationError
from app.core.logging import configure_logging, request_id_var
from app.core.redis import close_redis, redis_ready
from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router

settings = get_settings()
log = structlog.get_logger()


async def database_ready() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (DBAPIError, OSError):
        return False


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, json=settings.log_json)

    app = FastAPI(
        title="AccessDesk",
        description="Catalog entitlements, access requests and subscriptions.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    @app.middleware("http")
    async def bind_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(AccessDeskError)
    async def accessdesk_error_handler(request: Request, exc: AccessDeskError):
        if exc.status_code >= 500:
            log.error("request.failed", path=request.url.path, code=exc.code, error=exc.message)
        else:
            log.info("request.rejected", path=request.url.path, code=exc.code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(
            "Request validation failed", details={"errors": jsonable_encoder(exc.errors())}
        )
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # Auth routes
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness: the entity store and the session revocation list must answer."""
        checks = {"database": await database_ready(), "redis": await redis_ready()}
        if not all(checks.values()):
            return JSONResponse(status_code=503, content={"status": "unavailable", "checks": checks})
        return {"status": "ready", "checks": checks}

    @app.on_event("startup")
    async def on_startup():
        log.info("accessdesk.starting", debug=settings.debug, backend=engine.dialect.name)
        if engine.dialect.name == "sqlite":
            await init_db()

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("accessdesk.shutting_down")
        await close_redis()
        await dispose_db()

    return app


app = create_app()
