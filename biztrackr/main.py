"""
FastAPI application factory with middleware, CORS, request tracing and
error envelopes.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from biztrackr import __version__
from biztrackr.config import get_settings
from biztrackr.connectors import TextGenerator, build_text_generator
from biztrackr.engine.errors import BizTrackrError
from biztrackr.routers import (
    auth,
    dashboard,
    employees,
    expenses,
    export,
    insights,
    inventory,
    sales,
    system,
    voice,
)
from biztrackr.storage import StorageBackend, create_storage
from biztrackr.utils.logging import configure_logging, get_logger

# Configure logging at module level
configure_logging()
logger = get_logger(__name__)

_HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details=None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Builds the storage backend and text generator once, unless injected.
    """
    settings = get_settings()

    logger.info("application_startup", version=app.version, dev_mode=settings.dev_mode)

    owns_storage = getattr(app.state, "storage", None) is None
    if owns_storage:
        app.state.storage = create_storage(settings)
    owns_generator = not hasattr(app.state, "text_generator")
    if owns_generator:
        app.state.text_generator = build_text_generator(settings)

    yield

    if owns_storage:
        app.state.storage.close()
    if owns_generator and app.state.text_generator is not None:
        app.state.text_generator.close()
    logger.info("application_shutdown")


def create_app(
    storage: Optional[StorageBackend] = None,
    text_generator: Optional[TextGenerator] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        storage: Pre-built storage backend; built from settings at startup when None
        text_generator: Pre-built generator; built from settings at startup when None
    """
    settings = get_settings()

    app = FastAPI(
        title="BizTrackr API",
        description="Small-business bookkeeping dashboard with AI insights",
        version=__version__,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    if storage is not None:
        app.state.storage = storage
    if text_generator is not None:
        app.state.text_generator = text_generator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    # Request tracing middleware
    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request ID and timing to all requests."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            response = _error_response(500, "INTERNAL_ERROR", "Internal server error")

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response

    @app.exception_handler(BizTrackrError)
    async def domain_error_handler(request: Request, exc: BizTrackrError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("request_domain_error", code=exc.code, message=exc.message, path=request.url.path)
        return _error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
        return _error_response(
            400,
            "VALIDATION_ERROR",
            "Request validation failed",
            jsonable_encoder(exc.errors(), custom_encoder={ValueError: str}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    # Health check endpoint
    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {"status": "healthy", "version": app.version}

    # Include routers
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(sales.router, prefix="/api/v1/sales", tags=["Sales"])
    app.include_router(expenses.router, prefix="/api/v1/expenses", tags=["Expenses"])
    app.include_router(employees.router, prefix="/api/v1/employees", tags=["Employees"])
    app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["Inventory"])
    app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(insights.router, prefix="/api/v1", tags=["Insights"])
    app.include_router(export.router, prefix="/api/v1/export", tags=["Export"])
    app.include_router(system.router, prefix="/api/v1/system", tags=["System"])
    app.include_router(voice.router, prefix="/api/v1/voice", tags=["Voice"])

    logger.info("application_configured", routers_count=9)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "biztrackr.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
