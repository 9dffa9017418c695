import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rbac_api.core.bootstrap import bootstrap_app
from rbac_api.core.config import Settings, get_settings
from rbac_api.core.container import ServiceContainer
from rbac_api.core.middlewares import request_logging_middleware, security_headers_middleware
from rbac_api.core.models import AppError
from rbac_api.core.schemas import ApiResponse
from rbac_api.db import DatabaseManager
from rbac_api.db.seeds import seed_rbac

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, data=None) -> JSONResponse:
    body = ApiResponse.error(status_code, message, data)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    # Drop the leading "body"/"query"/"path" segment
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "invalid value")
    return f"Invalid input: {field}: {message}" if field else f"Invalid input: {message}"


def register_exception_handlers(app: FastAPI, settings: Settings):

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _envelope(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler with security considerations.
        """
        tb = traceback.format_exc()

        # Log the full error server-side
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        # In production, don't expose traceback to clients
        data = None if settings.is_production else {"errorType": exc.__class__.__name__, "traceback": tb}
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", data)


def create_app(settings: Optional[Settings] = None, db_manager: Optional[DatabaseManager] = None) -> FastAPI:
    """
    Build the application and every service it uses.

    Nothing is shared through module globals: the container built here is
    handed to the routers and stored on ``app.state.container``.
    """
    settings = settings or get_settings()
    container = ServiceContainer(settings, db_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Handles application startup and shutdown events, ensuring the schema
        and seed data exist and the connection pool is released on exit.
        """
        logger.info("Starting application...")

        if settings.CREATE_TABLES_ON_STARTUP:
            logger.info("Creating database tables...")
            await container.db_manager.create_all()

        if settings.SEED_ON_STARTUP:
            await seed_rbac(container.session_factory)

        yield

        logger.info("Shutting down application...")
        await container.db_manager.dispose()
        logger.info("Database pool disconnected.")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        version=settings.VERSION,
        lifespan=lifespan,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    # Security headers middleware
    app.middleware("http")(security_headers_middleware)

    # Request logging middleware
    app.middleware("http")(request_logging_middleware)

    register_exception_handlers(app, settings)
    bootstrap_app(app, container)

    # Health check endpoint (useful for monitoring)
    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.VERSION}

    return app


_settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if not _settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0",
                port=8000,
                log_level="info"
        )
