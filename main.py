import time
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import AuthenticationFailure, CampusAssistantError
from app.core.logging_config import setup_logging, get_logger, RequestLogger
from app.core.middleware import SecurityHeadersMiddleware
from app.core.rate_limit import limiter
from app.db.database import Database
from app.services.storage import UploadStorage
from app.api.routes import auth, documents, study

logger = get_logger(__name__)
request_logger = RequestLogger(get_logger("campus_assistant.requests"))


def _cors_origins(settings: Settings) -> list[str]:
    if settings.allowed_origins:
        return [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if settings.environment == "production":
        return [settings.frontend_url]
    return ["http://localhost:5173", "http://localhost:8000", settings.frontend_url]


def create_app(
    settings: Settings = default_settings,
    database: Database | None = None,
    storage: UploadStorage | None = None,
) -> FastAPI:
    """
    Build the API application.

    The database and upload storage are owned by the returned app: opened on
    startup and closed on shutdown. Tests pass their own instances.
    """
    database = database or Database(settings.database_url)
    storage = storage or UploadStorage(settings.upload_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.open()
        database.create_all()
        storage.open()
        logger.info("Startup complete")
        yield
        storage.close()
        database.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Document upload, chat, summaries and quizzes for students",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(CampusAssistantError)
    async def campus_assistant_error_handler(request: Request, exc: CampusAssistantError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.__cause__ or exc}")
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationFailure) else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": errors})

    # Global exception handler: logs full tracebacks for 500 errors
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}\n"
            f"{traceback.format_exc()}"
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests with timing."""
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        request_logger.log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=(time.time() - start_time) * 1000,
            client_ip=client_ip,
            user_email=getattr(request.state, "user_email", None),
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(auth.router, prefix="/api")
    app.include_router(documents.router, prefix="/api")
    app.include_router(study.router, prefix="/api")
    logger.info("API routes registered at /api")

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    return app


setup_logging(
    app_name="campus_assistant",
    log_level=default_settings.log_level,
    environment=default_settings.environment,
    enable_console=True,
    enable_file=default_settings.log_to_file,
)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=default_settings.debug)
