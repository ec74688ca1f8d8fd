from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from projectdesk.core.config import settings
from projectdesk.core.database import init_db, close_db
from projectdesk.core.exceptions import ProjectDeskError
from projectdesk.core.logging_config import logger
from projectdesk.core.middleware import RequestLoggingMiddleware
from projectdesk.core.rate_limiter import limiter, rate_limit_exceeded_handler
from projectdesk.api.v1.router import api_router
from projectdesk.services.wizard_sessions import WizardSessionRegistry
import projectdesk.models  # noqa: F401  registers tables on Base.metadata


def validate_critical_config():
    """Fail fast in production on missing secrets; warn elsewhere"""
    errors = []
    warnings = []

    if not settings.SECRET_KEY or settings.SECRET_KEY == "CHANGE_ME":
        errors.append("SECRET_KEY is not set or using default value")
    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == "CHANGE_ME":
        errors.append("JWT_SECRET_KEY is not set or using default value")

    if not settings.ANTHROPIC_API_KEY:
        warnings.append("ANTHROPIC_API_KEY is not set - documentation improvement will fail")
    if not settings.GOOGLE_CLIENT_ID:
        warnings.append("GOOGLE_CLIENT_ID is not set - Google sign-in disabled")

    if errors and settings.ENVIRONMENT == "production":
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in errors + warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Configuration validated")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Storage mode: {settings.STORAGE_MODE}")
    logger.info("=" * 60)

    validate_critical_config()
    await init_db()
    logger.info("[Startup] Database tables ready")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Project requests, quotations and delivery tracking for clients, admins and developers",
    version="1.0.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

app.state.wizard_sessions = WizardSessionRegistry()

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(ProjectDeskError)
async def projectdesk_exception_handler(request: Request, exc: ProjectDeskError):
    if exc.status_code >= 500:
        logger.log_failure(exc, operation=f"{request.method} {request.url.path}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

if settings.STORAGE_MODE == "local":
    app.mount("/files", StaticFiles(directory=settings.LOCAL_STORAGE_DIR, check_dir=False), name="files")


def serve():
    """Console entry point: run the API with uvicorn"""
    import uvicorn
    uvicorn.run("projectdesk.main:app", host="0.0.0.0", port=8000, reload=settings.is_dev_mode())
