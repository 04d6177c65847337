"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Owns the provider and store clients (created at startup, closed at shutdown)
- Registers API routes and exception handlers
- No business logic should be written here
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.services.provider import VonageVerifyClient
from app.services.store import SupabaseVerificationStore
from app.api import phone

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates the shared clients once and hands them to request handlers
    through app.state.
    """
    logger.info("🚀 Starting phone verification service...")

    app.state.settings = settings
    app.state.provider = None
    app.state.store = None

    try:
        missing = validate_settings()
        if missing:
            logger.warning(f"⚠️ Missing settings, verification requests will fail: {', '.join(missing)}")
        else:
            logger.info("✅ Configuration validated")

        if settings.provider_configured:
            app.state.provider = VonageVerifyClient.from_settings(settings)
            logger.info("✅ Vonage client ready")

        if settings.store_configured:
            app.state.store = await SupabaseVerificationStore.from_settings(settings)
            logger.info("✅ Supabase client ready")

        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Debug Mode: {settings.DEBUG}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info("🛑 Shutting down phone verification service...")

    if app.state.provider is not None:
        await app.state.provider.aclose()
        logger.info("✅ Vonage client closed")

    if app.state.store is not None:
        await app.state.store.aclose()
        logger.info("✅ Supabase client closed")


app = FastAPI(
    title="Phone Verification API",
    description="SMS phone verification for dating profiles",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,  # Disable docs in production
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


add_exception_handlers(app)

app.include_router(phone.router, prefix=settings.API_PREFIX, tags=["Phone Verification"])


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Reports whether the verification clients are configured.
    """
    checks = {
        "provider": "configured" if getattr(request.app.state, "provider", None) else "missing",
        "store": "configured" if getattr(request.app.state, "store", None) else "missing",
    }
    healthy = all(value == "configured" for value in checks.values())

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": time.time(),
            "environment": settings.ENVIRONMENT,
            "version": "1.0.0",
            "checks": checks,
        }
    )


@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
