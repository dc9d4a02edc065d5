"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from storefront_admin import __version__
from storefront_admin.api import admin, health
from storefront_admin.config import settings
from storefront_admin.errors import AdminAuthError
from storefront_admin.middleware.monitoring import MonitoringMiddleware, record_auth_failure
from storefront_admin.middleware.rate_limit import limiter
from storefront_admin.services.session_store import build_session_store
from storefront_admin.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info(
        f"Storefront admin service starting up (session store: {settings.SESSION_STORE})",
        extra={"action": "startup"},
    )
    yield
    logger.info("Storefront admin service shutting down")


app = FastAPI(
    title="Storefront Admin",
    description="Admin sessions for the grocery storefront back office",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# One registry per application; endpoints reach it through get_session_store
app.state.session_store = build_session_store(settings.SESSION_STORE)
app.state.limiter = limiter

# ===== Middleware Setup =====

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.METRICS_ENABLED:
    app.add_middleware(MonitoringMiddleware)

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(admin.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "storefront-admin",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

@app.exception_handler(AdminAuthError)
async def admin_auth_error_handler(request: Request, exc: AdminAuthError):
    """Render admin auth failures in the {success, message, code} envelope"""
    record_auth_failure(exc.code)
    logger.info(
        f"Admin auth rejected: {exc.message}",
        extra={
            "code": exc.code,
            "request_id": getattr(request.state, "request_id", None),
        }
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={"request_id": getattr(request.state, "request_id", None)}
    )
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "code": "RATE_LIMIT_EXCEEDED",
            "message": "Too many login attempts. Please try again later.",
            "detail": str(exc.detail)
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"request_id": getattr(request.state, "request_id", None)},
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "code": "INTERNAL_SERVER_ERROR",
            "message": "An unexpected error occurred. Please contact support."
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront_admin.main:app", host=settings.HOST, port=settings.PORT)
