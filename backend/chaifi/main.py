"""
Chai-Fi POS - Main FastAPI Application
"""
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from contextlib import asynccontextmanager
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import logging

from chaifi.config import settings
from chaifi.error_handlers import register_error_handlers
from chaifi.services.summary_service import SummaryEngine
from chaifi.storage import init_storage
from chaifi.utils.logging_config import configure_logging
from chaifi.api import transactions, summaries, data, menu, creditors, reports

logger = logging.getLogger(__name__)

# Rate limiter instance (shared with route-level decorators)
limiter = Limiter(key_func=get_remote_address, default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting up %s...", settings.APP_NAME)
    storage = await init_storage(settings)
    app.state.storage = storage
    app.state.summary_engine = SummaryEngine(storage)
    yield
    # Shutdown
    logger.info("Shutting down...")
    await storage.close()


app = FastAPI(
    title="Chai-Fi POS API",
    description="Café point-of-sale transactions with rolling daily, weekly and monthly summaries",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(app)

# Trusted Host Middleware
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
    expose_headers=["X-Summaries-Stale"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# Include routers
app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(summaries.router, prefix="/api/summaries", tags=["Summaries"])
app.include_router(data.router, prefix="/api/data", tags=["Data"])
app.include_router(menu.router, prefix="/api/menu", tags=["Menu"])
app.include_router(creditors.router, prefix="/api/creditors", tags=["Creditors"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])


@app.get("/health")
@app.get("/api/health")
async def health_check(request: Request):
    """Health check endpoint"""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        return {"status": "starting", "storage": None, "fallback": False}
    return {
        "status": "degraded" if storage.fallback_reason else "healthy",
        "storage": storage.name,
        "fallback": storage.fallback_reason is not None,
        "fallbackReason": storage.fallback_reason,
    }
