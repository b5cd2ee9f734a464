# socdash/main.py - Application assembly
from fastapi import FastAPI, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIASGIMiddleware
import time

from socdash import __version__
from socdash.core.config import settings
from socdash.db.database import get_db, init_db, engine, AsyncSessionLocal

from socdash.core import tracing

from socdash.api.v1.router import api_router

from socdash.middleware.cors import setup_cors_middleware
from socdash.middleware.monitoring import MonitoringMiddleware
from socdash.middleware.rate_limiting import limiter, rate_limit_exceeded_handler

from socdash.exceptions.handlers import register_exception_handlers

from socdash.realtime import SessionRegistry, Broadcaster
from socdash.services.demo_feed import DemoAlertFeed

tracing_enabled = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: schema, session registry and broadcaster, optional demo feed.
    Shutdown: drain live sessions, stop the feed, release the pool.
    """
    tracing.info("SOC dashboard core startup initiated")

    try:
        await init_db()
    except Exception as e:
        tracing.error(f"Database initialization failed: {e}")
        raise

    registry = SessionRegistry()
    app.state.session_registry = registry
    app.state.broadcaster = Broadcaster(registry)

    demo_feed = None
    if settings.DEMO_FEED_ENABLED:
        demo_feed = DemoAlertFeed(AsyncSessionLocal, app.state.broadcaster)
        demo_feed.start()

    tracing.info(f"Environment: {settings.ENVIRONMENT}")
    tracing.info(f"Tracing: {'Enabled' if tracing_enabled else 'Disabled'}")
    tracing.info(f"Rate Limiting: {'Enabled' if settings.RATE_LIMIT_ENABLED else 'Disabled'}")
    tracing.info(f"Broadcast scope: {app.state.broadcaster.scope}")
    tracing.info(f"Strict alert transitions: {settings.STRICT_ALERT_TRANSITIONS}")
    tracing.info(f"SOC dashboard core v{__version__} startup complete")

    yield

    tracing.info("SOC dashboard core shutdown initiated")
    registry.drain()
    if demo_feed is not None:
        await demo_feed.stop()
    await engine.dispose()
    tracing.info("SOC dashboard core shutdown complete")


app = FastAPI(
    title="SOC Dashboard Core",
    description="Alert ingestion, aggregation, incident linkage and live distribution",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT == "development" else None
)

# =============================================================================
# TRACING
# =============================================================================

try:
    tracing_enabled = tracing.setup_tracing(app, engine)
except Exception as e:
    tracing.error(f"Failed to initialize tracing: {e}")
    tracing_enabled = False

# =============================================================================
# MIDDLEWARE (last added runs first)
# =============================================================================

app.add_middleware(MonitoringMiddleware)
setup_cors_middleware(app)

app.state.limiter = limiter
app.add_middleware(SlowAPIASGIMiddleware)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

register_exception_handlers(app)

# =============================================================================
# PROMETHEUS METRICS
# =============================================================================

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/metrics", "/health"],
)
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

# =============================================================================
# API ROUTES
# =============================================================================

app.include_router(api_router, prefix="/api/v1")
tracing.info("API routes configured")


# =============================================================================
# SYSTEM ENDPOINTS
# =============================================================================

@app.get("/health", tags=["System"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check with a database round trip
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        tracing.error(f"Health check failed: {e}", endpoint="/health", error_type=type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )

    registry = getattr(app.state, "session_registry", None)
    return {
        "status": "healthy",
        "service": "socdash",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "trace_id": tracing.get_current_trace_id(),
        "checks": {
            "database": "connected",
            "tracing": "enabled" if tracing_enabled else "disabled",
            "rate_limiting": "enabled" if settings.RATE_LIMIT_ENABLED else "disabled",
            "live_sessions": len(registry) if registry is not None else 0,
        }
    }


@app.get("/", tags=["System"])
async def api_information():
    """API information endpoint"""
    return {
        "message": "SOC Dashboard Core API",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "status": "operational",
        "trace_id": tracing.get_current_trace_id(),
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "alerts": "/api/v1/alerts",
            "incidents": "/api/v1/incidents",
            "threats": "/api/v1/threats",
            "dashboard": "/api/v1/dashboard",
            "assets": "/api/v1/assets",
            "playbooks": "/api/v1/playbooks",
            "compliance": "/api/v1/compliance",
            "live": "/api/v1/live",
            "documentation": "/docs" if settings.ENVIRONMENT == "development" else "Contact administrator"
        },
        "timestamp": time.time()
    }
