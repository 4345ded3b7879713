"""Main FastAPI application for Insight Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from insight_service.core.config import settings
from insight_service.core.logging import setup_logging
from insight_service.core.database import build_engine, build_session_factory, check_db, init_db
from insight_service.core.dependencies import build_http_client, build_insight_engine
from insight_service.routers import analysis, insights, suggestions

# Setup structured logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    # Startup
    logger.info("Starting Insight Service", version=settings.APP_VERSION)

    db_engine = build_engine()
    session_factory = build_session_factory(db_engine)
    await init_db(db_engine, include_records=settings.ENVIRONMENT == "development")

    http_client = build_http_client(settings)

    app.state.session_factory = session_factory
    app.state.insight_engine = build_insight_engine(settings, session_factory, http_client)

    logger.info(
        "Insight service initialized successfully",
        remote_analysis=settings.remote_analysis_enabled()
    )

    yield

    # Shutdown
    logger.info("Shutting down Insight Service")
    await http_client.aclose()
    await db_engine.dispose()


app = FastAPI(
    title="Student Insight Service",
    description="Performance profiles, insights and study suggestions for students",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production() else None,
    redoc_url="/redoc" if not settings.is_production() else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware cannot be added once the app has started
if settings.ENABLE_METRICS:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(analysis.router, prefix="/api/analysis", tags=["analysis"])
app.include_router(insights.router, prefix="/api/insights", tags=["insights"])
app.include_router(suggestions.router, prefix="/api/suggestions", tags=["suggestions"])


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check(request: Request):
    """Health check endpoint."""
    health_status = {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
        "checks": {
            "remote_analysis": "enabled" if settings.remote_analysis_enabled() else "disabled"
        }
    }

    try:
        await check_db(request.app.state.session_factory)
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "insight_service.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_config=None  # Use structlog instead
    )
