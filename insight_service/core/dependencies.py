"""Shared dependencies for Insight Service."""

from typing import Optional

import httpx
import structlog
from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from insight_service.analytics.fallback_analyzer import FallbackAnalyzer
from insight_service.analytics.insight_engine import InsightEngine
from insight_service.analytics.orchestrator import AnalysisOrchestrator
from insight_service.analytics.remote_analyzer import RemoteAnalyzerClient
from insight_service.core.config import Settings
from insight_service.notifications.events import EventBus
from insight_service.store.insight_store import InsightStore
from insight_service.store.record_reader import RecordReader

logger = structlog.get_logger()


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client for the remote analyzer."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.ANALYZER_TIMEOUT_SECONDS),
        headers={
            "Content-Type": "application/json",
            "User-Agent": f"{settings.SERVICE_NAME}/{settings.APP_VERSION}"
        }
    )


def build_insight_engine(
    settings: Settings,
    session_factory: async_sessionmaker,
    http_client: Optional[httpx.AsyncClient] = None,
    events: Optional[EventBus] = None
) -> InsightEngine:
    """Wire the engine and its collaborators from settings."""
    primary = None
    if settings.remote_analysis_enabled() and http_client is not None:
        primary = RemoteAnalyzerClient(
            http_client,
            base_url=settings.ANALYZER_BASE_URL,
            api_key=settings.ANALYZER_API_KEY,
            model=settings.ANALYZER_MODEL,
            temperature=settings.ANALYZER_TEMPERATURE,
            max_tokens=settings.ANALYZER_MAX_TOKENS
        )
    else:
        logger.info("Remote analysis disabled, local rules only")

    orchestrator = AnalysisOrchestrator(
        primary,
        FallbackAnalyzer(),
        timeout_seconds=settings.ANALYZER_TIMEOUT_SECONDS
    )

    return InsightEngine(
        reader=RecordReader(session_factory),
        store=InsightStore(session_factory),
        orchestrator=orchestrator,
        events=events
    )


def get_insight_engine(request: Request) -> InsightEngine:
    """Engine built during application startup."""
    return request.app.state.insight_engine
