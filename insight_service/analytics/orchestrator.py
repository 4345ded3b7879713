"""Choose between remote and local analysis and normalize the result."""

import asyncio
from datetime import datetime
from typing import Callable, List, Optional, Sequence

import structlog

from insight_service.analytics.fallback_analyzer import FallbackAnalyzer
from insight_service.analytics.remote_analyzer import RemoteAnalyzerClient
from insight_service.analytics.result import AnalysisResult, Err, Ok
from insight_service.core.errors import RemoteAnalysisUnavailable
from insight_service.schemas.analysis import (
    AnalysisOrigin,
    AnalysisOutput,
    Insight,
    InsightDraft,
    Suggestion,
    SuggestionDraft,
)
from insight_service.schemas.profile import StudentPerformanceProfile

logger = structlog.get_logger()


class AnalysisOrchestrator:
    """Runs the remote analyzer once, falling back to local rules on any failure.

    A result is either entirely remote or entirely local. The remote path is
    never retried within one call.
    """

    def __init__(
        self,
        primary: Optional[RemoteAnalyzerClient],
        fallback: FallbackAnalyzer,
        timeout_seconds: float = 20.0,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.primary = primary
        self.fallback = fallback
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    async def analyze(self, profile: StudentPerformanceProfile) -> AnalysisOutput:
        """Analyze a profile and return normalized insights and suggestions."""
        result = await self._run_primary(profile)

        if isinstance(result, Ok):
            return self._normalize(
                result.value.insights,
                result.value.suggestions,
                AnalysisOrigin.REMOTE
            )

        logger.warning(
            "Remote analysis failed, using fallback",
            error_kind=type(result.error).__name__,
            reason=result.error.reason
        )
        insights, suggestions = self.fallback.analyze(profile)
        return self._normalize(insights, suggestions, AnalysisOrigin.LOCAL)

    async def _run_primary(self, profile: StudentPerformanceProfile) -> AnalysisResult:
        if self.primary is None:
            return Err(RemoteAnalysisUnavailable("remote analysis disabled"))

        try:
            return await asyncio.wait_for(self.primary.analyze(profile), self.timeout_seconds)
        except asyncio.TimeoutError:
            return Err(RemoteAnalysisUnavailable(f"no response within {self.timeout_seconds}s"))
        except Exception as e:
            logger.error("Remote analyzer raised unexpectedly", error=str(e), exc_info=True)
            return Err(RemoteAnalysisUnavailable(f"unexpected error: {e!r}"))

    def _normalize(
        self,
        insights: Sequence[InsightDraft],
        suggestions: Sequence[SuggestionDraft],
        origin: AnalysisOrigin
    ) -> AnalysisOutput:
        """Attach lifecycle defaults; nothing from the analyzer overrides them."""
        now = self.clock()

        normalized_insights: List[Insight] = [
            Insight(**draft.model_dump(), is_read=False, created_at=now)
            for draft in insights
        ]
        normalized_suggestions: List[Suggestion] = [
            Suggestion(
                **draft.model_dump(),
                ai_generated=origin == AnalysisOrigin.REMOTE,
                interaction_count=0,
                effectiveness_rating=0
            )
            for draft in suggestions
        ]

        return AnalysisOutput(
            insights=normalized_insights,
            suggestions=normalized_suggestions,
            origin=origin
        )
