"""Insight engine: read records, compile a profile, analyze it and persist the result."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

import structlog

from insight_service.analytics.orchestrator import AnalysisOrchestrator
from insight_service.analytics.profile_compiler import compile_profile
from insight_service.core.errors import InsufficientData, PersistenceFailure
from insight_service.notifications.events import (
    INSIGHTS_GENERATED,
    SUGGESTION_STATUS_CHANGED,
    EventBus,
)
from insight_service.schemas.analysis import (
    AnalysisOutput,
    Insight,
    Suggestion,
    SuggestionStatus,
)
from insight_service.schemas.profile import StudentPerformanceProfile
from insight_service.store.insight_store import InsightStore
from insight_service.store.record_reader import RecordReader

logger = structlog.get_logger()


@dataclass
class AnalysisRun:
    """Outcome of one generate call."""
    student_id: str
    profile: StudentPerformanceProfile
    output: AnalysisOutput


@dataclass
class _InFlightRun:
    task: asyncio.Task
    waiters: int = 0


class InsightEngine:
    """Entry point for generating and managing a student's insights and suggestions.

    Concurrent ``generate`` calls for the same student share one pipeline run,
    so a double submit never writes duplicate rows. The run is cancelled only
    when every caller waiting on it has been cancelled.
    """

    def __init__(
        self,
        reader: RecordReader,
        store: InsightStore,
        orchestrator: AnalysisOrchestrator,
        events: Optional[EventBus] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.reader = reader
        self.store = store
        self.orchestrator = orchestrator
        self.events = events or EventBus()
        self.clock = clock or datetime.utcnow
        self._in_flight: Dict[str, _InFlightRun] = {}

    async def generate(self, student_id: str, allow_empty: bool = True) -> AnalysisRun:
        """Run the full pipeline for a student, joining a run already in flight."""
        entry = self._in_flight.get(student_id)

        if entry is None:
            entry = _InFlightRun(task=asyncio.create_task(self._run(student_id, allow_empty)))
            self._in_flight[student_id] = entry
            entry.task.add_done_callback(lambda _task: self._release(student_id, entry))
        else:
            logger.info("Joining in-flight analysis", student_id=student_id)

        entry.waiters += 1
        try:
            return await asyncio.shield(entry.task)
        except asyncio.CancelledError:
            if entry.waiters == 1 and not entry.task.done():
                logger.info("Analysis abandoned by all callers", student_id=student_id)
                entry.task.cancel()
            raise
        finally:
            entry.waiters -= 1

    async def persist(self, student_id: str, output: AnalysisOutput) -> AnalysisOutput:
        """Store a run's output. Safe to call again after a ``PersistenceFailure``."""
        return await self.store.persist_analysis(student_id, output)

    async def mark_insight_read(self, insight_id: str) -> Insight:
        return await self.store.mark_insight_read(insight_id)

    async def set_suggestion_status(
        self,
        suggestion_id: str,
        status: SuggestionStatus,
        effectiveness_rating: Optional[int] = None
    ) -> Suggestion:
        """Complete or dismiss a suggestion and announce the change."""
        suggestion = await self.store.set_suggestion_status(
            suggestion_id, status, effectiveness_rating
        )

        await self.events.publish(SUGGESTION_STATUS_CHANGED, {
            "student_id": suggestion.user_id,
            "suggestion_id": suggestion.id,
            "status": suggestion.status.value,
            "effectiveness_rating": suggestion.effectiveness_rating
        })
        return suggestion

    async def list_insights(self, student_id: str, unread_only: bool = False, limit: int = 50) -> List[Insight]:
        return await self.store.list_insights(student_id, unread_only=unread_only, limit=limit)

    async def list_suggestions(
        self,
        student_id: str,
        status: Optional[SuggestionStatus] = SuggestionStatus.ACTIVE,
        limit: int = 50
    ) -> List[Suggestion]:
        return await self.store.list_suggestions(student_id, status=status, limit=limit)

    async def _run(self, student_id: str, allow_empty: bool) -> AnalysisRun:
        # Analyzer and store logs from this task carry the student id
        structlog.contextvars.bind_contextvars(student_id=student_id)
        snapshot = await self.reader.read_snapshot(student_id)

        if snapshot.is_empty and not allow_empty:
            raise InsufficientData(student_id)

        profile = compile_profile(snapshot, self.clock())
        output = await self.orchestrator.analyze(profile)

        try:
            stored = await self.persist(student_id, output)
        except PersistenceFailure as e:
            raise PersistenceFailure(
                e.operation,
                e.detail,
                unsaved=AnalysisRun(student_id=student_id, profile=profile, output=output)
            ) from e

        logger.info(
            "Insights generated",
            student_id=student_id,
            origin=stored.origin.value,
            insights=len(stored.insights),
            suggestions=len(stored.suggestions)
        )

        await self.events.publish(INSIGHTS_GENERATED, {
            "student_id": student_id,
            "origin": stored.origin.value,
            "insight_ids": [insight.id for insight in stored.insights],
            "suggestion_ids": [suggestion.id for suggestion in stored.suggestions]
        })

        return AnalysisRun(student_id=student_id, profile=profile, output=stored)

    def _release(self, student_id: str, entry: _InFlightRun):
        if self._in_flight.get(student_id) is entry:
            del self._in_flight[student_id]
