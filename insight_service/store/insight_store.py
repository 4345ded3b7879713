"""Persistence for generated insights and suggestions."""

from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from insight_service.core.errors import InvalidStatusTransition, PersistenceFailure, RecordNotFound
from insight_service.models.insights import AIInsight, AISuggestion
from insight_service.schemas.analysis import (
    AnalysisOutput,
    Insight,
    Suggestion,
    SuggestionStatus,
)

logger = structlog.get_logger()

TERMINAL_STATUSES = (SuggestionStatus.COMPLETED, SuggestionStatus.DISMISSED)


class InsightStore:
    """Bulk inserts of analysis output plus single-row lifecycle updates.

    Every analysis run adds new rows; nothing is deduplicated or pruned here.
    Database errors are rolled back and raised as ``PersistenceFailure``.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def persist_insights(self, student_id: str, insights: Sequence[Insight]) -> List[Insight]:
        """Insert all insights for a student in one statement batch."""
        if not insights:
            return []

        async with self.session_factory() as session:
            rows = self._add_insights(session, student_id, insights)
            await self._commit(session, "persist_insights", student_id)
            return [self._to_insight(row) for row in rows]

    async def persist_suggestions(self, student_id: str, suggestions: Sequence[Suggestion]) -> List[Suggestion]:
        """Insert all suggestions for a student in one statement batch."""
        if not suggestions:
            return []

        async with self.session_factory() as session:
            rows = self._add_suggestions(session, student_id, suggestions)
            await self._commit(session, "persist_suggestions", student_id)
            return [self._to_suggestion(row) for row in rows]

    async def persist_analysis(self, student_id: str, output: AnalysisOutput) -> AnalysisOutput:
        """Insert one run's insights and suggestions in a single transaction."""
        async with self.session_factory() as session:
            insight_rows = self._add_insights(session, student_id, output.insights)
            suggestion_rows = self._add_suggestions(session, student_id, output.suggestions)
            await self._commit(session, "persist_analysis", student_id)

            logger.info(
                "Analysis persisted",
                student_id=student_id,
                origin=output.origin.value,
                insights=len(insight_rows),
                suggestions=len(suggestion_rows)
            )

            return AnalysisOutput(
                insights=[self._to_insight(row) for row in insight_rows],
                suggestions=[self._to_suggestion(row) for row in suggestion_rows],
                origin=output.origin
            )

    async def mark_insight_read(self, insight_id: str) -> Insight:
        """Mark an insight read. Reading an already-read insight changes nothing."""
        async with self.session_factory() as session:
            insight = await self._get(session, AIInsight, insight_id, "Insight")

            if insight.is_read:
                return self._to_insight(insight)

            insight.is_read = True
            await self._commit(session, "mark_insight_read", insight.user_id)
            return self._to_insight(insight)

    async def set_suggestion_status(
        self,
        suggestion_id: str,
        status: SuggestionStatus,
        effectiveness_rating: Optional[int] = None
    ) -> Suggestion:
        """Move an active suggestion to completed or dismissed."""
        status = SuggestionStatus(status)

        async with self.session_factory() as session:
            suggestion = await self._get(session, AISuggestion, suggestion_id, "Suggestion")
            current = SuggestionStatus(suggestion.status)

            if current != SuggestionStatus.ACTIVE or status not in TERMINAL_STATUSES:
                raise InvalidStatusTransition(suggestion_id, current.value, status.value)

            suggestion.status = status.value
            suggestion.interaction_count = (suggestion.interaction_count or 0) + 1
            if effectiveness_rating is not None:
                suggestion.effectiveness_rating = effectiveness_rating

            await self._commit(session, "set_suggestion_status", suggestion.user_id)

            logger.info(
                "Suggestion status changed",
                suggestion_id=suggestion_id,
                from_status=current.value,
                to_status=status.value
            )
            return self._to_suggestion(suggestion)

    async def list_insights(self, student_id: str, unread_only: bool = False, limit: int = 50) -> List[Insight]:
        """Newest insights for a student."""
        query = select(AIInsight).where(AIInsight.user_id == student_id)
        if unread_only:
            query = query.where(AIInsight.is_read.is_(False))
        query = query.order_by(AIInsight.created_at.desc()).limit(limit)

        async with self.session_factory() as session:
            rows = await self._fetch(session, query, "list_insights", student_id)
            return [self._to_insight(row) for row in rows]

    async def list_suggestions(
        self,
        student_id: str,
        status: Optional[SuggestionStatus] = SuggestionStatus.ACTIVE,
        limit: int = 50
    ) -> List[Suggestion]:
        """Suggestions for a student, highest confidence first."""
        query = select(AISuggestion).where(AISuggestion.user_id == student_id)
        if status is not None:
            query = query.where(AISuggestion.status == SuggestionStatus(status).value)
        query = query.order_by(
            AISuggestion.confidence_score.desc(),
            AISuggestion.created_at.desc()
        ).limit(limit)

        async with self.session_factory() as session:
            rows = await self._fetch(session, query, "list_suggestions", student_id)
            return [self._to_suggestion(row) for row in rows]

    def _add_insights(self, session: AsyncSession, student_id: str, insights: Sequence[Insight]) -> List[AIInsight]:
        rows = [
            AIInsight(
                user_id=student_id,
                insight_type=insight.insight_type.value,
                title=insight.title,
                content=insight.content,
                confidence_score=insight.confidence_score,
                priority=insight.priority.value,
                is_read=insight.is_read,
                subject_id=insight.subject_id,
                created_at=insight.created_at
            )
            for insight in insights
        ]
        session.add_all(rows)
        return rows

    def _add_suggestions(
        self,
        session: AsyncSession,
        student_id: str,
        suggestions: Sequence[Suggestion]
    ) -> List[AISuggestion]:
        rows = [
            AISuggestion(
                user_id=student_id,
                title=suggestion.title,
                description=suggestion.description,
                type=suggestion.type.value,
                priority=suggestion.priority.value,
                status=suggestion.status.value,
                category=suggestion.category,
                resource_url=suggestion.resource_url,
                estimated_time=suggestion.estimated_time,
                subject_id=suggestion.subject_id,
                ai_generated=suggestion.ai_generated,
                confidence_score=suggestion.confidence_score,
                interaction_count=suggestion.interaction_count,
                effectiveness_rating=suggestion.effectiveness_rating
            )
            for suggestion in suggestions
        ]
        session.add_all(rows)
        return rows

    async def _commit(self, session: AsyncSession, operation: str, student_id: Optional[str]):
        try:
            await session.commit()
        except SQLAlchemyError as e:
            logger.error(operation + " failed", student_id=student_id, error=str(e))
            await session.rollback()
            raise PersistenceFailure(operation, str(e)) from e

    async def _fetch(self, session: AsyncSession, query, operation: str, student_id: str):
        try:
            return (await session.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(operation + " failed", student_id=student_id, error=str(e))
            raise PersistenceFailure(operation, str(e)) from e

    async def _get(self, session: AsyncSession, model, record_id: str, kind: str):
        try:
            row = await session.get(model, record_id)
        except SQLAlchemyError as e:
            logger.error("Lookup failed", kind=kind, record_id=record_id, error=str(e))
            raise PersistenceFailure(f"get_{kind.lower()}", str(e)) from e

        if row is None:
            raise RecordNotFound(kind, record_id)
        return row

    def _to_insight(self, row: AIInsight) -> Insight:
        return Insight(
            id=row.id,
            user_id=row.user_id,
            insight_type=row.insight_type,
            title=row.title,
            content=row.content,
            confidence_score=row.confidence_score,
            priority=row.priority,
            subject_id=row.subject_id,
            is_read=bool(row.is_read),
            created_at=row.created_at
        )

    def _to_suggestion(self, row: AISuggestion) -> Suggestion:
        return Suggestion(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            type=row.type,
            priority=row.priority,
            category=row.category,
            resource_url=row.resource_url,
            estimated_time=row.estimated_time,
            subject_id=row.subject_id,
            confidence_score=row.confidence_score,
            status=row.status,
            ai_generated=bool(row.ai_generated),
            interaction_count=row.interaction_count or 0,
            effectiveness_rating=row.effectiveness_rating
        )
