"""Read-only access to a student's academic records."""

from typing import List

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
import structlog

from insight_service.core.errors import RecordStoreError
from insight_service.models.records import Goal, Mark, StudySession, Subject, User
from insight_service.schemas.records import (
    AcademicRecord,
    GoalRecord,
    RecordSnapshot,
    StudySessionRecord,
    SubjectMeta,
    UserStats,
)

logger = structlog.get_logger()


class RecordReader:
    """Loads a ``RecordSnapshot`` from the record store tables."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def read_snapshot(self, student_id: str) -> RecordSnapshot:
        """Load every record belonging to one student."""
        try:
            async with self.session_factory() as session:
                subjects = (await session.execute(
                    select(Subject).where(Subject.user_id == student_id)
                )).scalars().all()

                marks = (await session.execute(
                    select(Mark).where(Mark.user_id == student_id).order_by(Mark.date.desc())
                )).scalars().all()

                sessions = (await session.execute(
                    select(StudySession).where(
                        StudySession.user_id == student_id
                    ).order_by(StudySession.start_time.desc())
                )).scalars().all()

                goals = (await session.execute(
                    select(Goal).where(Goal.user_id == student_id)
                )).scalars().all()

                user = await session.get(User, student_id)
        except SQLAlchemyError as e:
            logger.error("Failed to read academic records", student_id=student_id, error=str(e))
            raise RecordStoreError(f"Could not read records for student {student_id}") from e

        return RecordSnapshot(
            student_id=student_id,
            subjects=[SubjectMeta(id=s.id, name=s.name, color=s.color) for s in subjects],
            marks=self._valid_marks(student_id, marks),
            sessions=[
                StudySessionRecord(
                    id=s.id,
                    subject_id=s.subject_id,
                    start_time=s.start_time,
                    duration_minutes=max(s.duration_minutes or 0, 0)
                )
                for s in sessions
            ],
            goals=[
                GoalRecord(
                    id=g.id,
                    title=g.title,
                    target_score=g.target_score or 0.0,
                    current_score=g.current_score or 0.0,
                    progress=g.progress or 0.0,
                    subject_id=g.subject_id,
                    status=g.status or "active"
                )
                for g in goals
            ],
            user=UserStats(
                total_study_time=user.total_study_time or 0,
                current_streak=user.current_streak or 0,
                longest_streak=user.longest_streak or 0,
                preferred_study_time=user.preferred_study_time
            ) if user else None
        )

    def _valid_marks(self, student_id: str, rows: List[Mark]) -> List[AcademicRecord]:
        """Convert mark rows, skipping any with an out-of-range score or a custom test type."""
        marks = []
        for row in rows:
            try:
                marks.append(AcademicRecord(
                    id=row.id,
                    score=row.score,
                    max_score=row.max_score,
                    # Stored types are free text; "Exam " still counts as an exam
                    test_type=(row.test_type or "").strip().lower(),
                    test_name=row.test_name,
                    subject_id=row.subject_id,
                    date=row.date
                ))
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid mark",
                    student_id=student_id,
                    mark_id=row.id,
                    error=str(e)
                )
        return marks
