import uuid
from datetime import date, datetime

import pytest

from insight_service.core.database import build_engine, build_session_factory, init_db
from insight_service.schemas.records import (
    AcademicRecord,
    AssessmentType,
    GoalRecord,
    RecordSnapshot,
    StudySessionRecord,
    SubjectMeta,
    UserStats,
)

NOW = datetime(2024, 5, 20, 12, 0, 0)


def new_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def student_id():
    return new_id()


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'insights.db'}")
    await init_db(engine, include_records=True)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def make_mark():
    def _make(score, max_score=100, day=date(2024, 5, 1), subject_id=None, test_type=AssessmentType.QUIZ):
        return AcademicRecord(
            id=new_id(),
            score=score,
            max_score=max_score,
            test_type=test_type,
            test_name="Unit test",
            subject_id=subject_id,
            date=day
        )
    return _make


@pytest.fixture
def make_session():
    def _make(start_time, duration_minutes=60, subject_id=None):
        return StudySessionRecord(
            id=new_id(),
            subject_id=subject_id,
            start_time=start_time,
            duration_minutes=duration_minutes
        )
    return _make


@pytest.fixture
def math_snapshot(student_id, make_mark, make_session):
    """Math marks 60, 65, 70, 90 (oldest first) and three study days."""
    math_id = new_id()
    marks = [
        make_mark(score, day=date(2024, 5, day), subject_id=math_id)
        for score, day in [(60, 1), (65, 5), (70, 10), (90, 15)]
    ]
    sessions = [
        make_session(datetime(2024, 5, 8, 9, 0), 90, math_id),
        make_session(datetime(2024, 5, 14, 15, 30), 60, math_id),
        make_session(datetime(2024, 5, 18, 19, 0), 30, math_id),
    ]
    goals = [
        GoalRecord(id=new_id(), title="Reach 85 in Math", target_score=85, current_score=71, progress=40,
                   subject_id=math_id),
        GoalRecord(id=new_id(), title="Old goal", target_score=70, current_score=70, progress=100,
                   status="completed"),
    ]

    return RecordSnapshot(
        student_id=student_id,
        subjects=[SubjectMeta(id=math_id, name="Math")],
        marks=marks,
        sessions=sessions,
        goals=goals,
        user=UserStats(total_study_time=600, current_streak=5, longest_streak=9)
    )
