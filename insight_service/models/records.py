"""Academic record tables owned by the record store (read-only here)."""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, DateTime, Date, ForeignKey, Index, Uuid
import uuid

from insight_service.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Per-student aggregate stats maintained by the timer subsystem."""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    total_study_time = Column(Integer, default=0)  # minutes
    current_streak = Column(Integer, default=0)
    longest_streak = Column(Integer, default=0)
    preferred_study_time = Column(String)


class Subject(Base):
    """Subject metadata."""
    __tablename__ = "subjects"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id = Column(Uuid(as_uuid=False), nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String)


class Mark(Base):
    """A single graded test result."""
    __tablename__ = "marks"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id = Column(Uuid(as_uuid=False), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=False), ForeignKey("subjects.id"))
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    test_type = Column(String, nullable=False)  # quiz, exam, assignment, project
    test_name = Column(String)
    date = Column(Date, nullable=False)

    __table_args__ = (
        Index("ix_marks_user_date", "user_id", "date"),
    )


class StudySession(Base):
    """A completed study session recorded by the timer."""
    __tablename__ = "study_sessions"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id = Column(Uuid(as_uuid=False), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=False), ForeignKey("subjects.id"))
    start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    duration_minutes = Column(Integer, default=0)

    __table_args__ = (
        Index("ix_study_sessions_user_start", "user_id", "start_time"),
    )


class Goal(Base):
    """Student academic goal."""
    __tablename__ = "goals"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id = Column(Uuid(as_uuid=False), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=False), ForeignKey("subjects.id"))
    title = Column(String, nullable=False)
    target_score = Column(Float, default=0.0)
    current_score = Column(Float, default=0.0)
    progress = Column(Float, default=0.0)
    status = Column(String, default="active")  # active, completed, paused, cancelled
