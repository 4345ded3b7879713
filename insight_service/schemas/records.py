"""Read-only academic record snapshots consumed by the profile compiler."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, model_validator

from insight_service.schemas.base import CamelModel


class AssessmentType(str, Enum):
    """Kind of graded assessment."""
    QUIZ = "quiz"
    EXAM = "exam"
    ASSIGNMENT = "assignment"
    PROJECT = "project"


class GoalStatus(str, Enum):
    """Goal lifecycle status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class AcademicRecord(CamelModel):
    """A graded mark. Percentage is always derived from score and max score."""

    id: Optional[str] = None
    score: float
    max_score: float
    test_type: AssessmentType
    test_name: Optional[str] = None
    subject_id: Optional[str] = None
    date: date

    @model_validator(mode="after")
    def check_score_bounds(self):
        if self.max_score <= 0:
            raise ValueError("max_score must be positive")
        if not 0 <= self.score <= self.max_score:
            raise ValueError("score must be between 0 and max_score")
        return self

    @property
    def percentage(self) -> float:
        return self.score / self.max_score * 100


class StudySessionRecord(CamelModel):
    """Study session created by the timer subsystem."""

    id: Optional[str] = None
    subject_id: Optional[str] = None
    start_time: datetime
    duration_minutes: int = Field(default=0, ge=0)


class GoalRecord(CamelModel):
    """Academic goal set by the student."""

    id: Optional[str] = None
    title: str
    target_score: float = 0.0
    current_score: float = 0.0
    progress: float = 0.0
    subject_id: Optional[str] = None
    status: GoalStatus = GoalStatus.ACTIVE


class SubjectMeta(CamelModel):
    id: str
    name: str
    color: Optional[str] = None


class UserStats(CamelModel):
    """Aggregates kept on the users table."""

    total_study_time: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    preferred_study_time: Optional[str] = None


class RecordSnapshot(CamelModel):
    """Everything the engine knows about one student at read time."""

    student_id: str
    subjects: List[SubjectMeta] = Field(default_factory=list)
    marks: List[AcademicRecord] = Field(default_factory=list)
    sessions: List[StudySessionRecord] = Field(default_factory=list)
    goals: List[GoalRecord] = Field(default_factory=list)
    user: Optional[UserStats] = None

    @property
    def is_empty(self) -> bool:
        """True when there are no marks, sessions or goals at all."""
        return not (self.marks or self.sessions or self.goals)
