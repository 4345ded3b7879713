"""Derived, per-request student performance profile."""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from insight_service.schemas.base import CamelModel
from insight_service.schemas.records import AssessmentType


class TimeOfDay(str, Enum):
    """Study-time buckets, in tie-break order."""
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"
    NIGHT = "Night"


class SubjectProfile(CamelModel):
    id: str
    name: str
    average_score: float = 0.0
    recent_scores: List[float] = Field(default_factory=list, max_length=5)
    improvement_rate: float = 0.0
    study_time_minutes: int = 0


class RecentMark(CamelModel):
    id: Optional[str] = None
    score: float
    percentage: float
    test_type: AssessmentType
    test_name: Optional[str] = None
    date: date
    subject_name: str


class GoalSummary(CamelModel):
    id: Optional[str] = None
    title: str
    target_score: float
    current_score: float
    progress: float
    subject_name: Optional[str] = None


class StudyPatterns(CamelModel):
    total_study_time: int = 0
    weekly_study_hours: float = 0.0
    preferred_study_times: List[TimeOfDay] = Field(default_factory=list, max_length=3)
    consistency_score: float = 0.0
    current_streak: int = 0


class StudentPerformanceProfile(CamelModel):
    """Statistical summary of one student. Built fresh for every analysis."""

    subjects: List[SubjectProfile] = Field(default_factory=list)
    overall_average: float = 0.0
    recent_marks: List[RecentMark] = Field(default_factory=list, max_length=10)
    study_patterns: StudyPatterns = Field(default_factory=StudyPatterns)
    goals: List[GoalSummary] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready request body with camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)
