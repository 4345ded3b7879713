"""Analyzer output, persisted insights/suggestions and API payloads."""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, Field

from insight_service.schemas.base import CamelModel


class InsightType(str, Enum):
    PERFORMANCE = "performance"
    STUDY_PATTERN = "study_pattern"
    PREDICTION = "prediction"
    RECOMMENDATION = "recommendation"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SuggestionType(str, Enum):
    STUDY_METHOD = "study_method"
    RESOURCE = "resource"
    IMPROVEMENT = "improvement"
    PRACTICE = "practice"
    TIME_MANAGEMENT = "time_management"


class SuggestionStatus(str, Enum):
    """Suggestion lifecycle. Completed and dismissed are terminal."""
    ACTIVE = "active"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class AnalysisOrigin(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


def _require_number(value):
    # "85" and true must not be coerced into scores
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("confidence score must be a number")
    return value


ConfidenceScore = Annotated[
    float,
    BeforeValidator(_require_number),
    Field(ge=0, le=100, allow_inf_nan=False),
]


class InsightDraft(CamelModel):
    """Insight as produced by an analyzer, before lifecycle fields are set."""

    insight_type: InsightType
    title: str
    content: str
    confidence_score: ConfidenceScore
    priority: Priority
    subject_id: Optional[str] = None


class SuggestionDraft(CamelModel):
    """Suggestion as produced by an analyzer, before lifecycle fields are set."""

    title: str
    description: str
    type: SuggestionType
    priority: Priority
    category: str
    resource_url: Optional[str] = None
    estimated_time: Optional[str] = None
    subject_id: Optional[str] = None
    confidence_score: ConfidenceScore


class RemoteAnalysis(CamelModel):
    """Response body expected from the remote analyzer. Both arrays are required."""

    insights: List[InsightDraft]
    suggestions: List[SuggestionDraft]


class Insight(InsightDraft):
    id: Optional[str] = None
    user_id: Optional[str] = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Suggestion(SuggestionDraft):
    id: Optional[str] = None
    user_id: Optional[str] = None
    status: SuggestionStatus = SuggestionStatus.ACTIVE
    ai_generated: bool = True
    interaction_count: int = Field(default=0, ge=0)
    effectiveness_rating: Optional[int] = 0


class AnalysisOutput(CamelModel):
    """Normalized result of one analysis, entirely remote or entirely local."""

    insights: List[Insight] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)
    origin: AnalysisOrigin


class SuggestionStatusUpdate(CamelModel):
    """Request body for a suggestion status change."""

    status: SuggestionStatus
    effectiveness_rating: Optional[int] = Field(default=None, ge=1, le=5)
