"""Data models for Insight Service."""

from insight_service.models.records import User, Subject, Mark, StudySession, Goal
from insight_service.models.insights import AIInsight, AISuggestion

__all__ = [
    "User",
    "Subject",
    "Mark",
    "StudySession",
    "Goal",
    "AIInsight",
    "AISuggestion"
]
