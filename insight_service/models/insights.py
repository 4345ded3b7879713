"""Generated insight and suggestion tables."""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, DateTime, Boolean, Text, Index, Uuid
import uuid

from insight_service.core.database import Base


class AIInsight(Base):
    """Observational statement produced by an analysis run."""
    __tablename__ = "ai_insights"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Uuid(as_uuid=False), nullable=False, index=True)
    insight_type = Column(String, nullable=False)  # performance, study_pattern, prediction, recommendation
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    confidence_score = Column(Float, default=0.0)  # 0-100
    priority = Column(String, default="medium")  # high, medium, low
    is_read = Column(Boolean, default=False)
    subject_id = Column(Uuid(as_uuid=False))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_ai_insights_user_read", "user_id", "is_read"),
    )


class AISuggestion(Base):
    """Actionable recommendation with an active/completed/dismissed lifecycle."""
    __tablename__ = "suggestions"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Uuid(as_uuid=False), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String, nullable=False)  # study_method, resource, improvement, practice, time_management
    priority = Column(String, default="medium")
    status = Column(String, default="active")  # active, completed, dismissed
    category = Column(String, nullable=False)
    resource_url = Column(String)
    estimated_time = Column(String)
    subject_id = Column(Uuid(as_uuid=False))
    ai_generated = Column(Boolean, default=True)
    confidence_score = Column(Float, default=0.0)
    interaction_count = Column(Integer, default=0)
    effectiveness_rating = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_suggestions_user_status", "user_id", "status"),
    )
