"""Suggestion listing and lifecycle endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from insight_service.analytics.insight_engine import InsightEngine
from insight_service.core.dependencies import get_insight_engine
from insight_service.core.errors import InvalidStatusTransition, PersistenceFailure, RecordNotFound
from insight_service.schemas.analysis import Suggestion, SuggestionStatus, SuggestionStatusUpdate

router = APIRouter()


@router.get("/{student_id}", response_model=List[Suggestion])
async def list_suggestions(
    student_id: UUID,
    status: Optional[SuggestionStatus] = Query(SuggestionStatus.ACTIVE),
    limit: int = Query(50, ge=1, le=200),
    engine: InsightEngine = Depends(get_insight_engine)
):
    """Suggestions for a student, active ones by default."""
    try:
        return await engine.list_suggestions(str(student_id), status=status, limit=limit)
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Suggestion storage unavailable")


@router.patch("/{suggestion_id}/status", response_model=Suggestion)
async def update_suggestion_status(
    suggestion_id: UUID,
    update: SuggestionStatusUpdate,
    engine: InsightEngine = Depends(get_insight_engine)
):
    """Complete or dismiss a suggestion."""
    try:
        return await engine.set_suggestion_status(
            str(suggestion_id),
            update.status,
            effectiveness_rating=update.effectiveness_rating
        )
    except RecordNotFound:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Suggestion storage unavailable")
