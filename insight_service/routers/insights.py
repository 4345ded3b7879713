"""Insight listing and read-state endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from insight_service.analytics.insight_engine import InsightEngine
from insight_service.core.dependencies import get_insight_engine
from insight_service.core.errors import PersistenceFailure, RecordNotFound
from insight_service.schemas.analysis import Insight

router = APIRouter()


@router.get("/{student_id}", response_model=List[Insight])
async def list_insights(
    student_id: UUID,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    engine: InsightEngine = Depends(get_insight_engine)
):
    """Newest insights for a student."""
    try:
        return await engine.list_insights(str(student_id), unread_only=unread_only, limit=limit)
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Insight storage unavailable")


@router.post("/{insight_id}/read", response_model=Insight)
async def mark_insight_read(
    insight_id: UUID,
    engine: InsightEngine = Depends(get_insight_engine)
):
    """Mark an insight as read."""
    try:
        return await engine.mark_insight_read(str(insight_id))
    except RecordNotFound:
        raise HTTPException(status_code=404, detail="Insight not found")
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Insight storage unavailable")
