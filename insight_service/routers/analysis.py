"""Analysis endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
import structlog

from insight_service.analytics.insight_engine import InsightEngine
from insight_service.core.dependencies import get_insight_engine
from insight_service.core.errors import InsufficientData, PersistenceFailure, RecordStoreError
from insight_service.schemas.analysis import AnalysisOutput

logger = structlog.get_logger()
router = APIRouter()


@router.post("/{student_id}", response_model=AnalysisOutput)
async def generate_analysis(
    student_id: UUID,
    allow_empty: bool = Query(True),
    engine: InsightEngine = Depends(get_insight_engine)
):
    """Generate and store fresh insights and suggestions for a student."""
    try:
        run = await engine.generate(str(student_id), allow_empty=allow_empty)
    except InsufficientData as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (PersistenceFailure, RecordStoreError) as e:
        logger.error("Analysis request failed", student_id=str(student_id), error=str(e))
        raise HTTPException(status_code=503, detail="Insight storage unavailable")

    return run.output
