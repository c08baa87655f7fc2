"""Item endpoints: matching, matches, verification questions and categories."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.exceptions import NotFoundError, PersistenceError
from ...domain.models.job import JobKind
from ...domain.models.match import PotentialMatch
from ...domain.services.categorization_service import CategorizationService
from ...domain.services.enrichment_runner import EnrichmentRunner
from ...domain.services.matching_service import MatchingService
from ...domain.services.question_generation_service import QuestionGenerationService
from ...infrastructure.dependencies import (
    get_categorization_service,
    get_enrichment_runner,
    get_matching_service,
    get_question_generation_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


class MatchingJobResponse(BaseModel):
    """Response for a scheduled matching run."""

    item_id: str
    job_id: str
    status: str


class QuestionsResponse(BaseModel):
    item_id: str
    questions: List[str]


class CategorizeRequest(BaseModel):
    """Request model for category suggestion."""

    title: str = Field(..., description="Item title")
    description: str = Field(default="", description="Item description")


class CategorizeResponse(BaseModel):
    category: Optional[str] = None
    confidence: Optional[float] = None
    available: bool = True


@router.post("/{item_id}/matching", response_model=MatchingJobResponse, status_code=202)
async def trigger_matching(
    item_id: str,
    matching_service: MatchingService = Depends(get_matching_service),
    runner: EnrichmentRunner = Depends(get_enrichment_runner),
) -> MatchingJobResponse:
    """Schedule a background matching run for an item."""
    try:
        await matching_service.get_item(item_id)
        job = await runner.submit(JobKind.MATCH_ITEM, {"item_id": item_id})
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Could not schedule matching for {item_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not schedule matching: {e}")

    return MatchingJobResponse(item_id=item_id, job_id=job.id, status=job.status.value)


@router.get("/{item_id}/matches", response_model=List[PotentialMatch])
async def get_potential_matches(
    item_id: str,
    matching_service: MatchingService = Depends(get_matching_service),
) -> List[PotentialMatch]:
    """Non-dismissed matches for an item, highest confidence first."""
    try:
        return await matching_service.get_potential_matches(item_id)
    except PersistenceError as e:
        logger.error(f"❌ Could not load matches for {item_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not load matches: {e}")


@router.post("/{item_id}/questions/generate", response_model=QuestionsResponse)
async def generate_questions(
    item_id: str,
    persist: bool = False,
    question_service: QuestionGenerationService = Depends(get_question_generation_service),
) -> QuestionsResponse:
    """Suggest verification questions for an item."""
    try:
        questions = await question_service.generate_for_item(item_id, persist=persist)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Could not save questions for {item_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not save questions: {e}")

    return QuestionsResponse(item_id=item_id, questions=questions)


@router.post("/categorize", response_model=CategorizeResponse)
async def categorize_item(
    request: CategorizeRequest,
    categorization_service: CategorizationService = Depends(get_categorization_service),
) -> CategorizeResponse:
    """Suggest a category for a new post."""
    suggestion = await categorization_service.suggest_category(request.title, request.description)
    if suggestion is None:
        return CategorizeResponse(available=False)
    return CategorizeResponse(category=suggestion.category, confidence=suggestion.confidence)
