"""Match endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...domain.exceptions import NotFoundError, PersistenceError
from ...domain.models.match import PotentialMatch
from ...domain.services.matching_service import MatchingService
from ...infrastructure.dependencies import get_matching_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["matches"])


@router.post("/{match_id}/dismiss", response_model=PotentialMatch)
async def dismiss_match(
    match_id: str,
    matching_service: MatchingService = Depends(get_matching_service),
) -> PotentialMatch:
    """Dismiss a match for the viewing side only."""
    try:
        return await matching_service.dismiss_match(match_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Could not dismiss match {match_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not dismiss match: {e}")
