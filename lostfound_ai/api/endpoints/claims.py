"""Claim endpoints."""

import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...domain.exceptions import NotFoundError, PersistenceError
from ...domain.models.claim import Claim, ClaimSubmission, split_analysis
from ...domain.services.claim_service import ClaimService
from ...infrastructure.dependencies import get_claim_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])


class ClaimSubmittedResponse(BaseModel):
    claim_id: str


class ClaimResponse(BaseModel):
    """A claim with its analysis split for display."""

    claim: Claim
    display: Dict[str, str]


@router.post("", response_model=ClaimSubmittedResponse, status_code=201)
async def submit_claim(
    submission: ClaimSubmission,
    claim_service: ClaimService = Depends(get_claim_service),
) -> ClaimSubmittedResponse:
    """Submit a claim; AI verification continues in the background."""
    try:
        claim_id = await claim_service.submit_claim(submission)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Claim submission failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Claim submission failed: {e}")

    return ClaimSubmittedResponse(claim_id=claim_id)


@router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: str,
    claim_service: ClaimService = Depends(get_claim_service),
) -> ClaimResponse:
    try:
        claim = await claim_service.get_claim(claim_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Could not load claim {claim_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not load claim: {e}")

    return ClaimResponse(claim=claim, display=split_analysis(claim.ai_analysis))
