"""Enrichment job endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...domain.exceptions import PersistenceError
from ...domain.services.enrichment_runner import EnrichmentRunner
from ...infrastructure.dependencies import get_enrichment_runner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


class ResumeResponse(BaseModel):
    resumed: int
    job_ids: List[str]


@router.post("/resume", response_model=ResumeResponse)
async def resume_jobs(
    max_attempts: int = 3,
    runner: EnrichmentRunner = Depends(get_enrichment_runner),
) -> ResumeResponse:
    """Restart enrichment jobs left pending, running or failed."""
    try:
        jobs = await runner.resume_incomplete(max_attempts=max_attempts)
    except PersistenceError as e:
        logger.error(f"❌ Could not list incomplete jobs: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not resume jobs: {e}")

    return ResumeResponse(resumed=len(jobs), job_ids=[job.id for job in jobs])
