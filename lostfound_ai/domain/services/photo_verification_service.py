"""Service checking whether claim photos are original captures."""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import NotFoundError, ProviderError
from ..models.claim import (
    PHOTO_SUMMARY_PREFIX,
    PHOTO_VERIFICATION_KEY,
    Claim,
    PhotoAnalysis,
    PhotoVerificationResult,
)
from ..ports.ai_provider import AIProvider
from ..ports.store import DataStore
from ..prompts import PhotoPrompts

logger = logging.getLogger(__name__)

AUTHENTIC = "Photos appear authentic"
NOT_ORIGINAL = "Photos may not be original"


def aggregate_photo_analyses(analyses: List[PhotoAnalysis]) -> PhotoVerificationResult:
    """Fold per-photo verdicts into the claim-level summary."""
    total = len(analyses)
    originals = sum(1 for analysis in analyses if analysis.is_likely_original)
    average = round(sum(analysis.confidence for analysis in analyses) / total) if total else 0

    red_flags: Dict[str, None] = {}
    for analysis in analyses:
        for flag in analysis.red_flags:
            red_flags.setdefault(flag, None)

    return PhotoVerificationResult(
        total_photos=total,
        likely_original_count=originals,
        average_confidence=average,
        overall_assessment=AUTHENTIC if originals * 2 >= total else NOT_ORIGINAL,
        analyses=analyses,
        red_flags_summary=list(red_flags),
    )


class PhotoVerificationService:
    """One vision request per photo; a photo that cannot be analyzed counts as original with zero confidence."""

    def __init__(self, store: DataStore, ai_provider: Optional[AIProvider] = None, temperature: float = 0.1):
        self.store = store
        self.ai = ai_provider
        self.temperature = temperature

    @property
    def is_available(self) -> bool:
        return self.ai is not None

    async def verify_photos(self, claim_id: str) -> Optional[PhotoVerificationResult]:
        """Analyze a claim's photos and merge the summary into the claim.

        Returns None without touching the claim when it has no photos or
        when no provider is configured.
        """
        claim = await self.store.get_claim(claim_id)
        if claim is None:
            raise NotFoundError("Claim", claim_id)

        if not claim.photo_urls:
            logger.info(f"📷 Claim {claim_id} has no photos - nothing to verify")
            return None
        if not self.is_available:
            logger.warning(f"⚠️ No chat provider configured - photo check skipped for claim {claim_id}")
            return None

        logger.info(f"📷 Verifying {len(claim.photo_urls)} photos for claim {claim_id}")
        result = await self.analyze(claim.photo_urls)
        await self.store.update_claim(claim_id, lambda current: self._result_patch(current, result))
        logger.info(f"✅ {result.summary_line()}")
        return result

    async def analyze(self, photo_urls: List[str]) -> PhotoVerificationResult:
        analyses = [await self._analyze_photo(url) for url in photo_urls]
        return aggregate_photo_analyses(analyses)

    async def _analyze_photo(self, url: str) -> PhotoAnalysis:
        try:
            raw = await self.ai.complete_json(
                PhotoPrompts.SYSTEM,
                PhotoPrompts.build(url),
                temperature=self.temperature,
                image_url=url,
            )
        except ProviderError as e:
            logger.error(f"❌ Error analyzing photo {url}: {e}")
            return PhotoAnalysis(url=url, is_likely_original=True, confidence=0, analysis="Analysis failed")

        return self.parse_photo(raw, url)

    def parse_photo(self, raw: str, url: str) -> PhotoAnalysis:
        fallback = PhotoAnalysis(url=url, is_likely_original=True, confidence=0, analysis="Could not analyze image")
        try:
            data: Any = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Failed to parse photo analysis for {url}: {str(raw)[:200]}")
            return fallback
        if not isinstance(data, dict):
            return fallback

        try:
            return PhotoAnalysis.model_validate({**data, "url": url})
        except ValidationError:
            logger.warning(f"⚠️ Invalid photo analysis for {url}: {str(raw)[:200]}")
            return fallback

    @staticmethod
    def _result_patch(current: Claim, result: PhotoVerificationResult) -> Dict[str, Any]:
        lines = [
            line for line in current.ai_analysis.splitlines()
            if not line.startswith(PHOTO_SUMMARY_PREFIX)
        ]
        text = "\n".join(lines).strip()
        summary = result.summary_line()

        return {
            "ai_analysis": f"{text}\n\n{summary}" if text else summary,
            "ai_question_analysis": {
                **current.ai_question_analysis,
                PHOTO_VERIFICATION_KEY: result.model_dump(mode="json"),
            },
        }
