"""Dependency injection configuration for hexagonal architecture."""

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..domain.exceptions import ConfigurationAbsentError
from ..domain.models.job import JobKind
from ..domain.ports.ai_provider import AIProvider
from ..domain.ports.embedding_provider import EmbeddingProvider
from ..domain.ports.store import DataStore
from ..domain.services.candidate_retriever import CandidateRetriever
from ..domain.services.categorization_service import CategorizationService
from ..domain.services.claim_service import ClaimService
from ..domain.services.claim_verification_service import ClaimVerificationService
from ..domain.services.enrichment_runner import EnrichmentRunner
from ..domain.services.match_persistence import MatchPersistence
from ..domain.services.match_scorer import MatchScorer
from ..domain.services.matching_service import MatchingConfig, MatchingService
from ..domain.services.photo_verification_service import PhotoVerificationService
from ..domain.services.question_generation_service import QuestionGenerationService
from .ai.factory import AIProviderFactory
from .embeddings.jina_adapter import JinaEmbeddingAdapter, JinaEmbeddingConfig
from .storage.memory_store import MemoryStore
from .storage.postgrest_store import PostgrestConfig, PostgrestStore

# Load environment variables from .env file if it exists
load_dotenv()

logger = logging.getLogger(__name__)


def create_store(backend: Optional[str] = None) -> DataStore:
    """Create the store named by ``backend`` or STORE_BACKEND."""
    backend = (backend or os.getenv("STORE_BACKEND", "memory")).lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "postgrest":
        return PostgrestStore(PostgrestConfig.from_env())
    raise ValueError(f"Unknown STORE_BACKEND '{backend}' (expected memory or postgrest)")


class ServiceContainer:
    """Service container for dependency injection.

    Services are built in ``startup`` because provider initialization is
    async. A provider without an API key is left as None and the services
    that need it run in their unavailable mode.
    """

    def __init__(
        self,
        store: Optional[DataStore] = None,
        ai_provider: Optional[AIProvider] = None,
        embedder: Optional[EmbeddingProvider] = None,
        matching_config: Optional[MatchingConfig] = None,
    ):
        self._store = store
        self._ai_provider = ai_provider
        self._embedder = embedder
        self._matching_config = matching_config
        self._ai_factory = AIProviderFactory()
        self._services: Dict[str, Any] = {}
        self._started = False

    async def _setup_ai_provider(self) -> Optional[AIProvider]:
        logger.info("🤖 Setting up AI provider...")
        try:
            provider = await self._ai_factory.create_provider("groq")
        except ConfigurationAbsentError:
            logger.warning("⚠️ LLM_API_KEY not configured - AI matching and verification disabled")
            return None
        logger.info(f"✅ AI provider ready: {provider.provider_name}")
        return provider

    def _setup_embedder(self) -> Optional[EmbeddingProvider]:
        embedder = JinaEmbeddingAdapter(JinaEmbeddingConfig.from_env())
        if not embedder.is_available:
            logger.warning("⚠️ EMBEDDING_API_KEY not configured - using recency-based candidate search")
        return embedder

    async def startup(self) -> None:
        """Create providers, the store and all services."""
        if self._started:
            return
        logger.info("🔧 Setting up service container...")

        if self._store is None:
            self._store = create_store()
        await self._store.initialize()

        if self._ai_provider is None:
            self._ai_provider = await self._setup_ai_provider()
        if self._embedder is None:
            self._embedder = self._setup_embedder()
        config = self._matching_config or MatchingConfig.from_env()

        store = self._store
        runner = EnrichmentRunner(store)
        retriever = CandidateRetriever(
            store,
            self._embedder,
            match_threshold=config.vector_match_threshold,
            match_count=config.vector_match_count,
            fallback_limit=config.fallback_candidate_limit,
        )
        scorer = MatchScorer(
            self._ai_provider,
            min_confidence=config.min_confidence,
            max_matches=config.max_results,
        )
        persistence = MatchPersistence(store, store, min_confidence=config.min_confidence)
        matching_service = MatchingService(store, retriever, scorer, persistence, self._embedder)
        verification_service = ClaimVerificationService(store, self._ai_provider)
        photo_service = PhotoVerificationService(store, self._ai_provider)

        runner.register_handler(
            JobKind.MATCH_ITEM,
            lambda payload: matching_service.run_matching(payload["item_id"]),
        )
        runner.register_handler(
            JobKind.VERIFY_CLAIM,
            lambda payload: verification_service.verify_claim(payload["claim_id"]),
        )
        runner.register_handler(
            JobKind.VERIFY_PHOTOS,
            lambda payload: photo_service.verify_photos(payload["claim_id"]),
        )

        self._services = {
            'store': store,
            'enrichment_runner': runner,
            'matching_service': matching_service,
            'claim_verification_service': verification_service,
            'photo_verification_service': photo_service,
            'claim_service': ClaimService(store, runner),
            'question_generation_service': QuestionGenerationService(store, self._ai_provider),
            'categorization_service': CategorizationService(self._ai_provider),
        }
        self._started = True
        logger.info("✅ Service container setup completed")

    async def shutdown(self) -> None:
        """Wait for background work, then release providers and the store."""
        if not self._started:
            return
        await self.get_enrichment_runner().drain(timeout=30)
        await self._ai_factory.shutdown()
        if self._embedder is not None:
            await self._embedder.shutdown()
        await self._store.shutdown()
        self._started = False

    def get(self, service_name: str) -> Any:
        """Get a service by name.

        Raises:
            KeyError: If service not found
        """
        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found")
        return self._services[service_name]

    def health(self) -> Dict[str, Any]:
        return {
            "ai_provider": self._ai_provider is not None and self._ai_provider.is_available,
            "embedding_provider": self._embedder is not None and self._embedder.is_available,
            "store": self._store.backend_name if self._store is not None else None,
            "jobs_in_flight": self.get_enrichment_runner().in_flight if self._started else 0,
        }

    def get_store(self) -> DataStore:
        return self.get('store')

    def get_enrichment_runner(self) -> EnrichmentRunner:
        return self.get('enrichment_runner')

    def get_matching_service(self) -> MatchingService:
        return self.get('matching_service')

    def get_claim_service(self) -> ClaimService:
        return self.get('claim_service')

    def get_question_generation_service(self) -> QuestionGenerationService:
        return self.get('question_generation_service')

    def get_categorization_service(self) -> CategorizationService:
        return self.get('categorization_service')


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance."""
    return ServiceContainer()


# Convenience functions for FastAPI dependency injection
def get_matching_service() -> MatchingService:
    """FastAPI dependency for the matching service."""
    return get_service_container().get_matching_service()


def get_claim_service() -> ClaimService:
    """FastAPI dependency for the claim service."""
    return get_service_container().get_claim_service()


def get_enrichment_runner() -> EnrichmentRunner:
    """FastAPI dependency for the enrichment runner."""
    return get_service_container().get_enrichment_runner()


def get_question_generation_service() -> QuestionGenerationService:
    """FastAPI dependency for the question generation service."""
    return get_service_container().get_question_generation_service()


def get_categorization_service() -> CategorizationService:
    """FastAPI dependency for the categorization service."""
    return get_service_container().get_categorization_service()
