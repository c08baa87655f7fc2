"""PostgREST (Supabase REST) implementation of the data store ports."""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python

from ...domain.exceptions import NotFoundError, PersistenceError
from ...domain.models.claim import Claim
from ...domain.models.item import Item, ItemStatus, Question
from ...domain.models.job import EnrichmentJob, JobStatus
from ...domain.models.match import Candidate, PotentialMatch
from ...domain.models.notification import Notification
from ...domain.ports.store import ClaimMutator, DataStore

logger = logging.getLogger(__name__)

RETURN_REPRESENTATION = {"Prefer": "return=representation"}
UPSERT = {"Prefer": "resolution=merge-duplicates,return=representation"}


class PostgrestConfig(BaseModel):
    """Configuration for the PostgREST store."""

    url: str = Field(default="", description="REST endpoint, e.g. https://<project>.supabase.co/rest/v1")
    api_key: str = Field(default="", description="Service role key")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    claim_update_retries: int = Field(default=5, description="Optimistic update attempts per claim write")
    jobs_table: str = Field(default="enrichment_jobs", description="Outbox table name")

    @classmethod
    def from_env(cls) -> "PostgrestConfig":
        """Create configuration from environment variables."""
        url = os.getenv("STORE_URL", "")
        if not url and os.getenv("SUPABASE_URL"):
            url = os.getenv("SUPABASE_URL").rstrip("/") + "/rest/v1"
        return cls(
            url=url,
            api_key=os.getenv("STORE_API_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
        )


class PostgrestStore(DataStore):
    """Talks to a Supabase-style PostgREST endpoint over httpx.

    Claim updates use optimistic concurrency: the PATCH is filtered on the
    ``updated_at`` value that was read, and an empty result means another
    writer got there first, so the read-modify-write is retried.
    """

    def __init__(self, config: Optional[PostgrestConfig] = None, client: Optional[httpx.AsyncClient] = None):
        self._config = config or PostgrestConfig()
        self._client = client

    async def initialize(self) -> None:
        if not self._config.url:
            raise PersistenceError("STORE_URL (or SUPABASE_URL) is not configured")
        self._get_client()
        logger.info(f"🗄️ Using PostgREST store at {self._config.url}")

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def backend_name(self) -> str:
        return "postgrest"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.url,
                timeout=self._config.timeout,
                headers={
                    "apikey": self._config.api_key,
                    "Authorization": f"Bearer {self._config.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        client = self._get_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=to_jsonable_python(json) if json is not None else None,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"{method} {path} failed with HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise PersistenceError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        return response.json()

    async def _select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = await self._request("GET", f"/{table}", params={"select": "*", **params})
        return rows or []

    async def _insert(self, table: str, row: Any, params: Optional[Dict[str, Any]] = None, headers=None) -> List[Dict[str, Any]]:
        rows = await self._request("POST", f"/{table}", params=params, json=row, headers=headers or RETURN_REPRESENTATION)
        return rows or []

    async def _patch(self, table: str, params: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = await self._request("PATCH", f"/{table}", params=params, json=values, headers=RETURN_REPRESENTATION)
        return rows or []

    # Items

    async def get_item(self, item_id: str) -> Optional[Item]:
        rows = await self._select("items", {"id": f"eq.{item_id}"})
        return Item.model_validate(rows[0]) if rows else None

    async def insert_item(self, item: Item) -> Item:
        rows = await self._insert("items", item.model_dump(mode="json", exclude_none=True))
        return Item.model_validate(rows[0]) if rows else item

    async def update_item_embedding(self, item_id: str, embedding: List[float]) -> None:
        await self._patch("items", {"id": f"eq.{item_id}"}, {"embedding": embedding})

    async def match_items(
        self,
        query_embedding: List[float],
        match_threshold: float,
        match_count: int,
        opposite_status: ItemStatus,
        exclude_user_id: str,
    ) -> List[Candidate]:
        rows = await self._request("POST", "/rpc/match_items", json={
            "query_embedding": query_embedding,
            "match_threshold": match_threshold,
            "match_count": match_count,
            "opposite_status": opposite_status.value,
            "exclude_user_id": exclude_user_id,
        })
        return [
            Candidate(item=Item.model_validate(row), similarity=row.get("similarity"))
            for row in rows or []
        ]

    async def recent_items(self, status: ItemStatus, exclude_user_id: str, limit: int) -> List[Item]:
        rows = await self._select("items", {
            "status": f"eq.{status.value}",
            "is_active": "eq.true",
            "user_id": f"neq.{exclude_user_id}",
            "order": "created_at.desc",
            "limit": str(limit),
        })
        return [Item.model_validate(row) for row in rows]

    async def items_without_embedding(self, limit: int) -> List[Item]:
        rows = await self._select("items", {"embedding": "is.null", "limit": str(limit)})
        return [Item.model_validate(row) for row in rows]

    async def get_questions(self, item_id: str) -> List[Question]:
        rows = await self._select("questions", {"item_id": f"eq.{item_id}"})
        return [Question.model_validate(row) for row in rows]

    async def insert_questions(self, questions: List[Question]) -> List[Question]:
        if not questions:
            return []
        rows = await self._insert("questions", [q.model_dump(mode="json") for q in questions])
        return [Question.model_validate(row) for row in rows]

    # Matches

    async def upsert_match(
        self,
        item_id: str,
        matched_item_id: str,
        confidence_score: int,
        reasoning: Optional[str],
    ) -> PotentialMatch:
        rows = await self._insert(
            "potential_matches",
            {
                "item_id": item_id,
                "matched_item_id": matched_item_id,
                "confidence_score": confidence_score,
                "reasoning": reasoning,
                "updated_at": datetime.now(timezone.utc),
            },
            params={"on_conflict": "item_id,matched_item_id"},
            headers=UPSERT,
        )
        if not rows:
            raise PersistenceError(f"Upsert of match {item_id} -> {matched_item_id} returned no row")
        return PotentialMatch.model_validate(rows[0])

    async def list_matches(self, item_id: str, include_dismissed: bool = False) -> List[PotentialMatch]:
        params = {"item_id": f"eq.{item_id}", "order": "confidence_score.desc"}
        if not include_dismissed:
            params["is_dismissed"] = "eq.false"
        rows = await self._select("potential_matches", params)
        return [PotentialMatch.model_validate(row) for row in rows]

    async def dismiss_match(self, match_id: str) -> Optional[PotentialMatch]:
        rows = await self._patch(
            "potential_matches",
            {"id": f"eq.{match_id}"},
            {"is_dismissed": True, "updated_at": datetime.now(timezone.utc)},
        )
        return PotentialMatch.model_validate(rows[0]) if rows else None

    # Claims

    async def insert_claim(self, claim: Claim) -> Claim:
        rows = await self._insert("claims", claim.model_dump(mode="json"))
        return Claim.model_validate(rows[0]) if rows else claim

    async def get_claim(self, claim_id: str) -> Optional[Claim]:
        rows = await self._select("claims", {"id": f"eq.{claim_id}"})
        return Claim.model_validate(rows[0]) if rows else None

    async def update_claim(self, claim_id: str, mutate: ClaimMutator) -> Claim:
        for attempt in range(1, self._config.claim_update_retries + 1):
            current = await self.get_claim(claim_id)
            if current is None:
                raise NotFoundError("Claim", claim_id)

            patch = dict(mutate(current))
            patch["updated_at"] = datetime.now(timezone.utc)
            rows = await self._patch(
                "claims",
                {"id": f"eq.{claim_id}", "updated_at": f"eq.{current.updated_at.isoformat()}"},
                patch,
            )
            if rows:
                return Claim.model_validate(rows[0])
            logger.info(f"🔄 Claim {claim_id} changed concurrently, retrying (attempt {attempt})")

        raise PersistenceError(
            f"Claim {claim_id} kept changing; gave up after {self._config.claim_update_retries} attempts"
        )

    # Notifications

    async def insert_notification(self, notification: Notification) -> Notification:
        row = notification.model_dump(mode="json", exclude={"id", "created_at"})
        rows = await self._insert("notifications", row)
        return Notification.model_validate(rows[0]) if rows else notification

    # Jobs

    async def insert_job(self, job: EnrichmentJob) -> EnrichmentJob:
        rows = await self._insert(self._config.jobs_table, job.model_dump(mode="json"))
        return EnrichmentJob.model_validate(rows[0]) if rows else job

    async def update_job(self, job: EnrichmentJob) -> EnrichmentJob:
        values = job.model_dump(mode="json", exclude={"id", "created_at"})
        values["updated_at"] = datetime.now(timezone.utc)
        rows = await self._patch(self._config.jobs_table, {"id": f"eq.{job.id}"}, values)
        if not rows:
            raise PersistenceError(f"Job not found: {job.id}")
        return EnrichmentJob.model_validate(rows[0])

    async def list_jobs(self, statuses: List[JobStatus]) -> List[EnrichmentJob]:
        wanted = ",".join(status.value for status in statuses)
        rows = await self._select(self._config.jobs_table, {
            "status": f"in.({wanted})",
            "order": "created_at.asc",
        })
        return [EnrichmentJob.model_validate(row) for row in rows]
