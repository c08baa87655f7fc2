"""Tests for candidate retrieval."""

import pytest

from lostfound_ai.domain.exceptions import ProviderTransientError
from lostfound_ai.domain.models.item import ItemStatus
from lostfound_ai.domain.services.candidate_retriever import CandidateRetriever

from tests.fakes import FakeEmbedder, make_item


@pytest.mark.asyncio
async def test_vector_path_embeds_and_stores(store):
    """A missing embedding is computed, stored back and used for the search."""
    lost = make_item(user_id="owner")
    found = make_item(user_id="finder", status=ItemStatus.FOUND, embedding=[0.9, 0.1])
    await store.insert_item(lost)
    await store.insert_item(found)
    embedder = FakeEmbedder([1.0, 0.0])

    retriever = CandidateRetriever(store, embedder)
    result = await retriever.find_candidates(lost)

    assert result.search_method == "vector"
    assert [c.item.id for c in result.candidates] == [found.id]
    assert result.candidates[0].similarity > 0.9
    assert (await store.get_item(lost.id)).embedding == [1.0, 0.0]
    assert embedder.texts[0].startswith("Black wallet. ")


@pytest.mark.asyncio
async def test_stored_embedding_is_reused(store):
    lost = make_item(embedding=[1.0, 0.0])
    await store.insert_item(lost)
    await store.insert_item(make_item(user_id="finder", status=ItemStatus.FOUND, embedding=[1.0, 0.0]))
    embedder = FakeEmbedder()

    result = await CandidateRetriever(store, embedder).find_candidates(lost)

    assert result.search_method == "vector"
    assert embedder.texts == []


@pytest.mark.asyncio
async def test_provider_error_falls_back(store):
    lost = make_item(user_id="owner")
    found = make_item(user_id="finder", status=ItemStatus.FOUND)
    mine = make_item(user_id="owner", status=ItemStatus.FOUND)
    for item in (lost, found, mine):
        await store.insert_item(item)

    retriever = CandidateRetriever(store, FakeEmbedder(error=ProviderTransientError("down")))
    result = await retriever.find_candidates(lost)

    assert result.search_method == "legacy"
    assert [c.item.id for c in result.candidates] == [found.id]
    assert result.candidates[0].similarity is None


@pytest.mark.asyncio
async def test_no_vector_hits_falls_back(store):
    lost = make_item(user_id="owner", embedding=[1.0, 0.0])
    orthogonal = make_item(user_id="finder", status=ItemStatus.FOUND, embedding=[0.0, 1.0])
    await store.insert_item(lost)
    await store.insert_item(orthogonal)

    result = await CandidateRetriever(store, FakeEmbedder()).find_candidates(lost)

    assert result.search_method == "legacy"
    assert [c.item.id for c in result.candidates] == [orthogonal.id]


@pytest.mark.asyncio
async def test_without_embedder_uses_recent_items(store):
    lost = make_item(user_id="owner")
    await store.insert_item(lost)
    for index in range(25):
        await store.insert_item(make_item(user_id=f"finder-{index}", status=ItemStatus.FOUND))

    result = await CandidateRetriever(store, None, fallback_limit=20).find_candidates(lost)

    assert result.search_method == "legacy"
    assert len(result) == 20
