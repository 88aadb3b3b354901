"""Unit tests for the Chroma backend, driven through a mocked async client."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from vector_rag.exceptions import CollectionExists, CollectionNotFound


@pytest.fixture(autouse=True)
def _skip_if_chroma_broken() -> None:
    """Skip if chromadb can't be imported in this environment."""
    try:
        from vector_rag.retrieval.chroma_store import ChromaBackend  # noqa: F401
    except Exception:
        pytest.skip("chromadb not importable in this environment")


class NotFoundError(Exception):
    pass


class UniqueConstraintError(Exception):
    pass


def _mock_collection(**results: Any) -> MagicMock:
    coll = MagicMock()
    coll.count = AsyncMock(return_value=results.pop("count", 0))
    for method in ("add", "upsert", "update", "delete", "modify"):
        setattr(coll, method, AsyncMock(return_value=None))
    coll.get = AsyncMock(return_value=results.pop("get", {"ids": []}))
    coll.query = AsyncMock(return_value=results.pop("query", {"ids": [[]]}))
    return coll


def _backend(coll: MagicMock | None = None) -> tuple[Any, MagicMock]:
    from vector_rag.retrieval.chroma_store import ChromaBackend

    client = MagicMock()
    client.get_collection = AsyncMock(return_value=coll or _mock_collection())
    client.create_collection = AsyncMock()
    client.delete_collection = AsyncMock()
    client.list_collections = AsyncMock(return_value=[])
    client.heartbeat = AsyncMock(return_value=1)
    return ChromaBackend(client), client


# ── Where-clause builder ───────────────────────────────────────────────


class TestBuildChromaWhere:
    def test_single_key(self) -> None:
        from vector_rag.retrieval.chroma_store import _build_chroma_where

        assert _build_chroma_where({"source": "a.md"}) == {"source": {"$eq": "a.md"}}

    def test_multiple_keys_produce_and(self) -> None:
        from vector_rag.retrieval.chroma_store import _build_chroma_where

        where = _build_chroma_where({"type": "a", "page": 5})
        assert where == {"$and": [{"type": {"$eq": "a"}}, {"page": {"$eq": 5}}]}

    def test_none_when_empty(self) -> None:
        from vector_rag.retrieval.chroma_store import _build_chroma_where

        assert _build_chroma_where({}) is None
        assert _build_chroma_where(None) is None


# ── Error translation ──────────────────────────────────────────────────


class TestTranslateError:
    def test_not_found_by_class(self) -> None:
        from vector_rag.retrieval.chroma_store import _translate_error

        assert isinstance(_translate_error(NotFoundError("boom"), "docs"), CollectionNotFound)

    def test_not_found_by_message(self) -> None:
        from vector_rag.retrieval.chroma_store import _translate_error

        err = _translate_error(ValueError("Collection docs does not exist."), "docs")
        assert isinstance(err, CollectionNotFound)
        assert err.collection == "docs"

    def test_exists(self) -> None:
        from vector_rag.retrieval.chroma_store import _translate_error

        assert isinstance(_translate_error(UniqueConstraintError("dup"), "docs"), CollectionExists)
        assert isinstance(_translate_error(ValueError("Collection docs already exists"), "docs"), CollectionExists)

    def test_unrelated_error_untouched(self) -> None:
        from vector_rag.retrieval.chroma_store import _translate_error

        assert _translate_error(ConnectionError("refused"), "docs") is None


# ── ChromaBackend ──────────────────────────────────────────────────────


class TestChromaBackend:
    @pytest.mark.asyncio
    async def test_list_collections_accepts_names_and_objects(self) -> None:
        backend, client = _backend()
        client.list_collections.return_value = ["docs", SimpleNamespace(name="notes")]
        assert await backend.list_collections() == ["docs", "notes"]

    @pytest.mark.asyncio
    async def test_create_collection_without_embedding_function(self) -> None:
        backend, client = _backend()
        client.create_collection.return_value = SimpleNamespace(
            name="docs", metadata={"embedding_function": "Fake", "owner": "a"}
        )
        info = await backend.create_collection("docs", {"embedding_function": "Fake", "owner": "a"})
        assert info.name == "docs"
        assert info.embedding_function == "Fake"
        assert client.create_collection.call_args.kwargs["embedding_function"] is None

    @pytest.mark.asyncio
    async def test_create_duplicate_translated(self) -> None:
        backend, client = _backend()
        client.create_collection.side_effect = ValueError("Collection docs already exists")
        with pytest.raises(CollectionExists):
            await backend.create_collection("docs", {})

    @pytest.mark.asyncio
    async def test_missing_collection_translated(self) -> None:
        backend, client = _backend()
        client.get_collection.side_effect = NotFoundError("Collection ghost does not exist.")
        with pytest.raises(CollectionNotFound):
            await backend.count("ghost")

    @pytest.mark.asyncio
    async def test_query_on_empty_collection_skips_chroma(self) -> None:
        coll = _mock_collection(count=0)
        backend, _ = _backend(coll)
        assert await backend.query("docs", [0.1, 0.2], n_results=4) == []
        coll.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_parses_nested_results(self) -> None:
        coll = _mock_collection(
            count=2,
            query={
                "ids": [["r1", "r2"]],
                "documents": [["alpha", "beta"]],
                "metadatas": [[{"type": "a"}, None]],
                "distances": [[0.12, 0.5]],
            },
        )
        backend, _ = _backend(coll)
        hits = await backend.query("docs", [0.1, 0.2], n_results=2, where={"type": "a"})

        assert [h.id for h in hits] == ["r1", "r2"]
        assert hits[0].text == "alpha"
        assert hits[0].metadata == {"type": "a"}
        assert hits[0].distance == pytest.approx(0.12)
        assert hits[1].metadata is None
        assert hits[1].embedding is None
        kwargs = coll.query.call_args.kwargs
        assert kwargs["query_embeddings"] == [[0.1, 0.2]]
        assert kwargs["where"] == {"type": {"$eq": "a"}}

    @pytest.mark.asyncio
    async def test_get_parses_flat_results_and_drops_distances(self) -> None:
        coll = _mock_collection(
            get={
                "ids": ["r1"],
                "documents": ["alpha"],
                "metadatas": [{"type": "a"}],
                "embeddings": [[1, 2]],
            }
        )
        backend, _ = _backend(coll)
        records = await backend.get(
            "docs", ids=["r1"], include=["documents", "metadatas", "distances", "embeddings"]
        )

        assert len(records) == 1
        assert records[0].text == "alpha"
        assert records[0].embedding == [1.0, 2.0]
        assert "distances" not in coll.get.call_args.kwargs["include"]

    @pytest.mark.asyncio
    async def test_add_passes_only_present_fields(self) -> None:
        coll = _mock_collection()
        backend, _ = _backend(coll)
        await backend.add("docs", ["r1"], [[0.1, 0.2]], metadatas=[{}])
        kwargs = coll.add.call_args.kwargs
        assert kwargs == {"ids": ["r1"], "embeddings": [[0.1, 0.2]], "metadatas": [None]}

    @pytest.mark.asyncio
    async def test_delete_empty_ids_is_noop(self) -> None:
        backend, client = _backend()
        await backend.delete("docs", [])
        client.get_collection.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_heartbeat(self) -> None:
        backend, client = _backend()
        assert await backend.heartbeat() is True
        client.heartbeat.side_effect = ConnectionError("refused")
        assert await backend.heartbeat() is False
