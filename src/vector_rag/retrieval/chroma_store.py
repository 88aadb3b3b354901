"""Chroma implementation of the storage-backend abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import chromadb

from vector_rag.config import settings
from vector_rag.exceptions import CollectionExists, CollectionNotFound
from vector_rag.retrieval.base import StorageBackend
from vector_rag.retrieval.models import (
    EMBEDDING_FUNCTION_KEY,
    CollectionInfo,
    MetadataFilter,
    Record,
    SearchResult,
)

logger = logging.getLogger(__name__)


def _build_chroma_where(where: MetadataFilter | None) -> dict[str, Any] | None:
    """Convert a conjunctive equality filter to Chroma ``where`` syntax."""
    if not where:
        return None

    clauses: list[dict[str, Any]] = [{key: {"$eq": value}} for key, value in where.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _translate_error(exc: Exception, name: str) -> Exception | None:
    """Map Chroma's collection-state errors onto our taxonomy.

    Chroma signals these with ``NotFoundError`` / ``UniqueConstraintError``
    in recent releases and with plain ``ValueError`` messages in older ones.
    """
    cls_name = type(exc).__name__
    text = str(exc).lower()
    if cls_name == "NotFoundError" or "does not exist" in text or "not found" in text:
        return CollectionNotFound(name)
    if cls_name == "UniqueConstraintError" or "already exists" in text:
        return CollectionExists(name)
    return None


def _column(result: Any, key: str) -> list[Any]:
    value = result.get(key)
    return [] if value is None else list(value)


def _first_row(result: Any, key: str) -> list[Any]:
    """Query results are per-query lists; we always send exactly one query."""
    value = result.get(key)
    if value is None or len(value) == 0:
        return []
    return list(value[0]) if value[0] is not None else []


def _as_floats(vector: Any) -> list[float] | None:
    if vector is None:
        return None
    return [float(x) for x in vector]


def _info(collection: Any) -> CollectionInfo:
    metadata = dict(collection.metadata or {})
    return CollectionInfo(
        name=collection.name,
        metadata=metadata,
        embedding_function=metadata.get(EMBEDDING_FUNCTION_KEY),
    )


class ChromaBackend(StorageBackend):
    """Chroma-backed storage over the async HTTP client.

    Embeddings are always computed by the adapter and passed explicitly, so
    collections are created without a Chroma-side embedding function.

    Parameters
    ----------
    client:
        Pre-built ``chromadb`` async client.  When *None*, one is created on
        first use from *host* / *port* / *ssl* / *headers*.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        ssl: bool = settings.chroma_ssl,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._host = host
        self._port = port
        self._ssl = ssl
        self._headers = headers if headers is not None else dict(settings.chroma_headers)

    async def _get_client(self) -> Any:
        if self._client is None:
            logger.info("Connecting to Chroma at %s:%d", self._host, self._port)
            self._client = await chromadb.AsyncHttpClient(
                host=self._host,
                port=self._port,
                ssl=self._ssl,
                headers=self._headers or None,
            )
        return self._client

    async def _collection(self, name: str) -> Any:
        client = await self._get_client()
        try:
            return await client.get_collection(name=name, embedding_function=None)
        except Exception as exc:
            translated = _translate_error(exc, name)
            if translated is not None:
                raise translated from exc
            raise

    # -- collections ----------------------------------------------------------

    async def create_collection(self, name: str, metadata: dict[str, Any]) -> CollectionInfo:
        client = await self._get_client()
        try:
            collection = await client.create_collection(
                name=name,
                metadata=metadata or None,
                embedding_function=None,
            )
        except Exception as exc:
            translated = _translate_error(exc, name)
            if isinstance(translated, CollectionExists):
                raise translated from exc
            raise
        return _info(collection)

    async def get_collection(self, name: str) -> CollectionInfo:
        return _info(await self._collection(name))

    async def modify_collection(
        self,
        name: str,
        *,
        new_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CollectionInfo:
        collection = await self._collection(name)
        kwargs: dict[str, Any] = {}
        if new_name is not None:
            kwargs["name"] = new_name
        if metadata is not None:
            kwargs["metadata"] = metadata
        try:
            await collection.modify(**kwargs)
        except Exception as exc:
            translated = _translate_error(exc, new_name or name)
            if isinstance(translated, CollectionExists):
                raise translated from exc
            raise
        return await self.get_collection(new_name or name)

    async def delete_collection(self, name: str) -> None:
        client = await self._get_client()
        try:
            await client.delete_collection(name=name)
        except Exception as exc:
            translated = _translate_error(exc, name)
            if isinstance(translated, CollectionNotFound):
                raise translated from exc
            raise

    async def list_collections(self) -> list[str]:
        client = await self._get_client()
        collections = await client.list_collections()
        # Chroma 0.6 returns names; earlier and later releases return objects.
        return [c if isinstance(c, str) else c.name for c in collections]

    # -- records --------------------------------------------------------------

    @staticmethod
    def _record_params(
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]] | None,
        documents: Sequence[str | None] | None,
        metadatas: Sequence[dict[str, Any] | None] | None,
    ) -> dict[str, Any]:
        # Only include fields that are present.
        params: dict[str, Any] = {"ids": list(ids)}
        if embeddings is not None:
            params["embeddings"] = [list(e) for e in embeddings]
        if documents is not None:
            params["documents"] = list(documents)
        if metadatas is not None:
            params["metadatas"] = [m or None for m in metadatas]
        return params

    async def add(
        self,
        collection: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        coll = await self._collection(collection)
        params = self._record_params(ids, embeddings, documents, metadatas)
        logger.debug("Chroma add to %r: %d record(s)", collection, len(ids))
        await coll.add(**params)

    async def upsert(
        self,
        collection: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        coll = await self._collection(collection)
        await coll.upsert(**self._record_params(ids, embeddings, documents, metadatas))

    async def update(
        self,
        collection: str,
        ids: Sequence[str],
        *,
        embeddings: Sequence[Sequence[float]] | None = None,
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        coll = await self._collection(collection)
        await coll.update(**self._record_params(ids, embeddings, documents, metadatas))

    async def get(
        self,
        collection: str,
        *,
        ids: Sequence[str] | None = None,
        where: MetadataFilter | None = None,
        include: Sequence[str] = ("documents", "metadatas"),
    ) -> list[Record]:
        coll = await self._collection(collection)
        include = [f for f in include if f != "distances"]
        result = await coll.get(
            ids=list(ids) if ids is not None else None,
            where=_build_chroma_where(where),
            include=include,
        )

        record_ids = _column(result, "ids")
        docs = _column(result, "documents")
        metas = _column(result, "metadatas")
        embeds = _column(result, "embeddings")

        records: list[Record] = []
        for i, record_id in enumerate(record_ids):
            records.append(
                Record(
                    id=record_id,
                    text=docs[i] if i < len(docs) else None,
                    metadata=dict(metas[i]) if i < len(metas) and metas[i] is not None else None,
                    embedding=_as_floats(embeds[i]) if i < len(embeds) else None,
                )
            )
        return records

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        if not ids:
            return
        coll = await self._collection(collection)
        await coll.delete(ids=list(ids))

    async def query(
        self,
        collection: str,
        query_embedding: Sequence[float],
        *,
        n_results: int,
        where: MetadataFilter | None = None,
        include: Sequence[str] = ("documents", "metadatas", "distances"),
    ) -> list[SearchResult]:
        coll = await self._collection(collection)
        if await coll.count() == 0:
            return []

        results = await coll.query(
            query_embeddings=[list(query_embedding)],
            n_results=n_results,
            where=_build_chroma_where(where),
            include=list(include),
        )

        ids = _first_row(results, "ids")
        docs = _first_row(results, "documents")
        metas = _first_row(results, "metadatas")
        dists = _first_row(results, "distances")
        embeds = _first_row(results, "embeddings")

        hits: list[SearchResult] = []
        for i, record_id in enumerate(ids):
            hits.append(
                SearchResult(
                    id=record_id,
                    text=docs[i] if i < len(docs) else None,
                    metadata=dict(metas[i]) if i < len(metas) and metas[i] is not None else None,
                    distance=float(dists[i]) if i < len(dists) and dists[i] is not None else None,
                    embedding=_as_floats(embeds[i]) if i < len(embeds) else None,
                )
            )
        return hits

    async def count(self, collection: str) -> int:
        coll = await self._collection(collection)
        return await coll.count()

    async def heartbeat(self) -> bool:
        try:
            client = await self._get_client()
            await client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
