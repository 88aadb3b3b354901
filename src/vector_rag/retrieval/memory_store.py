"""In-process storage backend.

Keeps collections and records in dictionaries so the adapter can be
exercised without a running vector database.  Filtering is a plain
conjunctive equality scan and ``query`` does **not** rank by similarity:
it returns the first stored records that pass the filter, with no
distance.  Use it as a test double only.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from vector_rag.exceptions import CollectionExists, CollectionNotFound
from vector_rag.retrieval.base import StorageBackend
from vector_rag.retrieval.models import (
    EMBEDDING_FUNCTION_KEY,
    CollectionInfo,
    MetadataFilter,
    Record,
    SearchResult,
    matches_filter,
)

logger = logging.getLogger(__name__)


@dataclass
class _Row:
    embedding: list[float]
    text: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class _Collection:
    name: str
    metadata: dict[str, Any] = field(default_factory=dict)
    rows: dict[str, _Row] = field(default_factory=dict)

    def info(self) -> CollectionInfo:
        return CollectionInfo(
            name=self.name,
            metadata=dict(self.metadata),
            embedding_function=self.metadata.get(EMBEDDING_FUNCTION_KEY),
        )


def _at(values: Sequence[Any] | None, i: int) -> Any:
    return None if values is None else values[i]


class InMemoryBackend(StorageBackend):
    """Dictionary-backed :class:`StorageBackend` (insertion-ordered)."""

    def __init__(self) -> None:
        self._collections: dict[str, _Collection] = {}

    def _get(self, name: str) -> _Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise CollectionNotFound(name) from None

    # -- collections ----------------------------------------------------------

    async def create_collection(self, name: str, metadata: dict[str, Any]) -> CollectionInfo:
        if name in self._collections:
            raise CollectionExists(name)
        self._collections[name] = _Collection(name=name, metadata=dict(metadata))
        return self._collections[name].info()

    async def get_collection(self, name: str) -> CollectionInfo:
        return self._get(name).info()

    async def modify_collection(
        self,
        name: str,
        *,
        new_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CollectionInfo:
        current = self._get(name)
        if new_name is not None and new_name != name:
            if new_name in self._collections:
                raise CollectionExists(new_name)
            # New identity with copied configuration and records.
            renamed = _Collection(name=new_name, metadata=dict(current.metadata), rows=dict(current.rows))
            self._collections[new_name] = renamed
            del self._collections[name]
            current = renamed
        if metadata is not None:
            current.metadata = dict(metadata)
        return current.info()

    async def delete_collection(self, name: str) -> None:
        self._get(name)
        del self._collections[name]

    async def list_collections(self) -> list[str]:
        return list(self._collections)

    # -- records --------------------------------------------------------------

    async def add(
        self,
        collection: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        coll = self._get(collection)
        for i, record_id in enumerate(ids):
            if record_id in coll.rows:
                logger.warning("Add of existing id %r in %r ignored", record_id, collection)
                continue
            coll.rows[record_id] = _Row(
                embedding=list(embeddings[i]),
                text=_at(documents, i),
                metadata=dict(_at(metadatas, i) or {}) or None,
            )

    async def upsert(
        self,
        collection: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        coll = self._get(collection)
        for i, record_id in enumerate(ids):
            coll.rows[record_id] = _Row(
                embedding=list(embeddings[i]),
                text=_at(documents, i),
                metadata=dict(_at(metadatas, i) or {}) or None,
            )

    async def update(
        self,
        collection: str,
        ids: Sequence[str],
        *,
        embeddings: Sequence[Sequence[float]] | None = None,
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        coll = self._get(collection)
        for i, record_id in enumerate(ids):
            row = coll.rows.get(record_id)
            if row is None:
                logger.warning("Update of missing id %r in %r ignored", record_id, collection)
                continue
            if embeddings is not None:
                row.embedding = list(embeddings[i])
            if documents is not None:
                row.text = documents[i]
            if metadatas is not None and metadatas[i]:
                row.metadata = {**(row.metadata or {}), **metadatas[i]}

    async def get(
        self,
        collection: str,
        *,
        ids: Sequence[str] | None = None,
        where: MetadataFilter | None = None,
        include: Sequence[str] = ("documents", "metadatas"),
    ) -> list[Record]:
        coll = self._get(collection)
        if ids is not None:
            candidates = [(i, coll.rows[i]) for i in dict.fromkeys(ids) if i in coll.rows]
        else:
            candidates = list(coll.rows.items())
        return [
            Record(
                id=record_id,
                text=row.text if "documents" in include else None,
                metadata=dict(row.metadata) if "metadatas" in include and row.metadata else None,
                embedding=list(row.embedding) if "embeddings" in include else None,
            )
            for record_id, row in candidates
            if not where or matches_filter(row.metadata, where)
        ]

    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        coll = self._get(collection)
        for record_id in ids:
            coll.rows.pop(record_id, None)

    async def query(
        self,
        collection: str,
        query_embedding: Sequence[float],
        *,
        n_results: int,
        where: MetadataFilter | None = None,
        include: Sequence[str] = ("documents", "metadatas", "distances"),
    ) -> list[SearchResult]:
        records = await self.get(collection, where=where, include=include)
        return [
            SearchResult(id=r.id, text=r.text, metadata=r.metadata, embedding=r.embedding)
            for r in records[:n_results]
        ]

    async def count(self, collection: str) -> int:
        return len(self._get(collection).rows)
